"""Connector factory for PostgreSQL database URLs."""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from kopikita.connectors.base import BaseConnector
from kopikita.connectors.postgres import PostgresConnector

_POSTGRES_SCHEMES = {"postgres", "postgresql"}
_WEAK_SSL_MODES = {"prefer", "require", "verify-ca"}


def normalize_database_url(database_url: str | None) -> str | None:
    """
    Upgrade weak sslmode values of a postgres URL to ``verify-full``.

    Non-postgres URLs, URLs without sslmode and unparseable input are
    returned unchanged.
    """
    if not database_url:
        return database_url

    try:
        parsed = urlparse(database_url)
    except ValueError:
        return database_url

    if parsed.scheme.lower() not in _POSTGRES_SCHEMES:
        return database_url

    query = parse_qs(parsed.query, keep_blank_values=True)
    modes = query.get("sslmode")
    if not modes or modes[-1].lower() not in _WEAK_SSL_MODES:
        return database_url

    query["sslmode"] = ["verify-full"]
    return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))


def create_connector(
    *,
    database_url: str,
    pool_size: int = 5,
    timeout: int = 15,
    **kwargs,
) -> BaseConnector:
    """Create a connector from a postgres URL (sslmode is passed to asyncpg as ssl)."""
    parsed = _parse_url(normalize_database_url(database_url) or database_url)
    scheme = parsed.scheme.split("+")[0].lower()
    if scheme not in _POSTGRES_SCHEMES:
        raise ValueError(f"Unsupported database URL scheme: {parsed.scheme}")
    if not parsed.hostname:
        raise ValueError("Invalid database URL: host is required.")

    ssl_modes = parse_qs(parsed.query).get("sslmode")
    if ssl_modes and "ssl" not in kwargs:
        kwargs["ssl"] = ssl_modes[-1]

    return PostgresConnector(
        host=parsed.hostname,
        port=parsed.port or 5432,
        database=parsed.path.lstrip("/") or "postgres",
        user=parsed.username or "postgres",
        password=parsed.password or "",
        pool_size=pool_size,
        timeout=timeout,
        **kwargs,
    )


def _parse_url(database_url: str):
    normalized = database_url.replace("postgresql+asyncpg://", "postgresql://")
    return urlparse(normalized)
