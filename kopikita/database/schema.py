"""Process-lifetime cache of the schema description given to the agents."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from kopikita.connectors.base import BaseConnector

logger = logging.getLogger(__name__)


class SchemaCache:
    """
    Compute the schema text once per table allow-list and keep it.

    Concurrent first callers wait on a single computation. Failures are not
    cached, so the next request retries against the database.
    """

    def __init__(
        self,
        connector_source: Callable[[], Awaitable[BaseConnector]],
        schema_name: str = "public",
        sample_rows: int = 2,
    ) -> None:
        self._connector_source = connector_source
        self._schema_name = schema_name
        self._sample_rows = sample_rows
        self._cache: dict[tuple[str, ...], str] = {}
        self._lock = asyncio.Lock()

    def is_cached(self, tables: Iterable[str]) -> bool:
        return tuple(tables) in self._cache

    async def get_schema_info(self, tables: Iterable[str]) -> str:
        """
        Return the description of the allow-listed tables.

        Raises:
            ConnectionError: If the database is unreachable
            SchemaError: If introspection fails or a table is missing
        """
        key = tuple(tables)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        async with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            connector = await self._connector_source()
            text = await connector.describe_schema(
                list(key),
                sample_rows=self._sample_rows,
                schema_name=self._schema_name,
            )
            self._cache[key] = text
            logger.info(
                f"Cached schema description for {len(key)} tables",
                extra={"tables": list(key), "chars": len(text)},
            )
            return text

    def invalidate(self) -> None:
        self._cache.clear()
        logger.info("Schema description cache cleared")
