"""
Database Connectors Module

Provides the async PostgreSQL connector used by the agents.

Available Connectors:
    - BaseConnector: Abstract base class
    - PostgresConnector: PostgreSQL connector (asyncpg)

Usage:
    from kopikita.connectors import create_connector

    connector = create_connector(database_url="postgresql://postgres@localhost/kopikita")

    async with connector:
        result = await connector.execute('SELECT * FROM "Customer" LIMIT 5')
        schema_text = await connector.describe_schema(["Customer", "Sale"])
"""

from kopikita.connectors.base import (
    BaseConnector,
    ColumnInfo,
    ConnectionError,
    ConnectorError,
    QueryError,
    QueryResult,
    SchemaError,
    TableInfo,
)
from kopikita.connectors.factory import create_connector, normalize_database_url
from kopikita.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "PostgresConnector",
    "create_connector",
    "normalize_database_url",
    "ColumnInfo",
    "TableInfo",
    "QueryResult",
    "ConnectorError",
    "ConnectionError",
    "QueryError",
    "SchemaError",
]
