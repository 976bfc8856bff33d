"""
Base Database Connector

Abstract base class for database connectors. Provides a consistent
async interface for connecting to, querying, and introspecting databases.

All connectors must implement:
- connect(): Establish connection with connection pooling
- execute(): Run one statement with timeout
- get_schema(): Introspect database schema (tables, columns, types)
- fetch_sample_rows(): Read a few rows of a table for prompt context
- describe_schema(): Render allow-listed tables as prompt-ready text
- close(): Clean up connections and pools
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class ColumnInfo(BaseModel):
    """Information about a database column."""

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Column data type")
    is_nullable: bool = Field(..., description="Whether column can be NULL")
    default_value: str | None = Field(None, description="Default value if any")
    is_primary_key: bool = Field(default=False, description="Is part of primary key")
    is_foreign_key: bool = Field(default=False, description="Is a foreign key")
    foreign_table: str | None = Field(None, description="Referenced table if FK")
    foreign_column: str | None = Field(None, description="Referenced column if FK")


class TableInfo(BaseModel):
    """Information about a database table."""

    schema_name: str = Field(..., alias="schema", description="Schema/database name")
    table_name: str = Field(..., description="Table name")
    columns: list[ColumnInfo] = Field(..., description="List of columns")
    row_count: int | None = Field(None, description="Approximate row count")
    table_type: str = Field(default="TABLE", description="TABLE, VIEW, etc.")

    model_config = ConfigDict(populate_by_name=True)


class QueryResult(BaseModel):
    """Result from statement execution."""

    rows: list[dict[str, Any]] = Field(..., description="Result rows")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(..., description="Column names")
    status_message: str | None = Field(
        None, description="Command status reported by the server (e.g. 'INSERT 0 3')"
    )
    execution_time_ms: float = Field(..., description="Execution time in ms")


class ConnectorError(Exception):
    """Base exception for connector errors."""

    pass


class ConnectionError(ConnectorError):
    """Error establishing or managing database connection."""

    pass


class QueryError(ConnectorError):
    """Error executing a statement; the message is the driver's message."""

    pass


class SchemaError(ConnectorError):
    """Error introspecting database schema."""

    pass


# ============================================================================
# Schema Rendering
# ============================================================================


def quote_ident(name: str) -> str:
    """Quote an identifier the way PostgreSQL expects (case preserved)."""
    return '"' + name.replace('"', '""') + '"'


def render_create_table(table: TableInfo) -> str:
    """Render a table as a CREATE TABLE block."""
    lines = []
    for column in table.columns:
        line = f"\t{quote_ident(column.name)} {column.data_type}"
        if not column.is_nullable:
            line += " NOT NULL"
        if column.default_value is not None:
            line += f" DEFAULT {column.default_value}"
        lines.append(line)

    primary_keys = [quote_ident(c.name) for c in table.columns if c.is_primary_key]
    if primary_keys:
        lines.append(f"\tPRIMARY KEY ({', '.join(primary_keys)})")

    for column in table.columns:
        if column.is_foreign_key and column.foreign_table:
            target = quote_ident(column.foreign_table)
            if column.foreign_column:
                target += f"({quote_ident(column.foreign_column)})"
            lines.append(f"\tFOREIGN KEY({quote_ident(column.name)}) REFERENCES {target}")

    body = ",\n".join(lines)
    return f"CREATE TABLE {quote_ident(table.table_name)} (\n{body}\n)"


def render_sample_rows(table: TableInfo, rows: list[dict[str, Any]], limit: int) -> str:
    """Render sample rows as a tab-separated comment block."""
    column_names = [c.name for c in table.columns]
    lines = [f"/*\n{limit} rows from {table.table_name} table:", "\t".join(column_names)]
    for row in rows[:limit]:
        lines.append("\t".join(_format_cell(row.get(name)) for name in column_names))
    lines.append("*/")
    return "\n".join(lines)


def _format_cell(value: Any) -> str:
    if value is None:
        return "None"
    text = str(value)
    # Long text columns would crowd the prompt
    if len(text) > 100:
        text = text[:100] + "..."
    return text.replace("\t", " ").replace("\n", " ")


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Abstract base class for database connectors.

    Features:
    - Async interface throughout
    - Connection pooling support
    - Statement timeout configuration
    - Schema introspection

    Usage:
        connector = PostgresConnector(host="localhost", ...)
        await connector.connect()

        result = await connector.execute('SELECT COUNT(*) FROM "Sale"')
        print(f"Found {result.row_count} rows")

        await connector.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        pool_size: int = 5,
        timeout: int = 15,
        **kwargs,
    ):
        """
        Initialize connector.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            pool_size: Connection pool size (default: 5)
            timeout: Statement timeout in seconds (default: 15)
            **kwargs: Additional driver-specific parameters (e.g. ssl)
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.pool_size = pool_size
        self.timeout = timeout
        self.kwargs = kwargs

        self._pool = None
        self._connected = False

        logger.info(f"Initialized {self.__class__.__name__} for {user}@{host}:{port}/{database}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish database connection and create connection pool.

        Should be idempotent - calling multiple times should not create
        multiple pools.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        """
        Execute one SQL statement.

        Args:
            query: SQL statement
            timeout: Statement timeout in seconds (overrides default)

        Returns:
            QueryResult with rows, columns, and command status

        Raises:
            QueryError: If execution fails
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def get_schema(
        self,
        schema_name: str | None = None,
        tables: list[str] | None = None,
    ) -> list[TableInfo]:
        """
        Introspect database schema.

        Args:
            schema_name: Specific schema to introspect (None = public)
            tables: Only these tables (None = all tables in the schema)

        Returns:
            List of TableInfo objects

        Raises:
            SchemaError: If schema introspection fails
        """
        pass

    @abstractmethod
    async def fetch_sample_rows(
        self, schema_name: str, table_name: str, limit: int
    ) -> list[dict[str, Any]]:
        """
        Read up to ``limit`` rows of a table.

        Raises:
            SchemaError: If the rows cannot be read
        """
        pass

    async def describe_schema(
        self,
        tables: list[str],
        sample_rows: int = 2,
        schema_name: str = "public",
    ) -> str:
        """
        Render the allow-listed tables as CREATE TABLE blocks with sample rows.

        Table names are matched case-sensitively. Every allow-listed table
        must exist; a partial description is never returned.

        Args:
            tables: Table allow-list, rendered in this order
            sample_rows: Rows shown per table (0 = none)
            schema_name: Schema holding the tables

        Returns:
            Schema description text

        Raises:
            SchemaError: If a table is missing or introspection fails
        """
        table_infos = await self.get_schema(schema_name=schema_name, tables=tables)
        by_name = {info.table_name: info for info in table_infos}

        missing = [name for name in tables if name not in by_name]
        if missing:
            raise SchemaError(
                f"Tables not found in schema '{schema_name}': {', '.join(missing)}"
            )

        blocks = []
        for name in tables:
            info = by_name[name]
            block = render_create_table(info)
            if sample_rows > 0:
                rows = await self.fetch_sample_rows(schema_name, name, sample_rows)
                block += "\n\n" + render_sample_rows(info, rows, sample_rows)
            blocks.append(block)

        logger.info(
            f"Described {len(blocks)} tables for prompt context",
            extra={"tables": tables, "sample_rows": sample_rows},
        )
        return "\n\n".join(blocks)

    @abstractmethod
    async def close(self) -> None:
        """
        Close database connection and clean up pool.

        Should be idempotent - safe to call multiple times.
        """
        pass

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected."""
        return self._connected

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        return False

    def __repr__(self) -> str:
        """String representation."""
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} {self.user}@{self.host}:{self.port}/{self.database} ({status})>"
