"""
PostgreSQL Connector

Async PostgreSQL connector using asyncpg.

Features:
- Connection pooling with asyncpg
- Schema introspection (tables, columns, constraints) for an allow-list
- Prepared-statement execution returning rows and the command status
- Statement timeout support
- Foreign key relationship discovery

Usage:
    connector = PostgresConnector(
        host="localhost",
        port=5432,
        database="kopikita",
        user="postgres",
        password="secret"
    )

    await connector.connect()

    result = await connector.execute('SELECT COUNT(*) FROM "Sale" LIMIT 5')
    text = await connector.describe_schema(["Customer", "Sale"], sample_rows=2)

    await connector.close()
"""

import logging
import time
from typing import Any

import asyncpg

from kopikita.connectors.base import (
    BaseConnector,
    ColumnInfo,
    ConnectionError,
    QueryError,
    QueryResult,
    SchemaError,
    TableInfo,
    quote_ident,
)

logger = logging.getLogger(__name__)


class PostgresConnector(BaseConnector):
    """
    PostgreSQL database connector using asyncpg.

    Provides async interface for PostgreSQL with connection pooling,
    schema introspection, and statement execution.
    """

    async def connect(self) -> None:
        """
        Establish connection to PostgreSQL and create connection pool.

        Raises:
            ConnectionError: If connection fails
        """
        if self._connected and self._pool:
            logger.debug("Already connected, skipping connection")
            return

        try:
            logger.info(f"Connecting to PostgreSQL at {self.host}:{self.port}/{self.database}")

            self._pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                min_size=1,
                max_size=self.pool_size,
                command_timeout=self.timeout,
                **self.kwargs,
            )

            # Test connection
            async with self._pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
                logger.info(f"Connected to PostgreSQL: {version.split(',')[0]}")

            self._connected = True

        except asyncpg.PostgresError as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e
        except OSError as e:
            logger.error(f"PostgreSQL unreachable: {e}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        """
        Execute one SQL statement as a prepared statement.

        Args:
            query: SQL statement
            timeout: Statement timeout in seconds (overrides default)

        Returns:
            QueryResult with rows, column names and the command status

        Raises:
            QueryError: If the statement fails (driver message kept verbatim)
            ConnectionError: If not connected
        """
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        start_time = time.perf_counter()
        query_timeout = timeout or self.timeout

        try:
            async with self._pool.acquire() as conn:
                await conn.execute(f"SET statement_timeout = {int(query_timeout * 1000)}")

                statement = await conn.prepare(query)
                rows = await statement.fetch()
                status_message = statement.get_statusmsg()

                result_rows = [dict(row) for row in rows]
                columns = [attr.name for attr in statement.get_attributes()]

        except asyncpg.QueryCanceledError as e:
            logger.warning(f"Statement timed out after {query_timeout}s: {query[:100]}")
            raise QueryError(str(e)) from e
        except TimeoutError as e:
            logger.warning(f"Client timed out after {query_timeout}s: {query[:100]}")
            raise QueryError(f"Statement timed out after {query_timeout}s") from e
        except asyncpg.PostgresError as e:
            logger.warning(f"Statement failed: {e}", extra={"sql": query[:200]})
            raise QueryError(str(e)) from e
        except asyncpg.InterfaceError as e:
            logger.error(f"Driver interface error: {e}")
            raise QueryError(str(e)) from e

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Statement executed in {execution_time_ms:.2f}ms, "
            f"returned {len(result_rows)} rows ({status_message})"
        )

        return QueryResult(
            rows=result_rows,
            row_count=len(result_rows),
            columns=columns,
            status_message=status_message,
            execution_time_ms=execution_time_ms,
        )

    async def get_schema(
        self,
        schema_name: str | None = None,
        tables: list[str] | None = None,
    ) -> list[TableInfo]:
        """
        Introspect PostgreSQL schema.

        Retrieves tables, columns, data types, primary keys and foreign keys
        from information_schema and pg_catalog.

        Args:
            schema_name: Specific schema (default: public)
            tables: Restrict to these table names (case-sensitive)

        Returns:
            List of TableInfo objects

        Raises:
            SchemaError: If schema introspection fails
        """
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        schema_filter = schema_name or "public"

        try:
            async with self._pool.acquire() as conn:
                tables_query = """
                    SELECT
                        table_schema,
                        table_name,
                        table_type
                    FROM information_schema.tables
                    WHERE table_schema = $1
                    AND table_type IN ('BASE TABLE', 'VIEW')
                    AND ($2::text[] IS NULL OR table_name = ANY($2::text[]))
                    ORDER BY table_name
                """
                table_rows = await conn.fetch(tables_query, schema_filter, tables)

                table_infos = []
                for table_row in table_rows:
                    table_infos.append(await self._introspect_table(conn, table_row))

        except asyncpg.PostgresError as e:
            logger.error(f"Schema introspection failed: {e}")
            raise SchemaError(f"Failed to introspect schema: {e}") from e

        logger.info(
            f"Introspected schema '{schema_filter}': found {len(table_infos)} tables"
        )
        return table_infos

    async def _introspect_table(self, conn: Any, table_row: Any) -> TableInfo:
        table_schema = table_row["table_schema"]
        table_name = table_row["table_name"]

        columns = await conn.fetch(
            """
            SELECT
                column_name,
                data_type,
                is_nullable,
                column_default
            FROM information_schema.columns
            WHERE table_schema = $1 AND table_name = $2
            ORDER BY ordinal_position
            """,
            table_schema,
            table_name,
        )

        # regclass needs quoted names for camelCase tables
        qualified_name = f"{quote_ident(table_schema)}.{quote_ident(table_name)}"
        pk_rows = await conn.fetch(
            """
            SELECT a.attname
            FROM pg_index i
            JOIN pg_attribute a ON a.attrelid = i.indrelid
                AND a.attnum = ANY(i.indkey)
            WHERE i.indrelid = $1::regclass
            AND i.indisprimary
            """,
            qualified_name,
        )
        pk_columns = {row["attname"] for row in pk_rows}

        fk_rows = await conn.fetch(
            """
            SELECT
                kcu.column_name,
                ccu.table_name AS foreign_table_name,
                ccu.column_name AS foreign_column_name
            FROM information_schema.table_constraints AS tc
            JOIN information_schema.key_column_usage AS kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
            JOIN information_schema.constraint_column_usage AS ccu
                ON ccu.constraint_name = tc.constraint_name
                AND ccu.table_schema = tc.table_schema
            WHERE tc.constraint_type = 'FOREIGN KEY'
            AND tc.table_schema = $1
            AND tc.table_name = $2
            """,
            table_schema,
            table_name,
        )
        fk_map = {
            row["column_name"]: (row["foreign_table_name"], row["foreign_column_name"])
            for row in fk_rows
        }

        column_infos = []
        for col in columns:
            col_name = col["column_name"]
            foreign = fk_map.get(col_name)
            column_infos.append(
                ColumnInfo(
                    name=col_name,
                    data_type=col["data_type"],
                    is_nullable=col["is_nullable"] == "YES",
                    default_value=col["column_default"],
                    is_primary_key=col_name in pk_columns,
                    is_foreign_key=foreign is not None,
                    foreign_table=foreign[0] if foreign else None,
                    foreign_column=foreign[1] if foreign else None,
                )
            )

        return TableInfo(
            schema=table_schema,
            table_name=table_name,
            columns=column_infos,
            table_type=table_row["table_type"],
        )

    async def fetch_sample_rows(
        self, schema_name: str, table_name: str, limit: int
    ) -> list[dict[str, Any]]:
        """Read up to ``limit`` rows of a table for the schema description."""
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        query = f"SELECT * FROM {quote_ident(schema_name)}.{quote_ident(table_name)} LIMIT $1"
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, limit)
        except asyncpg.PostgresError as e:
            logger.error(f"Sample rows for {table_name} failed: {e}")
            raise SchemaError(f"Failed to read sample rows from {table_name}: {e}") from e

        return [dict(row) for row in rows]

    async def close(self) -> None:
        """
        Close connection pool and clean up resources.

        Safe to call multiple times.
        """
        if not self._pool:
            logger.debug("No connection pool to close")
            return

        try:
            await self._pool.close()
        finally:
            self._pool = None
            self._connected = False
        logger.info("PostgreSQL connection closed")
