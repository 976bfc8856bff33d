"""SQL execution tool exposed to the model as ``execute_sql``."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from pydantic import Field

from kopikita.agents.sanitizer import SQLPolicy, SQLSanitizer
from kopikita.connectors.base import BaseConnector, ConnectorError
from kopikita.tools.base import Tool, tool
from kopikita.tools.executor import ToolExecutionError

logger = logging.getLogger(__name__)

ConnectorSource = Callable[[], Awaitable[BaseConnector]]

READ_ONLY_DESCRIPTION = (
    "Execute ONE read-only PostgreSQL SELECT statement and return the rows as JSON. "
    "Results are capped at {row_limit} rows unless the query has its own LIMIT."
)
READ_WRITE_DESCRIPTION = (
    "Execute ONE PostgreSQL SQL statement (SELECT/INSERT/UPDATE/DELETE) and return the result."
)


def format_rows(rows: list[dict], status_message: str | None, columns: list[str]) -> str:
    """Rows as compact JSON; statements without a result set report their status."""
    if columns:
        return json.dumps(rows, default=str, ensure_ascii=False, separators=(",", ":"))
    return status_message or "OK"


def create_execute_sql_tool(connector_source: ConnectorSource, policy: SQLPolicy) -> Tool:
    """
    Build the ``execute_sql`` tool bound to one policy.

    Args:
        connector_source: Async callable returning the shared, connected connector
        policy: Sanitizer rules applied to every statement

    Returns:
        Tool taking a single ``query`` argument
    """
    sanitizer = SQLSanitizer(policy)
    if policy.read_only:
        description = READ_ONLY_DESCRIPTION.format(row_limit=policy.row_limit)
        query_description = "Single PostgreSQL SELECT statement to execute."
    else:
        description = READ_WRITE_DESCRIPTION
        query_description = "Single PostgreSQL statement to execute."

    @tool("execute_sql", description)
    async def execute_sql(
        query: Annotated[str, Field(description=query_description)],
    ) -> str:
        # Rejections propagate as SQLRejectedError for the executor to report
        sanitized = sanitizer.sanitize(query)

        try:
            connector = await connector_source()
            result = await connector.execute(sanitized.sql)
        except ConnectorError as exc:
            raise ToolExecutionError(str(exc)) from exc

        logger.info(
            f"execute_sql returned {result.row_count} rows",
            extra={
                "sql": sanitized.sql[:200],
                "read_only": policy.read_only,
                "status": result.status_message,
                "execution_time_ms": result.execution_time_ms,
            },
        )
        return format_rows(result.rows, result.status_message, result.columns)

    return execute_sql
