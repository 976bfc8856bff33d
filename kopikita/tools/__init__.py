"""Tool system entrypoint."""

from __future__ import annotations

from kopikita.tools.base import Tool, ToolDefinition, tool
from kopikita.tools.executor import ToolCallResult, ToolExecutionError, ToolExecutor
from kopikita.tools.registry import ToolRegistry
from kopikita.tools.sql import create_execute_sql_tool

__all__ = [
    "Tool",
    "ToolCallResult",
    "ToolDefinition",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolRegistry",
    "create_execute_sql_tool",
    "tool",
]
