"""Tool registry scoped to one agent."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kopikita.tools.base import Tool, ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Tools callable by one agent, keyed by unique name."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for item in tools:
            self.register(item)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_definitions(self) -> list[ToolDefinition]:
        return [item.definition for item in self._tools.values()]

    def to_openai(self) -> list[dict[str, Any]]:
        return [definition.to_openai() for definition in self.list_definitions()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
