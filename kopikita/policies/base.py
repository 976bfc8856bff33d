"""
Shared wiring for the agent call sites.

Every site combines the cached schema text, a site-specific system prompt,
an ``execute_sql`` tool bound to the site's SQLPolicy and numeric bounds into
an AgentLoop. Compiled loops are cached per site key.
"""

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from kopikita.agents.loop import AgentLoop, AgentRunConfig
from kopikita.agents.sanitizer import SQLPolicy
from kopikita.database.schema import SchemaCache
from kopikita.llm.base import BaseLLMProvider
from kopikita.prompts.loader import PromptLoader
from kopikita.tools.sql import ConnectorSource, create_execute_sql_tool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentResources:
    """Process-wide collaborators handed to every call site."""

    provider_source: Callable[[], BaseLLMProvider]
    connector_source: ConnectorSource
    schema_cache: SchemaCache
    prompts: PromptLoader
    schema_tables: tuple[str, ...]
    schema_name: str = "public"


class AgentSite:
    """Base class for a call site that runs the tool-calling loop."""

    name = "agent"
    template = ""

    def __init__(self, resources: AgentResources):
        self.resources = resources
        self._agents: dict[Hashable, AgentLoop] = {}

    async def compile_agent(
        self,
        key: Hashable,
        policy: SQLPolicy,
        max_steps: int,
        timeout_seconds: float | None,
        temperature: float | None = None,
        **prompt_variables: Any,
    ) -> AgentLoop:
        """
        Return the cached loop for ``key``, building it on first use.

        Raises:
            LLMConfigurationError: If the model endpoint is not configured
            ConnectionError: If the schema cannot be read
            SchemaError: If the schema cannot be read
        """
        agent = self._agents.get(key)
        if agent is not None:
            return agent

        provider = self.resources.provider_source()
        schema_info = await self.resources.schema_cache.get_schema_info(
            self.resources.schema_tables
        )
        system_prompt = self.resources.prompts.render(
            self.template,
            schema_info=schema_info,
            row_limit=policy.row_limit,
            max_steps=max_steps,
            **prompt_variables,
        )
        config = AgentRunConfig(
            name=f"{self.name}:{key}",
            system_prompt=system_prompt,
            tools=[create_execute_sql_tool(self.resources.connector_source, policy)],
            max_steps=max_steps,
            timeout_seconds=timeout_seconds,
            temperature=temperature,
        )
        agent = AgentLoop(provider, config)
        self._agents[key] = agent
        logger.info(
            f"Compiled {self.name} agent for {key}",
            extra={"site": self.name, "key": str(key), "read_only": policy.read_only},
        )
        return agent
