"""
Agent Runtime

Composition root shared by the API and the CLI. Owns the process-wide
collaborators (database connector, schema cache, LLM provider) and the three
agent call sites built on top of them.

Usage:
    runtime = AgentRuntime(get_settings())
    reply = await runtime.generate_chat_reply("Produk apa yang paling laris?")
    await runtime.close()
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from kopikita.config import Settings
from kopikita.connectors.base import BaseConnector, ConnectionError
from kopikita.connectors.factory import create_connector
from kopikita.database.schema import SchemaCache
from kopikita.llm.base import BaseLLMProvider
from kopikita.llm.factory import LLMProviderFactory
from kopikita.models.agent import LLMConfigurationError
from kopikita.models.api import GenerationMode, PromoIdeasResponse
from kopikita.policies.base import AgentResources
from kopikita.policies.chat import ChatAssistant
from kopikita.policies.dummy_data import DummyDataGenerator
from kopikita.policies.promo_ideas import PromoIdeaGenerator
from kopikita.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)


class AgentRuntime:
    """Process-wide owner of connectors, caches and agent call sites."""

    def __init__(
        self,
        settings: Settings,
        provider: BaseLLMProvider | None = None,
        connector: BaseConnector | None = None,
        prompts: PromptLoader | None = None,
    ):
        """
        Args:
            settings: Application settings
            provider: Pre-built model provider (default: built from settings.llm)
            connector: Pre-built connector (default: built from settings.database)
            prompts: Prompt loader (default: packaged templates)
        """
        self.settings = settings
        self._provider = provider
        self._connector = connector
        self._connector_lock = asyncio.Lock()

        self.schema_cache = SchemaCache(
            self.get_connector,
            schema_name=settings.database.schema_name,
            sample_rows=settings.database.sample_rows,
        )
        resources = AgentResources(
            provider_source=self.get_provider,
            connector_source=self.get_connector,
            schema_cache=self.schema_cache,
            prompts=prompts or PromptLoader(),
            schema_tables=tuple(settings.database.schema_tables),
            schema_name=settings.database.schema_name,
        )
        self.chat = ChatAssistant(resources, settings.agent)
        self.promo = PromoIdeaGenerator(resources, settings.agent)
        self.dummy_data = DummyDataGenerator(resources, settings.agent)

    # ========================================================================
    # Shared Collaborators
    # ========================================================================

    def get_provider(self) -> BaseLLMProvider:
        """
        Return the model provider, creating it on first use.

        Raises:
            LLMConfigurationError: If AI_API_KEY is not configured
        """
        if self._provider is None:
            if not self.settings.llm.is_configured:
                raise LLMConfigurationError("AgentRuntime", "AI_API_KEY is required.")
            self._provider = LLMProviderFactory.create_provider(self.settings.llm)
        return self._provider

    async def get_connector(self) -> BaseConnector:
        """
        Return the shared connector, connecting it once.

        Raises:
            ConnectionError: If DATABASE_URL is missing or the database is unreachable
        """
        if self._connector is not None and self._connector.is_connected:
            return self._connector

        async with self._connector_lock:
            if self._connector is None:
                url = self.settings.database.url
                if not url:
                    raise ConnectionError("DATABASE_URL is not configured.")
                try:
                    self._connector = create_connector(
                        database_url=url,
                        pool_size=self.settings.database.pool_size,
                        timeout=self.settings.database.statement_timeout,
                    )
                except ValueError as e:
                    raise ConnectionError(str(e)) from e

            if not self._connector.is_connected:
                await self._connector.connect()
            return self._connector

    # ========================================================================
    # Call Sites
    # ========================================================================

    async def generate_chat_reply(self, message: str, history: Sequence[Any] = ()) -> str:
        return await self.chat.reply(message, history)

    async def generate_promo_ideas(self, week_start: str | None = None) -> PromoIdeasResponse:
        return await self.promo.generate(week_start)

    async def run_dummy_data_agent(self, mode: GenerationMode = "mixed") -> str:
        return await self.dummy_data.run(mode)

    async def get_schema_info(self) -> str:
        return await self.schema_cache.get_schema_info(self.settings.database.schema_tables)

    async def close(self) -> None:
        """Release the connection pool. Safe to call more than once."""
        if self._connector is not None:
            await self._connector.close()
            logger.info("Agent runtime closed")
