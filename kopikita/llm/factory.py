"""
LLM Provider Factory

Creates LLM provider instances from configuration.
"""

import logging

from kopikita.config import LLMSettings
from kopikita.llm.base import BaseLLMProvider
from kopikita.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """
    Factory for creating LLM provider instances.

    Every supported endpoint speaks the OpenAI chat completions contract, so
    a single provider class covers them; the base URL selects the vendor.
    """

    @staticmethod
    def create_provider(config: LLMSettings) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            config: LLM configuration settings

        Returns:
            Configured provider instance

        Raises:
            ValueError: If no API key is configured
        """
        if not config.api_key:
            raise ValueError("AI_API_KEY is required but not configured")

        logger.info(
            f"Creating provider for model {config.model}",
            extra={"model": config.model, "base_url": config.base_url},
        )

        return OpenAIProvider(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )
