"""
LLM Provider Module

Model endpoint abstraction for OpenAI-compatible chat completions APIs.

Usage:
    from kopikita.llm import LLMProviderFactory, LLMRequest, LLMMessage
    from kopikita.config import get_settings

    config = get_settings()
    provider = LLMProviderFactory.create_provider(config.llm)

    request = LLMRequest(
        messages=[LLMMessage(role="user", content="Hello!")],
    )

    response = await provider.generate(request)
    print(response.content)
"""

from kopikita.llm.base import BaseLLMProvider
from kopikita.llm.factory import LLMProviderFactory
from kopikita.llm.models import (
    LLMMessage,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    ToolCallRequest,
)
from kopikita.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "ToolCallRequest",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
]
