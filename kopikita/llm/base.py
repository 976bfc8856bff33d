"""
Base LLM Provider

Abstract base class defining the interface the agent loop talks to.
Any endpoint that accepts a role-tagged message history plus tool
definitions and answers with text or tool calls can sit behind it.
"""

import logging
from abc import ABC, abstractmethod

from kopikita.llm.models import LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Attributes:
        provider_name: Unique identifier for this provider
        temperature: Default sampling temperature
        max_tokens: Default maximum tokens to generate
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        """
        Initialize base provider.

        Args:
            provider_name: Provider identifier (e.g., "openai")
            temperature: Default temperature for responses
            max_tokens: Default max tokens for responses
            timeout: Request timeout in seconds
        """
        self.provider_name = provider_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider",
            extra={
                "provider": provider_name,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            request: LLM request with messages, tools and parameters

        Returns:
            LLMResponse with generated content and any requested tool calls

        Raises:
            LLMError: When the endpoint is unreachable or rejects the request
        """
        pass  # pragma: no cover - abstract method

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        """
        Apply default values to request if not specified.

        Args:
            request: Original request

        Returns:
            Request with defaults applied
        """
        if request.temperature is None:
            request.temperature = self.temperature
        if request.max_tokens is None:
            request.max_tokens = self.max_tokens
        return request

    def _log_request(self, request: LLMRequest) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "message_count": len(request.messages),
                "tool_count": len(request.tools),
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        """Log response details for debugging."""
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "tool_calls": [call.name for call in response.tool_calls],
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
                "finish_reason": response.finish_reason,
            },
        )
