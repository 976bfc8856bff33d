"""
OpenAI LLM Provider

Implementation of BaseLLMProvider for OpenAI-compatible chat completions
endpoints (OpenAI itself, NVIDIA NIM, vLLM, Ollama's /v1, etc.).
Supports native tool calling.
"""

import json
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from kopikita.agents.output import extract_text_content
from kopikita.llm.base import BaseLLMProvider
from kopikita.llm.models import (
    LLMMessage,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    ToolCallRequest,
)
from kopikita.models.agent import LLMError

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI-compatible LLM provider.

    Uses the official openai Python SDK with async support. The base URL is
    configurable so any endpoint speaking the chat completions contract works.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
        max_retries: int = 1,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: API key for the endpoint
            model: Default model to use
            base_url: Endpoint base URL (None = api.openai.com)
            temperature: Default temperature
            max_tokens: Default max tokens
            timeout: Request timeout
            max_retries: Transport retries performed by the SDK
        """
        super().__init__(
            provider_name="openai",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.model = model
        self.base_url = base_url
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=float(timeout),
            max_retries=max_retries,
        )

        logger.info(
            f"OpenAI provider initialized with model: {model}",
            extra={"model": model, "base_url": base_url},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate completion using the chat completions API.

        Args:
            request: LLM request

        Returns:
            LLMResponse with generated content and tool calls

        Raises:
            LLMError: On API errors and timeouts
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        params: dict[str, Any] = {
            "model": request.model or self.model,
            "messages": [self._to_openai_message(msg) for msg in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            **request.metadata,
        }
        if request.tools:
            params["tools"] = request.tools

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI API timeout: {e}")
            raise LLMError("OpenAIProvider", f"Model endpoint timed out: {e}") from e
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMError("OpenAIProvider", f"Model endpoint error: {e}") from e

        if not response.choices:
            raise LLMError("OpenAIProvider", "Model endpoint returned no choices")

        choice = response.choices[0]
        usage = response.usage
        llm_response = LLMResponse(
            content=choice.message.content or "",
            tool_calls=[
                self._parse_tool_call(call) for call in (choice.message.tool_calls or [])
            ],
            model=response.model or params["model"],
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=self._map_finish_reason(choice.finish_reason),
            provider="openai",
            metadata={
                "id": response.id,
                "created": response.created,
            },
        )

        self._log_response(llm_response)
        return llm_response

    def _to_openai_message(self, message: LLMMessage) -> dict[str, Any]:
        """Convert a conversation message to the chat completions wire format."""
        content = extract_text_content(message.content)

        if message.role == "tool":
            return {
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": content,
            }

        payload: dict[str, Any] = {"role": message.role, "content": content}
        if message.role == "assistant" and message.tool_calls:
            payload["content"] = content or None
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments),
                    },
                }
                for call in message.tool_calls
            ]
        return payload

    def _parse_tool_call(self, call: Any) -> ToolCallRequest:
        """Decode one tool call; undecodable arguments are kept as an error."""
        raw_arguments = call.function.arguments or "{}"
        try:
            arguments = json.loads(raw_arguments)
        except json.JSONDecodeError as e:
            return ToolCallRequest(
                id=call.id,
                name=call.function.name,
                arguments_error=f"Arguments are not valid JSON: {e.msg}",
            )

        if not isinstance(arguments, dict):
            return ToolCallRequest(
                id=call.id,
                name=call.function.name,
                arguments_error="Arguments must be a JSON object",
            )

        return ToolCallRequest(id=call.id, name=call.function.name, arguments=arguments)

    def _map_finish_reason(self, reason: str | None) -> str:
        """Map OpenAI finish reason to our standard format."""
        if reason in ("stop", "length", "tool_calls", "content_filter"):
            return reason
        if reason == "function_call":
            return "tool_calls"
        return "stop"
