"""
Tests for OpenAI Provider.

Tests the chat completions provider with mocked API calls.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from kopikita.llm.models import LLMMessage, LLMRequest, ToolCallRequest
from kopikita.llm.openai import OpenAIProvider
from kopikita.models.agent import LLMError


@pytest.fixture
def provider():
    """Create OpenAI provider instance."""
    return OpenAIProvider(
        api_key="nvapi-test-key",
        model="meta/llama-3.1-8b-instruct",
        base_url="https://integrate.api.nvidia.com/v1",
        temperature=0.0,
        max_tokens=2000,
        timeout=30,
    )


def make_completion(content="", tool_calls=None, finish_reason="stop"):
    """Build a chat completion shaped like the SDK's response object."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.choices[0].message.tool_calls = tool_calls
    response.choices[0].finish_reason = finish_reason
    response.model = "meta/llama-3.1-8b-instruct"
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 5
    response.usage.total_tokens = 15
    response.id = "chatcmpl-123"
    response.created = 1234567890
    return response


def make_tool_call(call_id, name, arguments):
    call = MagicMock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments
    return call


class TestOpenAIProviderInit:
    """Test OpenAI provider initialization."""

    def test_initialization(self, provider):
        assert provider.model == "meta/llama-3.1-8b-instruct"
        assert provider.base_url == "https://integrate.api.nvidia.com/v1"
        assert provider.temperature == 0.0
        assert provider.provider_name == "openai"
        assert provider.client is not None


class TestGenerate:
    """Test generate method."""

    @pytest.mark.asyncio
    async def test_text_answer(self, provider):
        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=make_completion("Total penjualan minggu ini 42."),
        ):
            response = await provider.generate(
                LLMRequest(messages=[LLMMessage(role="user", content="Berapa penjualan?")])
            )

        assert response.content == "Total penjualan minggu ini 42."
        assert response.tool_calls == []
        assert response.finish_reason == "stop"
        assert response.usage.total_tokens == 15
        assert response.provider == "openai"

    @pytest.mark.asyncio
    async def test_tool_calls_are_decoded(self, provider):
        completion = make_completion(
            content=None,
            tool_calls=[
                make_tool_call("call_1", "execute_sql", '{"query": "SELECT 1"}'),
            ],
            finish_reason="tool_calls",
        )
        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=completion,
        ):
            response = await provider.generate(
                LLMRequest(messages=[LLMMessage(role="user", content="Hi")])
            )

        assert response.content == ""
        assert response.finish_reason == "tool_calls"
        assert response.tool_calls[0].id == "call_1"
        assert response.tool_calls[0].arguments == {"query": "SELECT 1"}
        assert response.tool_calls[0].arguments_error is None

    @pytest.mark.asyncio
    async def test_malformed_arguments_kept_as_error(self, provider):
        completion = make_completion(
            tool_calls=[make_tool_call("call_1", "execute_sql", '{"query": ')],
            finish_reason="tool_calls",
        )
        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=completion,
        ):
            response = await provider.generate(
                LLMRequest(messages=[LLMMessage(role="user", content="Hi")])
            )

        call = response.tool_calls[0]
        assert call.arguments == {}
        assert call.arguments_error.startswith("Arguments are not valid JSON")

    @pytest.mark.asyncio
    async def test_tools_and_history_sent_in_wire_format(self, provider):
        tools = [{"type": "function", "function": {"name": "execute_sql", "parameters": {}}}]
        messages = [
            LLMMessage(role="system", content="You are a CRM analyst."),
            LLMMessage(role="user", content=[{"type": "text", "text": "Berapa"}, {"text": "?"}]),
            LLMMessage(
                role="assistant",
                tool_calls=[
                    ToolCallRequest(id="call_1", name="execute_sql", arguments={"query": "SELECT 1"})
                ],
            ),
            LLMMessage(role="tool", content='[{"count":1}]', tool_call_id="call_1"),
        ]

        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=make_completion("Satu."),
        ) as create:
            await provider.generate(LLMRequest(messages=messages, tools=tools))

        params = create.call_args.kwargs
        assert params["tools"] == tools
        assert params["model"] == "meta/llama-3.1-8b-instruct"
        sent = params["messages"]
        assert sent[1] == {"role": "user", "content": "Berapa ?"}
        assert sent[2]["content"] is None
        assert sent[2]["tool_calls"][0]["function"] == {
            "name": "execute_sql",
            "arguments": json.dumps({"query": "SELECT 1"}),
        }
        assert sent[3] == {"role": "tool", "tool_call_id": "call_1", "content": '[{"count":1}]'}

    @pytest.mark.asyncio
    async def test_no_tools_key_without_tools(self, provider):
        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=make_completion("ok"),
        ) as create:
            await provider.generate(LLMRequest(messages=[LLMMessage(role="user", content="Hi")]))

        assert "tools" not in create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_api_error_raises_llm_error(self, provider):
        request = httpx.Request("POST", "https://integrate.api.nvidia.com/v1/chat/completions")
        error = openai.APIConnectionError(request=request)

        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            with pytest.raises(LLMError) as exc_info:
                await provider.generate(
                    LLMRequest(messages=[LLMMessage(role="user", content="Hi")])
                )

        assert exc_info.value.recoverable is False

    @pytest.mark.asyncio
    async def test_empty_choices_raise_llm_error(self, provider):
        completion = make_completion("ok")
        completion.choices = []

        with patch.object(
            provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=completion,
        ):
            with pytest.raises(LLMError, match="no choices"):
                await provider.generate(
                    LLMRequest(messages=[LLMMessage(role="user", content="Hi")])
                )
