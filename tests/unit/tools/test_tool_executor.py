"""Unit tests for ToolExecutor: every failure comes back as error text."""

import pytest

from kopikita.agents.sanitizer import RejectionReason, SQLRejectedError
from kopikita.llm.models import ToolCallRequest
from kopikita.tools.base import tool
from kopikita.tools.executor import ToolExecutionError, ToolExecutor
from kopikita.tools.registry import ToolRegistry


@tool("lookup", "Look something up.")
async def lookup(key: str) -> str:
    if key == "reject":
        raise SQLRejectedError(RejectionReason.DDL_BLOCKED, "DDL commands are blocked for safety.")
    if key == "db":
        raise ToolExecutionError('relation "Sales" does not exist')
    if key == "crash":
        raise RuntimeError("boom")
    return f"value of {key}"


@pytest.fixture
def executor():
    return ToolExecutor(ToolRegistry([lookup]))


def call(**arguments):
    return ToolCallRequest(id="call_1", name="lookup", arguments=arguments)


class TestToolExecutor:
    @pytest.mark.asyncio
    async def test_success(self, executor):
        result = await executor.execute(call(key="Tag"))

        assert result.is_error is False
        assert result.call_id == "call_1"
        assert result.content == "value of Tag"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, executor):
        result = await executor.execute(ToolCallRequest(id="c", name="nope"))

        assert result.is_error is True
        assert result.content == "Error: Unknown tool: nope\nPlease fix your mistakes."

    @pytest.mark.asyncio
    async def test_malformed_arguments(self, executor):
        request = ToolCallRequest(
            id="c", name="lookup", arguments_error="Arguments are not valid JSON: Expecting value"
        )

        result = await executor.execute(request)

        assert result.is_error is True
        assert "Arguments are not valid JSON" in result.content

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, executor):
        result = await executor.execute(call())

        assert result.is_error is True
        assert result.content.startswith("Error: Invalid arguments for lookup")
        assert result.content.endswith("Please fix your mistakes.")

    @pytest.mark.asyncio
    async def test_sanitizer_rejection(self, executor):
        result = await executor.execute(call(key="reject"))

        assert result.content == (
            "Error: DDL commands are blocked for safety.\nPlease fix your mistakes."
        )

    @pytest.mark.asyncio
    async def test_database_error_message_kept(self, executor):
        result = await executor.execute(call(key="db"))

        assert result.content == (
            'Error: relation "Sales" does not exist\nPlease fix your mistakes.'
        )

    @pytest.mark.asyncio
    async def test_unexpected_exception(self, executor):
        result = await executor.execute(call(key="crash"))

        assert result.is_error is True
        assert result.content == "Error: boom\nPlease fix your mistakes."
