"""Tests for API and agent models."""

import pytest
from pydantic import ValidationError

from kopikita.models.agent import AgentError, AgentRunStatus, LLMError
from kopikita.models.api import ChatRequest, DummyDataRequest, PromoIdea, PromoIdeasRequest


class TestChatRequest:
    def test_history_defaults_to_empty(self):
        assert ChatRequest(message="Halo").history == []

    def test_non_list_history_ignored(self):
        assert ChatRequest(message="Halo", history="oops").history == []

    def test_history_keeps_most_recent(self):
        history = [{"role": "assistant", "content": str(i)} for i in range(15)]

        request = ChatRequest(message="Halo", history=history)

        assert [m.content for m in request.history] == [str(i) for i in range(3, 15)]

    def test_system_role_not_accepted(self):
        with pytest.raises(ValidationError):
            ChatRequest(message="Halo", history=[{"role": "system", "content": "x"}])


class TestDummyDataRequest:
    def test_default_mode(self):
        assert DummyDataRequest().mode == "mixed"

    def test_invalid_mode(self):
        with pytest.raises(ValidationError):
            DummyDataRequest(mode="all")


class TestPromoModels:
    def test_camel_case_aliases(self):
        idea = PromoIdea.model_validate(
            {
                "theme": "T",
                "segment": "S",
                "whyNow": "W",
                "message": "M",
                "suggestedProductNames": "Americano",
            }
        )

        assert idea.why_now == "W"
        assert idea.suggested_product_names == ["Americano"]
        assert idea.model_dump(by_alias=True)["whyNow"] == "W"

    def test_week_start_alias(self):
        assert PromoIdeasRequest.model_validate({"weekStart": "2026-10-19"}).week_start == "2026-10-19"


class TestAgentErrors:
    def test_to_dict(self):
        error = AgentError("DummyDataGenerator", "timed out", context={"mode": "new"})

        assert str(error) == "[DummyDataGenerator] timed out"
        assert error.to_dict() == {
            "agent": "DummyDataGenerator",
            "message": "timed out",
            "recoverable": True,
            "context": {"mode": "new"},
            "type": "AgentError",
        }

    def test_llm_error_not_recoverable(self):
        assert LLMError("OpenAIProvider", "down").recoverable is False

    def test_run_status_values(self):
        assert {status.value for status in AgentRunStatus} == {
            "done",
            "step_limit",
            "timeout",
            "upstream_error",
        }
