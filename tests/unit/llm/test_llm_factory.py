"""Tests for LLMProviderFactory."""

import pytest

from kopikita.config import LLMSettings
from kopikita.llm.factory import LLMProviderFactory
from kopikita.llm.openai import OpenAIProvider


class TestCreateProvider:
    def test_creates_openai_compatible_provider(self):
        config = LLMSettings(
            api_key="nvapi-test-key",
            base_url="https://integrate.api.nvidia.com/v1",
            model="meta/llama-3.1-8b-instruct",
            temperature=0.2,
        )

        provider = LLMProviderFactory.create_provider(config)

        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "meta/llama-3.1-8b-instruct"
        assert provider.base_url == "https://integrate.api.nvidia.com/v1"
        assert provider.temperature == 0.2

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("AI_API_KEY", raising=False)
        config = LLMSettings(api_key=None)

        with pytest.raises(ValueError, match="AI_API_KEY"):
            LLMProviderFactory.create_provider(config)
