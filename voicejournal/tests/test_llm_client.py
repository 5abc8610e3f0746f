"""Tests for LLMClient provider abstraction."""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from voicejournal.common.errors import CompletionError
from voicejournal.common.llm_client import LLMClient


class TestLLMClientInit:
    def test_missing_anthropic_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="voicejournal.common.llm_client"):
            client = LLMClient(provider="anthropic")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_openai_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="voicejournal.common.llm_client"):
            client = LLMClient(provider="openai")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_google_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="voicejournal.common.llm_client"):
            client = LLMClient(provider="google")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="voicejournal.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text

    def test_from_config_picks_model(self):
        from voicejournal.common.config import LLMConfig

        cfg = LLMConfig(openai_api_key="")
        client = LLMClient.from_config(cfg, cfg.classifier_model)
        assert client.model == "llama-3.1-8b-instant"
        assert client.provider == "openai"


class TestLLMClientComplete:
    @pytest.mark.asyncio
    async def test_complete_raises_when_unavailable(self):
        client = LLMClient(provider="anthropic")
        with pytest.raises(CompletionError, match="not available"):
            await client.complete("test")

    @pytest.mark.asyncio
    async def test_openai_completion(self):
        client = LLMClient(provider="openai", model="llama-3.3-70b-versatile")
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = "  hello  "
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(return_value=response)
        client._client = fake

        text = await client.complete("hi", system="be brief", temperature=0.7, max_tokens=100)

        assert text == "hello"
        kwargs = fake.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama-3.3-70b-versatile"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 100
        assert kwargs["messages"][0] == {"role": "system", "content": "be brief"}

    @pytest.mark.asyncio
    async def test_anthropic_completion(self):
        client = LLMClient(provider="anthropic", model="claude")
        response = MagicMock()
        response.content = [MagicMock(text="answer")]
        fake = MagicMock()
        fake.messages.create = AsyncMock(return_value=response)
        client._client = fake

        assert await client.complete("q") == "answer"
        assert "system" not in fake.messages.create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        client = LLMClient(provider="openai")
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))
        client._client = fake

        with pytest.raises(CompletionError, match="rate limited"):
            await client.complete("q")
