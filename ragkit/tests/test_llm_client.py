"""Tests for LLMClient provider abstraction."""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from ragkit.common.llm_client import LLMClient, resolve_provider


class TestLLMClientInit:
    def test_missing_openai_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="ragkit.common.llm_client"):
            client = LLMClient(provider="openai")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_anthropic_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="ragkit.common.llm_client"):
            client = LLMClient(provider="anthropic")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_google_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="ragkit.common.llm_client"):
            client = LLMClient(provider="google")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_auto_provider_raises(self):
        with pytest.raises(ValueError, match="auto"):
            LLMClient(provider="auto")

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ragkit.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text

    def test_openai_key_makes_client_available(self):
        client = LLMClient(provider="openai", model="gpt-4o-mini", openai_api_key="sk-test")
        assert client.is_available


class TestResolveProvider:
    def test_explicit_provider_kept(self):
        assert resolve_provider("Anthropic", openai_api_key="sk") == "anthropic"

    def test_auto_picks_first_configured(self):
        assert resolve_provider("auto", anthropic_api_key="ak") == "anthropic"
        assert resolve_provider("auto", openai_api_key="sk", google_api_key="gk") == "openai"

    def test_auto_without_keys_defaults_to_openai(self):
        assert resolve_provider("auto") == "openai"


class TestLLMClientGenerate:
    @pytest.mark.asyncio
    async def test_generate_raises_when_unavailable(self):
        client = LLMClient(provider="openai")
        with pytest.raises(RuntimeError, match="not available"):
            await client.generate("test")

    @pytest.mark.asyncio
    async def test_openai_request_shape(self):
        client = LLMClient(provider="openai", model="gpt-4o-mini", openai_api_key="sk-test")
        create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="  hello  "))]
        ))
        client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

        text = await client.generate("prompt", system="sys", max_tokens=125, temperature=0.3)

        assert text == "hello"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 125
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "prompt"},
        ]

    @pytest.mark.asyncio
    async def test_anthropic_request_shape(self):
        client = LLMClient(provider="anthropic", model="claude-x")
        create = AsyncMock(return_value=SimpleNamespace(content=[SimpleNamespace(text="answer\n")]))
        client._client = SimpleNamespace(messages=SimpleNamespace(create=create))

        text = await client.generate("prompt", system="sys", max_tokens=50, temperature=0.3)

        assert text == "answer"
        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
