"""Unit tests for the OpenAI-compatible chat-completions provider."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.utils.errors import LLMError

_MODULE = "src.providers.llm.openai_provider"


def _completion(content: str | None, total_tokens: int = 42) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion("  An answer.  "))
    return client


@pytest.fixture
def provider(mock_client: MagicMock) -> OpenAILLMProvider:
    settings = Settings(_env_file=None, llm_model="test-model", app_title="", http_referer="")
    with patch(f"{_MODULE}.openai.AsyncOpenAI", return_value=mock_client):
        return OpenAILLMProvider(settings)


class TestOpenAILLMProvider:
    @pytest.mark.asyncio
    async def test_sends_system_and_user_messages(
        self, provider: OpenAILLMProvider, mock_client: MagicMock
    ) -> None:
        answer = await provider.complete("Be brief.", "What is a chunk?", temperature=0.2, max_tokens=64)

        assert answer == "An answer."
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "What is a chunk?"},
        ]
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 64
        assert kwargs["extra_headers"] == {}

    @pytest.mark.asyncio
    async def test_empty_content_raises(
        self, provider: OpenAILLMProvider, mock_client: MagicMock
    ) -> None:
        mock_client.chat.completions.create.return_value = _completion(None)
        with pytest.raises(LLMError, match="empty response"):
            await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_no_choices_raises(
        self, provider: OpenAILLMProvider, mock_client: MagicMock
    ) -> None:
        mock_client.chat.completions.create.return_value = SimpleNamespace(choices=[], usage=None)
        with pytest.raises(LLMError):
            await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_api_errors_are_wrapped(
        self, provider: OpenAILLMProvider, mock_client: MagicMock
    ) -> None:
        request = httpx.Request("POST", "http://localhost:1234/v1/chat/completions")
        mock_client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)
        with pytest.raises(LLMError, match="timed out") as exc_info:
            await provider.complete("s", "u")
        assert exc_info.value.provider_name == "openai_compatible_llm"

        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)
        with pytest.raises(LLMError, match="Chat completion API error"):
            await provider.complete("s", "u")

    def test_is_available_false_when_unreachable(self, provider: OpenAILLMProvider) -> None:
        with patch(f"{_MODULE}.httpx.get", side_effect=httpx.ConnectError("refused")):
            assert provider.is_available() is False
