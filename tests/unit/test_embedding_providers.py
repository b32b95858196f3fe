"""Unit tests for the OpenAI-compatible and caching embedding providers."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.interfaces.embedding_provider import EmbeddingMode
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.embedding.caching_embedding_provider import CachingEmbeddingProvider
from src.providers.embedding.openai_compatible_embedding_provider import (
    OpenAICompatibleEmbeddingProvider,
)
from src.utils.errors import EmbeddingError

_MODULE = "src.providers.embedding.openai_compatible_embedding_provider"
_REQUEST = httpx.Request("POST", "http://localhost:1234/v1/embeddings")


def _settings(**overrides) -> Settings:
    values = {
        "embedding_base_url": "http://localhost:1234/v1/",
        "embedding_model": "nomic-test",
        "embedding_dimension": 3,
        "http_referer": "https://example.org",
        "app_title": "Test Assistant",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _response(vector: list[float]) -> SimpleNamespace:
    return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.embeddings.create = AsyncMock(return_value=_response([0.1, 0.2, 0.3]))
    return client


@pytest.fixture
def provider(mock_client: MagicMock) -> OpenAICompatibleEmbeddingProvider:
    with patch(f"{_MODULE}.openai.AsyncOpenAI", return_value=mock_client):
        return OpenAICompatibleEmbeddingProvider(_settings())


# ---------------------------------------------------------------------------
# OpenAICompatibleEmbeddingProvider
# ---------------------------------------------------------------------------


class TestOpenAICompatibleEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_document_mode_uses_document_prefix(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        vector = await provider.embed("hello", EmbeddingMode.DOCUMENT)

        assert vector == [0.1, 0.2, 0.3]
        kwargs = mock_client.embeddings.create.call_args.kwargs
        assert kwargs["input"] == "search_document: hello"
        assert kwargs["model"] == "nomic-test"

    @pytest.mark.asyncio
    async def test_query_mode_uses_query_prefix(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        await provider.embed("what is chunking?", EmbeddingMode.QUERY)
        kwargs = mock_client.embeddings.create.call_args.kwargs
        assert kwargs["input"] == "search_query: what is chunking?"

    @pytest.mark.asyncio
    async def test_attribution_headers_are_sent_per_request(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        await provider.embed("x", EmbeddingMode.DOCUMENT)
        headers = mock_client.embeddings.create.call_args.kwargs["extra_headers"]
        assert headers == {"HTTP-Referer": "https://example.org", "X-Title": "Test Assistant"}

    def test_client_built_from_settings(self, mock_client: MagicMock) -> None:
        with patch(f"{_MODULE}.openai.AsyncOpenAI", return_value=mock_client) as factory:
            OpenAICompatibleEmbeddingProvider(_settings(embedding_api_key=""))
        kwargs = factory.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:1234/v1"
        assert kwargs["api_key"] == "not-needed"
        assert kwargs["max_retries"] == 0

    @pytest.mark.asyncio
    async def test_wrong_dimension_is_rejected(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        mock_client.embeddings.create.return_value = _response([0.1, 0.2])
        with pytest.raises(EmbeddingError, match="3-dimensional"):
            await provider.embed("x", EmbeddingMode.DOCUMENT)

    @pytest.mark.asyncio
    async def test_empty_data_is_rejected(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        mock_client.embeddings.create.return_value = SimpleNamespace(data=[])
        with pytest.raises(EmbeddingError, match="no data"):
            await provider.embed("x", EmbeddingMode.DOCUMENT)

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        mock_client.embeddings.create.side_effect = openai.APITimeoutError(request=_REQUEST)
        with pytest.raises(EmbeddingError, match="timed out") as exc_info:
            await provider.embed("x", EmbeddingMode.DOCUMENT)
        assert exc_info.value.provider_name == "openai_compatible_embedding"

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(
        self, provider: OpenAICompatibleEmbeddingProvider, mock_client: MagicMock
    ) -> None:
        mock_client.embeddings.create.side_effect = openai.APIConnectionError(request=_REQUEST)
        with pytest.raises(EmbeddingError, match="Embedding API error"):
            await provider.embed("x", EmbeddingMode.DOCUMENT)

    def test_dimension_and_name(self, provider: OpenAICompatibleEmbeddingProvider) -> None:
        assert provider.get_dimension() == 3
        assert provider.get_provider_name() == "openai_compatible_embedding"

    def test_is_available_checks_models_endpoint(
        self, provider: OpenAICompatibleEmbeddingProvider
    ) -> None:
        with patch(f"{_MODULE}.httpx.get", return_value=httpx.Response(200)) as get:
            assert provider.is_available() is True
        assert get.call_args.args[0] == "http://localhost:1234/v1/models"

        with patch(f"{_MODULE}.httpx.get", side_effect=httpx.ConnectError("refused")):
            assert provider.is_available() is False


# ---------------------------------------------------------------------------
# CachingEmbeddingProvider
# ---------------------------------------------------------------------------


class TestCachingEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, fake_embedding_provider) -> None:
        cache = MemoryCacheProvider(max_size=10, ttl=60)
        provider = CachingEmbeddingProvider(fake_embedding_provider, cache)

        first = await provider.embed("same text", EmbeddingMode.QUERY)
        second = await provider.embed("same text", EmbeddingMode.QUERY)

        assert first == second
        assert len(fake_embedding_provider.calls) == 1
        assert cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_modes_are_cached_separately(self, fake_embedding_provider) -> None:
        provider = CachingEmbeddingProvider(fake_embedding_provider, MemoryCacheProvider())

        document = await provider.embed("text", EmbeddingMode.DOCUMENT)
        query = await provider.embed("text", EmbeddingMode.QUERY)

        assert document != query
        assert len(fake_embedding_provider.calls) == 2

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, fake_embedding_provider) -> None:
        inner = type(fake_embedding_provider)(fail_on="bad")
        provider = CachingEmbeddingProvider(inner, MemoryCacheProvider())

        for _ in range(2):
            with pytest.raises(EmbeddingError):
                await provider.embed("bad input", EmbeddingMode.DOCUMENT)
        assert len(inner.calls) == 2

    def test_delegates_metadata(self, fake_embedding_provider) -> None:
        provider = CachingEmbeddingProvider(fake_embedding_provider, MemoryCacheProvider())
        assert provider.get_dimension() == 8
        assert provider.get_provider_name() == "cached_fake-embedding"
        assert provider.is_available() is True

    def test_cache_key_is_stable(self) -> None:
        key = CachingEmbeddingProvider.cache_key("abc", EmbeddingMode.QUERY)
        assert key == CachingEmbeddingProvider.cache_key("abc", EmbeddingMode.QUERY)
        assert key.startswith("embedding_query_")
