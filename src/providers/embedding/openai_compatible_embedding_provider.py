"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`
against any server exposing ``/v1/embeddings``: LM Studio, Ollama, or a
hosted gateway such as OpenRouter.

Asymmetric embedding models (nomic-embed-text and friends) expect an
instruction prefix that differs between stored documents and search
queries; the prefix for each :class:`EmbeddingMode` comes from settings.

Gateway attribution headers (``HTTP-Referer``, ``X-Title``) are built per
request and passed as ``extra_headers``.  The shared client is never
mutated after construction, so concurrent requests cannot leak headers
into each other.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import EmbeddingMode, IEmbeddingProvider
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompatibleEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Produces vectors of ``settings.embedding_dimension`` (768 for
    nomic-embed-text) and rejects any response with a different length.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.embedding_base_url.rstrip("/")
        self._model = settings.embedding_model
        self._dimension = settings.embedding_dimension
        self._prefixes = {
            EmbeddingMode.DOCUMENT: settings.embedding_document_prefix,
            EmbeddingMode.QUERY: settings.embedding_query_prefix,
        }
        self._client = openai.AsyncOpenAI(
            base_url=self._base_url,
            # Local servers accept any key; the SDK insists on a non-empty one.
            api_key=settings.embedding_api_key or "not-needed",
            timeout=openai.Timeout(settings.request_timeout, connect=5.0),
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, text: str, mode: EmbeddingMode) -> list[float]:
        """Embed *text* with the instruction prefix for *mode*."""
        prefixed = f"{self._prefixes[mode]}{text}"
        try:
            response = await self._client.embeddings.create(
                input=prefixed,
                model=self._model,
                extra_headers=self._request_headers(),
            )
        except openai.APITimeoutError as exc:
            raise EmbeddingError(
                message=f"Embedding request timed out after {self._settings.request_timeout}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"Embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise EmbeddingError(
                message="Embedding API returned no data",
                provider_name=self.get_provider_name(),
            )
        vector = list(response.data[0].embedding)
        if len(vector) != self._dimension:
            raise EmbeddingError(
                message=(
                    f"Expected a {self._dimension}-dimensional embedding from "
                    f"{self._model}, got {len(vector)}"
                ),
                provider_name=self.get_provider_name(),
            )
        logger.debug("embedding_created", model=self._model, mode=mode.value, chars=len(text))
        return vector

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "openai_compatible_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if the embedding server answers ``/models``."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/models", timeout=3.0)
            return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _request_headers(self) -> dict[str, str]:
        """Build the per-request attribution headers."""
        headers: dict[str, str] = {}
        if self._settings.http_referer:
            headers["HTTP-Referer"] = self._settings.http_referer
        if self._settings.app_title:
            headers["X-Title"] = self._settings.app_title
        return headers
