"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
Pointing ``llm_base_url`` at LM Studio (default), Ollama, OpenRouter or
OpenAI itself lets one adapter talk to all of them.

Attribution headers for hosted gateways are passed per request through
``extra_headers``; the shared client is never mutated.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.llm_base_url.rstrip("/")
        self._model = settings.llm_model
        self._timeout = settings.request_timeout
        self._client = openai.AsyncOpenAI(
            base_url=self._base_url,
            api_key=settings.llm_api_key or "not-needed",
            timeout=openai.Timeout(self._timeout, connect=5.0),
            max_retries=0,
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 500,
    ) -> str:
        """Generate a text completion via the chat-completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                extra_headers=self._request_headers(),
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._model} timed out after {self._timeout}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"Chat completion API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices or response.choices[0].message.content is None:
            raise LLMError(
                message=f"{self._model} returned an empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "llm_completion",
            model=self._model,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return response.choices[0].message.content.strip()

    def get_provider_name(self) -> str:
        return "openai_compatible_llm"

    def is_available(self) -> bool:
        """Return ``True`` if the chat server answers ``/models``."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/models", timeout=3.0)
            return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    def _request_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._settings.http_referer:
            headers["HTTP-Referer"] = self._settings.http_referer
        if self._settings.app_title:
            headers["X-Title"] = self._settings.app_title
        return headers
