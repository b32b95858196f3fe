"""Grounded answer generation on top of the retrieval façade.

Retrieved chunks are folded into a short numbered context block (top five,
each clipped to 200 characters) and handed to the LLM along with the
question.  Clipping keeps prompts small enough for local models with
modest context windows.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.rag import Answer, SearchResult
from src.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)

_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer based on the provided knowledge. "
    "Be concise and accurate."
)

_MAX_CONTEXT_CHARS = 200


def build_prompt(query: str, results: Sequence[SearchResult], max_results: int = 5) -> str:
    """Render the user prompt for *query* grounded on *results*."""
    lines = ["Relevant knowledge:"]
    for number, result in enumerate(results[:max_results], start=1):
        content = result.content
        if len(content) > _MAX_CONTEXT_CHARS:
            content = content[:_MAX_CONTEXT_CHARS] + "..."
        lines.append(f"{number}. {content} (Source: {result.source})")
    lines.append(f"\nQuestion: {query}")
    lines.append("Answer:")
    return "\n".join(lines) + "\n"


class AnswerService:
    """Answers questions from stored knowledge.

    Parameters
    ----------
    retrieval:
        Search façade used by :meth:`ask`.
    llm:
        Chat-completion provider.
    temperature, max_tokens:
        Generation settings forwarded to the LLM.
    context_results:
        How many search results are folded into the prompt.
    """

    def __init__(
        self,
        retrieval: RetrievalService,
        llm: ILLMProvider,
        temperature: float = 0.0,
        max_tokens: int = 500,
        context_results: int = 5,
    ) -> None:
        self._retrieval = retrieval
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._context_results = max(1, context_results)

    async def answer(self, query: str, results: Sequence[SearchResult]) -> str:
        """Generate an answer to *query* from already-retrieved *results*.

        Raises
        ------
        LLMError
            If the completion request fails or returns nothing.
        """
        prompt = build_prompt(query, results, self._context_results)
        text = await self._llm.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        logger.info(
            "answer_generated",
            provider=self._llm.get_provider_name(),
            context_results=min(len(results), self._context_results),
            answer_chars=len(text),
        )
        return text

    async def ask(self, query: str, limit: int | None = None) -> Answer:
        """Search for *query* and answer it from the hits."""
        results = await self._retrieval.search(query, limit or self._context_results)
        text = await self.answer(query, results)
        return Answer(query=query, answer=text, sources=results)
