"""Shared pytest fixtures for the knowledge-assistant test suite."""

from __future__ import annotations

import hashlib
import math
from pathlib import Path
from typing import Sequence

import pytest

from src.interfaces.embedding_provider import EmbeddingMode, IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import ScoredPoint, VectorPoint
from src.models.sources import DocumentSourceConfig
from src.providers.storage.json_file_store import JsonFileStore
from src.services.answer_service import AnswerService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.processing_ledger import ProcessingLedger
from src.services.ingestion.source_processors import build_extractors
from src.services.retrieval_service import RetrievalService
from src.utils.errors import EmbeddingError, VectorStoreError

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings derived from a SHA-256 of mode + text."""

    def __init__(self, dimension: int = 8, fail_on: str | None = None) -> None:
        self._dimension = dimension
        self.fail_on = fail_on
        self.calls: list[tuple[str, EmbeddingMode]] = []

    async def embed(self, text: str, mode: EmbeddingMode) -> list[float]:
        self.calls.append((text, mode))
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError(message="embedding server refused input", provider_name="fake")
        digest = hashlib.sha256(f"{mode.value}:{text}".encode("utf-8")).digest()
        return [digest[i % len(digest)] / 255.0 for i in range(self._dimension)]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


class InMemoryVectorStore(IVectorStoreProvider):
    """Dict-backed vector store ranking by cosine similarity."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[int | str, VectorPoint]] = {}
        self.fail_upsert = False
        # Number of upsert calls allowed to succeed before the rest fail.
        self.fail_upsert_after: int | None = None
        self.upsert_calls = 0
        self.fail_delete = False
        self.closed = False

    async def collection_exists(self, name: str) -> bool:
        return name in self.collections

    async def create_collection(self, name: str, vector_size: int, distance: str) -> None:
        self.collections.setdefault(name, {})

    async def upsert_points(self, collection_name: str, points: Sequence[VectorPoint]) -> None:
        self.upsert_calls += 1
        over_limit = (
            self.fail_upsert_after is not None and self.upsert_calls > self.fail_upsert_after
        )
        if self.fail_upsert or over_limit:
            raise VectorStoreError(
                message="upsert rejected", provider_name="memory", status_code=500
            )
        collection = self.collections.setdefault(collection_name, {})
        for point in points:
            collection[point.id] = point

    async def query(
        self, collection_name: str, vector: list[float], limit: int
    ) -> list[ScoredPoint]:
        points = self.collections.get(collection_name, {}).values()
        scored = [
            ScoredPoint(id=p.id, score=_cosine(vector, p.vector), payload=p.payload)
            for p in points
        ]
        scored.sort(key=lambda p: p.score, reverse=True)
        return scored[:limit]

    async def delete_by_filter(self, collection_name: str, key: str, value: str) -> None:
        if self.fail_delete:
            raise VectorStoreError(
                message="delete rejected", provider_name="memory", status_code=500
            )
        collection = self.collections.get(collection_name, {})
        for point_id in [pid for pid, p in collection.items() if p.payload.get(key) == value]:
            del collection[point_id]

    async def delete_points(self, collection_name: str, point_ids: Sequence[int | str]) -> None:
        collection = self.collections.get(collection_name, {})
        for point_id in point_ids:
            collection.pop(point_id, None)

    async def count_points(self, collection_name: str) -> int:
        return len(self.collections.get(collection_name, {}))

    def get_provider_name(self) -> str:
        return "memory"

    async def close(self) -> None:
        self.closed = True


class FakeLLMProvider(ILLMProvider):
    """Records prompts and returns a canned answer."""

    def __init__(self, answer: str = "Chunks are packed from whole sentences.") -> None:
        self._answer = answer
        self.prompts: list[tuple[str, str]] = []

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 500,
    ) -> str:
        self.prompts.append((system_prompt, user_prompt))
        return self._answer

    def get_provider_name(self) -> str:
        return "fake-llm"

    def is_available(self) -> bool:
        return True


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def memory_vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def fake_llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def ledger(tmp_path: Path) -> ProcessingLedger:
    """A ledger persisted under a per-test metadata directory."""
    return ProcessingLedger(JsonFileStore(tmp_path / "metadata"))


@pytest.fixture
def transcripts_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "transcripts"
    directory.mkdir()
    return directory


@pytest.fixture
def transcript_source(transcripts_dir: Path) -> DocumentSourceConfig:
    return DocumentSourceConfig(
        document_type="transcript",
        display_name="Transcript",
        path=str(transcripts_dir),
        extensions=[".txt"],
        recursive=False,
        max_chunk_chars=500,
    )


@pytest.fixture
def long_transcript_text() -> str:
    """About 1200 characters of short sentences."""
    sentence = "We reviewed the deployment checklist and agreed on the next steps. "
    return (sentence * 18).strip()


@pytest.fixture
def sample_prose() -> str:
    return (
        "Chunking keeps sentences together. Each chunk stays under its budget. "
        "Pages are attributed by locating the chunk text. "
        "When that fails, a proportional estimate is used instead."
    )


@pytest.fixture
def components(
    fake_embedding_provider: FakeEmbeddingProvider,
    memory_vector_store: InMemoryVectorStore,
    fake_llm: FakeLLMProvider,
    ledger: ProcessingLedger,
    transcript_source: DocumentSourceConfig,
) -> dict:
    """The same component dict ``build_components`` returns, wired with fakes."""
    retrieval = RetrievalService(
        fake_embedding_provider, memory_vector_store, collection_name="test", vector_size=8
    )
    ingestion = IngestionService(
        sources=[transcript_source],
        extractors=build_extractors(),
        chunker=TextChunker(),
        embedding_provider=fake_embedding_provider,
        ledger=ledger,
        retrieval=retrieval,
    )
    return {
        "embedding_provider": fake_embedding_provider,
        "vector_store": memory_vector_store,
        "llm_provider": fake_llm,
        "ledger": ledger,
        "retrieval_service": retrieval,
        "ingestion_service": ingestion,
        "answer_service": AnswerService(retrieval, fake_llm),
    }
