"""Integration tests for the REST API, wired with in-memory fakes."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from src.main import APP_VERSION, create_app
from src.utils.errors import LLMError, RetrievalError


@pytest.fixture
def client(components: dict) -> TestClient:
    with TestClient(create_app(components=components)) as test_client:
        yield test_client


@pytest.fixture
def seeded_dir(transcripts_dir: Path, sample_prose: str) -> Path:
    (transcripts_dir / "design-notes.txt").write_text(sample_prose, encoding="utf-8")
    (transcripts_dir / "standup.txt").write_text(
        "The release moves to Friday. Testing needs two more days.", encoding="utf-8"
    )
    return transcripts_dir


class TestHealth:
    def test_reports_collection_and_providers(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == APP_VERSION
        assert body["collection"] == "test"
        assert body["ledger_persistent"] is True
        assert body["providers"] == {
            "embedding": "fake-embedding",
            "vector_store": "memory",
            "llm": "fake-llm",
        }


class TestDocuments:
    def test_process_then_summary(self, client: TestClient, seeded_dir: Path) -> None:
        response = client.post("/api/v1/documents/process")

        assert response.status_code == 200
        report = response.json()
        assert report["documents_processed"] == 2
        assert report["failed_documents"] == 0
        assert report["points_stored"] == report["chunks_created"] > 0
        assert report["collection_created"] is True

        summary = client.get("/api/v1/documents/summary").json()
        assert summary["total_documents"] == 2
        assert summary["last_run_documents"] == 2
        assert {d["file_name"] for d in summary["all_documents"]} == {
            "design-notes.txt",
            "standup.txt",
        }

        processed = client.get("/api/v1/documents/processed").json()
        assert processed == {"files": ["design-notes.txt", "standup.txt"], "total": 2}

    def test_second_process_is_empty(self, client: TestClient, seeded_dir: Path) -> None:
        client.post("/api/v1/documents/process")
        report = client.post("/api/v1/documents/process").json()
        assert report["documents_processed"] == 0
        assert report["chunks_created"] == 0

    def test_forget_document(self, client: TestClient, seeded_dir: Path, components) -> None:
        client.post("/api/v1/documents/process")

        response = client.delete("/api/v1/documents/standup.txt")

        assert response.status_code == 200
        assert response.json() == {
            "file_name": "standup.txt",
            "was_known": True,
            "vectors_purged": True,
        }
        stored = components["vector_store"].collections["test"].values()
        assert {p.payload["source"] for p in stored} == {"design-notes"}

    def test_forget_unknown_without_purge_is_404(self, client: TestClient) -> None:
        response = client.delete("/api/v1/documents/ghost.txt", params={"purge_vectors": "false"})
        assert response.status_code == 404

    def test_store_failure_is_bad_gateway(
        self, client: TestClient, seeded_dir: Path, components
    ) -> None:
        components["vector_store"].fail_upsert = True

        response = client.post("/api/v1/documents/process")

        assert response.status_code == 502
        assert response.json()["error"] == "VectorStoreError"
        assert components["ledger"].processed_files() == []


class TestConcurrentProcessing:
    @pytest.mark.asyncio
    async def test_overlapping_process_requests_store_each_chunk_once(
        self, components: dict, seeded_dir: Path
    ) -> None:
        app = create_app(components=components)

        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                first, second = await asyncio.gather(
                    client.post("/api/v1/documents/process"),
                    client.post("/api/v1/documents/process"),
                )

        assert first.status_code == second.status_code == 200
        counts = sorted(r.json()["documents_processed"] for r in (first, second))
        assert counts == [0, 2]
        stored = components["vector_store"].collections["test"]
        texts = [p.payload["text"] for p in stored.values()]
        assert len(texts) == len(set(texts))
        assert sorted(stored) == list(range(len(stored)))


class TestSearchAndAsk:
    def test_search_returns_labelled_results(self, client: TestClient, seeded_dir: Path) -> None:
        client.post("/api/v1/documents/process")

        response = client.post("/api/v1/search", json={"query": "When is the release?", "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == "When is the release?"
        assert len(body["results"]) == 2
        assert body["results"][0]["score"] >= body["results"][1]["score"]
        assert all(r["source"].endswith("Transcript") for r in body["results"])

    def test_search_on_empty_store(self, client: TestClient) -> None:
        response = client.post("/api/v1/search", json={"query": "anything"})
        assert response.status_code == 200
        assert response.json()["results"] == []

    @pytest.mark.parametrize("payload", [{"query": ""}, {"query": "ok", "limit": 0}, {}])
    def test_search_validation(self, client: TestClient, payload: dict) -> None:
        assert client.post("/api/v1/search", json=payload).status_code == 422

    def test_blank_query_is_bad_request(self, client: TestClient) -> None:
        response = client.post("/api/v1/search", json={"query": "   "})
        assert response.status_code == 400

    def test_ask_returns_answer_and_sources(
        self, client: TestClient, seeded_dir: Path, components
    ) -> None:
        client.post("/api/v1/documents/process")

        response = client.post("/api/v1/ask", json={"question": "How are chunks built?"})

        assert response.status_code == 200
        body = response.json()
        assert body["question"] == "How are chunks built?"
        assert body["answer"] == "Chunks are packed from whole sentences."
        assert body["sources"]
        _, user_prompt = components["llm_provider"].prompts[0]
        assert "Question: How are chunks built?" in user_prompt

    def test_llm_failure_is_bad_gateway(self, client: TestClient, components) -> None:
        components["llm_provider"].complete = AsyncMock(
            side_effect=LLMError(message="model offline", provider_name="fake-llm")
        )
        response = client.post("/api/v1/ask", json={"question": "Anything?"})
        assert response.status_code == 502
        assert response.json() == {"error": "LLMError", "detail": "model offline"}

    def test_retrieval_failure_is_bad_gateway(self, client: TestClient, components) -> None:
        components["retrieval_service"].search = AsyncMock(
            side_effect=RetrievalError(message="Search failed: down")
        )
        response = client.post("/api/v1/search", json={"query": "x"})
        assert response.status_code == 502

    def test_unexpected_error_is_sanitized(self, client: TestClient, components) -> None:
        components["retrieval_service"].search = AsyncMock(side_effect=RuntimeError("secret path"))
        response = client.post("/api/v1/search", json={"query": "x"})
        assert response.status_code == 500
        assert response.json() == {"error": "InternalError", "detail": None}
