"""Qdrant vector store provider adapter.

Talks to Qdrant's REST API through an injected ``httpx.AsyncClient``.
Only the handful of endpoints the knowledge base needs are used:

    GET    /collections/{name}                  collection_exists
    PUT    /collections/{name}                  create_collection
    PUT    /collections/{name}/points?wait=true upsert_points
    POST   /collections/{name}/points/query     query
    POST   /collections/{name}/points/delete    delete_by_filter
    POST   /collections/{name}/points/count     count_points

Non-2xx answers are raised as :class:`VectorStoreError` carrying the
status code and an excerpt of the response body.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import ScoredPoint, VectorPoint
from src.utils.errors import VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

_DETAIL_EXCERPT_CHARS = 200


class QdrantVectorStoreProvider(IVectorStoreProvider):
    """Vector store provider backed by a Qdrant server.

    Parameters
    ----------
    base_url:
        Qdrant REST endpoint, e.g. ``http://localhost:6333``.
    api_key:
        Optional Qdrant API key, sent as the ``api-key`` header on every
        request.
    timeout:
        Per-request timeout in seconds.
    http_client:
        Injected client for testability and connection pooling.  When
        omitted the provider creates and owns one.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:6333",
        api_key: str = "",
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def collection_exists(self, name: str) -> bool:
        response = await self._send("GET", f"/collections/{name}", allow_status=(404,))
        return response.status_code != 404

    async def create_collection(self, name: str, vector_size: int, distance: str) -> None:
        await self._send(
            "PUT",
            f"/collections/{name}",
            json={"vectors": {"size": vector_size, "distance": distance}},
        )
        logger.info("qdrant_collection_created", collection=name, vector_size=vector_size)

    async def upsert_points(self, collection_name: str, points: Sequence[VectorPoint]) -> None:
        if not points:
            return
        body = {"points": [point.model_dump() for point in points]}
        await self._send(
            "PUT",
            f"/collections/{collection_name}/points",
            params={"wait": "true"},
            json=body,
        )
        logger.debug("qdrant_points_upserted", collection=collection_name, count=len(points))

    async def query(
        self, collection_name: str, vector: list[float], limit: int
    ) -> list[ScoredPoint]:
        response = await self._send(
            "POST",
            f"/collections/{collection_name}/points/query",
            json={"query": vector, "limit": limit, "with_payload": True},
        )
        result = self._json(response).get("result") or {}
        # /points/query wraps hits in {"points": [...]}; older servers return a list.
        hits = result.get("points", []) if isinstance(result, dict) else result
        return [
            ScoredPoint(
                id=hit.get("id"),
                score=float(hit.get("score", 0.0)),
                payload=hit.get("payload") or {},
            )
            for hit in hits
        ]

    async def delete_by_filter(self, collection_name: str, key: str, value: str) -> None:
        await self._send(
            "POST",
            f"/collections/{collection_name}/points/delete",
            params={"wait": "true"},
            json={"filter": {"must": [{"key": key, "match": {"value": value}}]}},
        )
        logger.info("qdrant_points_deleted", collection=collection_name, key=key, value=value)

    async def delete_points(self, collection_name: str, point_ids: Sequence[int | str]) -> None:
        if not point_ids:
            return
        await self._send(
            "POST",
            f"/collections/{collection_name}/points/delete",
            params={"wait": "true"},
            json={"points": list(point_ids)},
        )
        logger.info("qdrant_points_deleted", collection=collection_name, count=len(point_ids))

    async def count_points(self, collection_name: str) -> int:
        response = await self._send(
            "POST", f"/collections/{collection_name}/points/count", json={"exact": True}
        )
        result = self._json(response).get("result") or {}
        return int(result.get("count", 0))

    def get_provider_name(self) -> str:
        return "qdrant"

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["api-key"] = self._api_key
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        allow_status: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as exc:
            raise VectorStoreError(
                message=f"Timeout calling {method} {path}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise VectorStoreError(
                message=f"HTTP error calling {method} {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.is_success or response.status_code in allow_status:
            return response

        logger.error(
            "qdrant_request_failed",
            method=method,
            path=path,
            status=response.status_code,
        )
        raise VectorStoreError(
            message=f"{method} {path} failed",
            provider_name=self.get_provider_name(),
            status_code=response.status_code,
            detail=response.text[:_DETAIL_EXCERPT_CHARS],
        )

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise VectorStoreError(
                message="Response body is not valid JSON",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
                detail=response.text[:_DETAIL_EXCERPT_CHARS],
            ) from exc
        return data if isinstance(data, dict) else {}
