"""
Client for the OpenAI file search endpoints.

Files, vector stores, file batches and assistants, all under the
``assistants=v2`` beta header. Calls are retried with backoff on timeouts,
429 and 5xx; anything that still fails surfaces as ``VectorIngestError``.

Responsibility: HTTP access to the semantic index provider
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..exceptions import VectorIngestError
from ..utils.retry import http_retrying

logger = logging.getLogger(__name__)

ASSISTANT_INSTRUCTIONS = (
    "You answer questions about UK parliamentary debates using only the "
    "attached debate files. Cite debate titles and dates."
)


def object_id(body: Dict[str, Any], kind: str) -> str:
    """The ``id`` of a created provider object; a reply without one is an ingest failure."""
    value = body.get("id") if isinstance(body, dict) else None
    if not value:
        raise VectorIngestError(f"{kind} reply has no id")
    return value


class IndexClient:
    """Async wrapper around the index provider's REST API."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        assistant_model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: int = 3,
    ) -> None:
        config = settings.openai
        self.api_key = api_key or config.api_key
        self.base_url = (base_url or config.base_url).rstrip("/")
        self.assistant_model = assistant_model or config.assistant_model
        self.timeout = timeout or config.timeout_seconds
        self.max_attempts = max_attempts
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "OpenAI-Beta": "assistants=v2",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        client = self._client_instance()
        try:
            async for attempt in http_retrying(self.max_attempts, log=logger):
                with attempt:
                    response = await client.request(method, path, **kwargs)
                    response.raise_for_status()
                    return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Index provider call %s %s failed: %s", method, path, exc)
            raise VectorIngestError(f"{method} {path} failed: {exc}") from exc

    async def upload_file(self, filename: str, content: str) -> str:
        body = await self._request(
            "POST",
            "/files",
            data={"purpose": "assistants"},
            files={"file": (filename, content.encode("utf-8"), "text/plain")},
        )
        return object_id(body, "file upload")

    async def create_vector_store(self, name: str) -> str:
        body = await self._request("POST", "/vector_stores", json={"name": name})
        store_id = object_id(body, "vector store")
        logger.info("Created vector store %s (%s)", name, store_id)
        return store_id

    async def create_assistant(self, name: str, vector_store_id: str) -> str:
        body = await self._request(
            "POST",
            "/assistants",
            json={
                "name": name,
                "model": self.assistant_model,
                "instructions": ASSISTANT_INSTRUCTIONS,
                "tools": [{"type": "file_search"}],
                "tool_resources": {"file_search": {"vector_store_ids": [vector_store_id]}},
            },
        )
        assistant_id = object_id(body, "assistant")
        logger.info("Created assistant %s for store %s", assistant_id, vector_store_id)
        return assistant_id

    async def create_file_batch(self, vector_store_id: str, file_ids: List[str]) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/vector_stores/{vector_store_id}/file_batches",
            json={"file_ids": file_ids},
        )

    async def retrieve_file_batch(self, vector_store_id: str, batch_id: str) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/vector_stores/{vector_store_id}/file_batches/{batch_id}"
        )
