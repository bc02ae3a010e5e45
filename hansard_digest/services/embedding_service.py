"""
Embeddings for debate chunks.

Calls the provider's ``/embeddings`` endpoint over httpx, one request per
debate with every chunk as an input. Provider trouble, including a reply
whose vectors do not line up with the inputs, raises ``LLMProviderError``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import settings
from ..exceptions import LLMProviderError
from ..utils.retry import http_retrying

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Generate embedding vectors for chunk texts."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config = settings.openai
        self.api_key = api_key or config.api_key
        self.model = model or config.embedding_model
        self.base_url = (base_url or config.base_url).rstrip("/")
        self.timeout = timeout or config.timeout_seconds
        self.max_attempts = max_attempts
        self._client = client

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
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _post(self, texts: Sequence[str]) -> Dict[str, Any]:
        client = self._client_instance()
        try:
            async for attempt in http_retrying(self.max_attempts, log=logger):
                with attempt:
                    response = await client.post(
                        "/embeddings", json={"model": self.model, "input": list(texts)}
                    )
                    response.raise_for_status()
                    body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Embedding API error (%s): %s", exc.response.status_code, exc.response.text[:500])
            raise LLMProviderError(str(exc), status_code=exc.response.status_code) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Embedding request failed: %s", exc)
            raise LLMProviderError(str(exc)) from exc

        if not isinstance(body, dict):
            raise LLMProviderError(f"unexpected embedding reply type {type(body).__name__}")
        return body

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        One vector per text, in input order.

        Raises:
            LLMProviderError: Missing API key, transport failure, non-2xx,
                or a reply missing a vector for any input
        """
        if not texts:
            return []
        if not self.enabled:
            raise LLMProviderError("Embedding provider disabled (missing OPENAI_API_KEY)")

        body = await self._post(texts)
        vectors: Dict[int, List[float]] = {}
        for position, item in enumerate(body.get("data") or []):
            if not isinstance(item, dict):
                continue
            vector = item.get("embedding")
            if isinstance(vector, list) and vector:
                vectors[item.get("index", position)] = vector

        missing = [index for index in range(len(texts)) if index not in vectors]
        if missing:
            raise LLMProviderError(
                f"Embedding reply has {len(vectors)} vectors for {len(texts)} inputs (missing {missing[:5]})"
            )
        return [vectors[index] for index in range(len(texts))]
