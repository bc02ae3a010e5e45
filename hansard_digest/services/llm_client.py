"""
Structured-output client for the LLM provider.

Calls OpenAI chat completions over httpx with a JSON-schema response
format generated from a pydantic model. Every call resolves to an
``LLMResult`` tagged as ok, schema violation or refusal; transport and HTTP
errors raise ``LLMProviderError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import settings
from ..exceptions import LLMProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LLMStatus(str, Enum):
    OK = "ok"
    SCHEMA_VIOLATION = "schema_violation"
    REFUSAL = "refusal"


@dataclass
class LLMResult(Generic[T]):
    """Outcome of one structured completion."""

    status: LLMStatus
    value: Optional[T] = None
    raw: Optional[str] = None
    error: Optional[str] = None
    refusal: Optional[str] = None

    @classmethod
    def ok(cls, value: T, raw: Optional[str] = None) -> "LLMResult[T]":
        return cls(status=LLMStatus.OK, value=value, raw=raw)

    @classmethod
    def schema_violation(cls, raw: str, error: str) -> "LLMResult[T]":
        return cls(status=LLMStatus.SCHEMA_VIOLATION, raw=raw, error=error)

    @classmethod
    def refused(cls, reason: str) -> "LLMResult[T]":
        return cls(status=LLMStatus.REFUSAL, refusal=reason)


class LLMClient:
    """Thin async client for schema-constrained chat completions."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config = settings.openai
        self.api_key = api_key or config.api_key
        self.model = model or config.model
        self.base_url = (base_url or config.base_url).rstrip("/")
        self.timeout = timeout or config.timeout_seconds
        self._client: Optional[httpx.AsyncClient] = client

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

    async def parse(
        self,
        *,
        name: str,
        system: str,
        prompt: str,
        schema: Type[T],
        temperature: float = 0.2,
    ) -> LLMResult[T]:
        """
        Request a completion constrained to ``schema``.

        Args:
            name: Schema name reported to the provider
            system: System instructions
            prompt: User content (instructions plus transcript)
            schema: Pydantic model describing the expected JSON

        Returns:
            LLMResult tagged ok, schema_violation or refusal

        Raises:
            LLMProviderError: Missing API key, transport failure, non-2xx
                or a reply body that is not a JSON object
        """
        if not self.enabled:
            raise LLMProviderError("LLM provider disabled (missing OPENAI_API_KEY)")

        payload = {
            "model": self.model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": name,
                    "schema": schema.model_json_schema(),
                    "strict": False,
                },
            },
        }

        client = self._client_instance()
        try:
            response = await client.post("/chat/completions", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "LLM API error (%s) for %s: %s",
                exc.response.status_code,
                name,
                exc.response.text[:500],
            )
            raise LLMProviderError(str(exc), status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            logger.error("LLM request failed for %s: %s", name, exc)
            raise LLMProviderError(str(exc)) from exc

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("LLM reply for %s is not JSON: %s", name, response.text[:200])
            raise LLMProviderError(f"non-JSON reply: {exc}", status_code=response.status_code) from exc
        if not isinstance(body, dict):
            raise LLMProviderError(
                f"unexpected reply type {type(body).__name__}", status_code=response.status_code
            )

        return self._interpret(name, body, schema)

    @staticmethod
    def _interpret(name: str, body: dict, schema: Type[T]) -> LLMResult[T]:
        choices = body.get("choices") or [{}]
        choice = choices[0] or {}
        message = choice.get("message") or {}

        refusal = message.get("refusal")
        if refusal:
            return LLMResult.refused(refusal)
        if choice.get("finish_reason") == "content_filter":
            return LLMResult.refused("content_filter")

        content = message.get("content") or ""
        try:
            return LLMResult.ok(schema.model_validate_json(content), raw=content)
        except ValidationError as exc:
            logger.warning("Schema violation from %s: %s", name, exc.errors()[:3])
            return LLMResult.schema_violation(raw=content, error=str(exc))
