import asyncio
import json

import httpx
import pytest

from hansard_digest.config import settings
from hansard_digest.exceptions import LLMProviderError
from hansard_digest.services.embedding_service import EmbeddingService

BASE_URL = "https://llm.test/v1"


def _service(handler, api_key="test-key") -> EmbeddingService:
    transport = httpx.MockTransport(handler)
    return EmbeddingService(
        api_key=api_key,
        model="test-embedding",
        base_url=BASE_URL,
        max_attempts=1,
        client=httpx.AsyncClient(base_url=BASE_URL, transport=transport),
    )


def _embed(service: EmbeddingService, texts):
    async def run():
        try:
            return await service.embed(texts)
        finally:
            await service.close()

    return asyncio.run(run())


def test_vectors_follow_input_order() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"data": [
            {"index": 1, "embedding": [0.3, 0.4]},
            {"index": 0, "embedding": [0.1, 0.2]},
        ]})

    vectors = _embed(_service(handler), ["summary", "key point"])

    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    assert requests == [{"model": "test-embedding", "input": ["summary", "key point"]}]


def test_missing_vector_is_a_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.1]}]})

    with pytest.raises(LLMProviderError, match="1 vectors for 2 inputs"):
        _embed(_service(handler), ["summary", "key point"])


def test_non_json_reply_is_a_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>Bad gateway</html>")

    with pytest.raises(LLMProviderError):
        _embed(_service(handler), ["summary"])


def test_disabled_without_api_key(monkeypatch) -> None:
    monkeypatch.setattr(settings.openai, "api_key", None)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"data": []})

    service = _service(handler, api_key=None)

    assert service.enabled is False
    with pytest.raises(LLMProviderError, match="disabled"):
        _embed(service, ["summary"])
    assert calls == []
    assert _embed(_service(handler), []) == []
