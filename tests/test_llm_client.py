import asyncio
import json

import httpx
import pytest

from hansard_digest.analysis.generators import AnalysisContext, generate_summary
from hansard_digest.exceptions import LLMProviderError
from hansard_digest.models.analysis import AISummary, SummaryResponse
from hansard_digest.services.llm_client import LLMClient, LLMStatus

from helpers import SUMMARY, make_debate

BASE_URL = "https://llm.test/v1"


def _client(handler) -> LLMClient:
    transport = httpx.MockTransport(handler)
    return LLMClient(
        api_key="test-key",
        base_url=BASE_URL,
        client=httpx.AsyncClient(base_url=BASE_URL, transport=transport),
    )


def _completion(message: dict, finish_reason: str = "stop") -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": message, "finish_reason": finish_reason}]})


def _parse(llm: LLMClient):
    async def run():
        try:
            return await llm.parse(name="summary", system="system", prompt="prompt", schema=SummaryResponse)
        finally:
            await llm.close()

    return asyncio.run(run())


def test_structured_reply_is_validated() -> None:
    llm = _client(lambda request: _completion({"content": json.dumps(SUMMARY)}))

    result = _parse(llm)

    assert result.status == LLMStatus.OK
    assert result.value.title == "MPs back rural buses"


def test_refusal_is_reported() -> None:
    llm = _client(lambda request: _completion({"content": None, "refusal": "I can't help with that"}))

    result = _parse(llm)

    assert result.status == LLMStatus.REFUSAL
    assert result.refusal == "I can't help with that"


def test_gateway_page_is_a_provider_error() -> None:
    llm = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))

    with pytest.raises(LLMProviderError):
        _parse(llm)


def test_non_object_body_is_a_provider_error() -> None:
    llm = _client(lambda request: httpx.Response(200, json=["not", "an", "object"]))

    with pytest.raises(LLMProviderError):
        _parse(llm)


def test_summary_falls_back_to_defaults_on_gateway_page() -> None:
    llm = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    ctx = AnalysisContext(debate=make_debate(), debate_type="Debated Motion", transcript="Debate Transcript:")

    async def run():
        try:
            return await generate_summary(llm, ctx)
        finally:
            await llm.close()

    assert asyncio.run(run()) == AISummary()
