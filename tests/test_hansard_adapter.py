import asyncio
from datetime import date

import httpx

from hansard_digest.adapters.hansard_adapter import HansardAdapter
from hansard_digest.models.adapter_models import AdapterStatus

BASE_URL = "https://hansard.test/api"

TREE = [
    {
        "Id": 1,
        "ParentId": None,
        "ExternalId": "SECTION-1",
        "SectionTreeItems": [
            {"Id": 2, "ParentId": 1, "ExternalId": "DEB-1", "SectionTreeItems": []},
            {"Id": 3, "ParentId": 1, "ExternalId": "MISSING-1", "SectionTreeItems": []},
        ],
    }
]


def _debate_payload(ext_id: str) -> dict:
    return {
        "Overview": {"ExtId": ext_id, "Title": "Local Bus Services", "Date": "2024-03-05T00:00:00", "House": "Commons"},
        "Items": [{"ItemType": "Contribution", "MemberId": 101, "Value": "<p>Buses.</p>"}],
        "Navigator": [],
    }


def handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path.replace("/api", "", 1)
    if path == "/overview/lastsittingdate.json":
        day = "2024-03-05T00:00:00" if request.url.params["house"] == "Commons" else "2024-03-04T00:00:00"
        return httpx.Response(200, json=day)
    if path == "/overview/sectionsforday.json":
        return httpx.Response(200, json=["Commons Chamber"])
    if path == "/overview/sectiontrees.json":
        return httpx.Response(200, json=TREE)
    if path == "/debates/debate/DEB-1.json":
        return httpx.Response(200, json=_debate_payload("DEB-1"))
    if path == "/debates/divisions/DEB-1.json":
        return httpx.Response(200, json=[{"ExternalId": "DIV-1", "DebateSectionExtId": "DEB-1"}])
    if path == "/search/members.json":
        return httpx.Response(200, json={
            "TotalResultCount": 2,
            "Results": [
                {"MemberId": 101, "DisplayAs": "Alice Smith", "Party": "Labour", "MemberFrom": "Leeds North", "House": "Commons"},
                {"DisplayAs": "No Id"},
            ],
        })
    return httpx.Response(404, json={"message": "not found"})


def _adapter() -> HansardAdapter:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HansardAdapter(base_url=BASE_URL, rate_limit_per_second=100, client=client)


def test_fetch_collects_debates_and_reports_failures() -> None:
    async def run():
        adapter = _adapter()
        try:
            return await adapter.fetch(date(2024, 3, 5), house="Commons")
        finally:
            await adapter.close()

    response = asyncio.run(run())

    assert response.status == AdapterStatus.PARTIAL_SUCCESS
    assert [debate.ext_id for debate in response.data] == ["DEB-1"]
    assert response.data[0].contributions[0].member_id == 101
    assert len(response.errors) == 1


def test_last_sitting_date_is_latest_of_both_houses() -> None:
    async def run():
        adapter = _adapter()
        try:
            return await adapter.fetch_last_sitting_date()
        finally:
            await adapter.close()

    assert asyncio.run(run()) == date(2024, 3, 5)


def test_divisions_list() -> None:
    async def run():
        adapter = _adapter()
        try:
            return await adapter.fetch_divisions_list("DEB-1")
        finally:
            await adapter.close()

    assert asyncio.run(run())[0]["ExternalId"] == "DIV-1"


def test_section_tree_walk_skips_root_headers() -> None:
    assert HansardAdapter._debate_ext_ids(TREE) == ["DEB-1", "MISSING-1"]


def test_member_search_page() -> None:
    requests = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def run():
        client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(recording))
        adapter = HansardAdapter(base_url=BASE_URL, rate_limit_per_second=100, client=client)
        try:
            return await adapter.search_members(skip=50, take=50)
        finally:
            await adapter.close()

    page = asyncio.run(run())

    assert page.rows == 2
    assert page.total == 2
    assert [(m.member_id, m.party, m.house) for m in page.members] == [(101, "Labour", "Commons")]
    assert requests[0].url.params["skip"] == "50"
    assert requests[0].url.params["includeFormer"] == "true"
