"""
Hansard Adapter for the UK Parliament Hansard API.

Discovers debates for a sitting day, fetches full debate content and the
divisions recorded against a debate section.

Responsibility: Fetch debates and divisions from hansard-api.parliament.uk
"""
import asyncio
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError

from ..config import settings
from ..exceptions import UpstreamUnavailableError
from ..models.adapter_models import AdapterError, AdapterResponse
from ..models.debate import MemberPage, MemberSearchResult, RawDebate
from ..utils.retry import http_retrying
from .base_adapter import BaseAdapter

HOUSES = ("Commons", "Lords")

# Hansard answers bursts with 400 as well as 429
THROTTLE_STATUSES = (400, 429)


def _parse_api_date(value: Any) -> date:
    text = str(value).strip().strip('"')
    return datetime.fromisoformat(text.split("T", 1)[0]).date()


class HansardAdapter(BaseAdapter[RawDebate]):
    """Adapter for the Hansard records API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        rate_limit_per_second: Optional[float] = None,
        timeout_seconds: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        config = settings.hansard
        super().__init__(
            source_name="hansard",
            rate_limit_per_second=rate_limit_per_second or config.rate_limit_per_second,
            max_retries=config.max_retries,
            timeout_seconds=timeout_seconds or config.timeout_seconds,
        )
        self.base_url = (base_url or config.base_url).rstrip("/")
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                headers={"Accept": "application/json"},
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            async for attempt in http_retrying(
                self.max_retries, throttle_statuses=THROTTLE_STATUSES, log=self.logger
            ):
                with attempt:
                    await self.rate_limiter.acquire()
                    response = await self.client.get(path, params=params)
                    response.raise_for_status()
                    return response.json()
        except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
            raise UpstreamUnavailableError("hansard", str(exc)) from exc

    # ------------------------------------------------------------------
    # Overview endpoints
    # ------------------------------------------------------------------

    async def fetch_last_sitting_date(self, house: Optional[str] = None) -> date:
        """Most recent sitting day for ``house``, or the later of both houses."""
        if house:
            payload = await self._get_json("/overview/lastsittingdate.json", {"house": house})
            return _parse_api_date(payload)

        dates = await asyncio.gather(*(self.fetch_last_sitting_date(h) for h in HOUSES))
        return max(dates)

    async def fetch_sections_for_day(self, sitting_date: date, house: str) -> List[str]:
        payload = await self._get_json(
            "/overview/sectionsforday.json",
            {"date": sitting_date.isoformat(), "house": house},
        )
        return [str(section) for section in payload or []]

    async def fetch_section_tree(self, sitting_date: date, house: str, section: str) -> List[Dict[str, Any]]:
        payload = await self._get_json(
            "/overview/sectiontrees.json",
            {"house": house, "date": sitting_date.isoformat(), "section": section},
        )
        return payload if isinstance(payload, list) else []

    # ------------------------------------------------------------------
    # Debate and division endpoints
    # ------------------------------------------------------------------

    async def fetch_debate(self, ext_id: str) -> RawDebate:
        payload = await self._get_json(f"/debates/debate/{ext_id}.json")
        return self.normalize(payload)

    async def fetch_divisions_list(self, ext_id: str) -> List[Dict[str, Any]]:
        payload = await self._get_json(f"/debates/divisions/{ext_id}.json")
        return payload if isinstance(payload, list) else []

    async def fetch_division(self, division_ext_id: str) -> Dict[str, Any]:
        return await self._get_json(
            f"/debates/division/{division_ext_id}.json",
            {"isEvel": "false"},
        )

    # ------------------------------------------------------------------
    # Member search
    # ------------------------------------------------------------------

    async def search_members(self, skip: int = 0, take: int = 50) -> MemberPage:
        """One page of current and former members of both houses."""
        payload = await self._get_json(
            "/search/members.json",
            {"includeCurrent": "true", "includeFormer": "true", "skip": skip, "take": take},
        )
        if not isinstance(payload, dict):
            return MemberPage()

        rows = payload.get("Results") or []
        page = MemberPage(rows=len(rows), total=payload.get("TotalResultCount"))
        for raw in rows:
            try:
                page.members.append(MemberSearchResult.model_validate(raw).to_member())
            except ValidationError as exc:
                self.logger.warning("Skipping member search row: %s", exc)
        return page

    def normalize(self, raw_data: Any) -> RawDebate:
        if not isinstance(raw_data, dict) or "Overview" not in raw_data:
            raise ValueError("debate payload missing Overview")
        return RawDebate.model_validate(raw_data)

    @staticmethod
    def _debate_ext_ids(items: Iterable[Dict[str, Any]]) -> List[str]:
        """Walk a section tree and collect debate external ids in order."""
        found: List[str] = []

        def walk(nodes: Iterable[Dict[str, Any]]) -> None:
            for node in nodes or []:
                ext_id = node.get("ExternalId")
                # Root nodes are section headers, not debates
                if node.get("ParentId") is not None and ext_id and ext_id not in found:
                    found.append(ext_id)
                walk(node.get("SectionTreeItems") or [])

        walk(items)
        return found

    async def fetch(
        self,
        sitting_date: date,
        house: str = "Commons",
        **kwargs: Any,
    ) -> AdapterResponse[RawDebate]:
        """
        Fetch every debate held in ``house`` on ``sitting_date``.

        Individual section or debate failures are returned as errors next to
        the debates that loaded; an unreachable API yields a
        ``SOURCE_UNAVAILABLE`` response.
        """
        start_time = datetime.utcnow()
        self.logger.info("Fetching %s debates for %s", house, sitting_date)

        try:
            sections = await self.fetch_sections_for_day(sitting_date, house)
        except UpstreamUnavailableError as exc:
            return self._outage(exc, start_time, retryable=True)
        except httpx.HTTPError as exc:
            return self._outage(exc, start_time, retryable=False)

        debates: List[RawDebate] = []
        errors: List[AdapterError] = []

        for section in sections:
            try:
                tree = await self.fetch_section_tree(sitting_date, house, section)
            except httpx.HTTPError as exc:
                self.logger.error("Section tree %s/%s failed: %s", house, section, exc)
                errors.append(self._error(exc, retryable=True, section=section))
                continue

            for ext_id in self._debate_ext_ids(tree):
                try:
                    debates.append(await self.fetch_debate(ext_id))
                except (httpx.HTTPError, ValidationError, ValueError) as exc:
                    self.logger.error("Debate %s failed to load: %s", ext_id, exc)
                    errors.append(self._error(exc, section=section, ext_id=ext_id))

        self.logger.info(
            "Fetched %s %s debates for %s (%s errors)",
            len(debates), house, sitting_date, len(errors)
        )
        return self._loaded(debates, errors, start_time)
