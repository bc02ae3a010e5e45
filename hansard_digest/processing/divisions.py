"""
Division reconciliation.

First pass fetches the divisions recorded against a debate section,
drops any that belong to a different section, and normalizes each with its
member vote lists. Second pass attaches AI-authored questions to the
normalized records once analysis has run.

Responsibility: Fetch, normalize and enrich divisions for a debate
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..adapters.hansard_adapter import HansardAdapter
from ..analysis.taxonomy import is_valid_topic
from ..exceptions import DivisionFetchError, UpstreamUnavailableError
from ..models.analysis import DivisionQuestionItem
from ..models.division import (
    CONTEXT_PLACEHOLDER,
    QUESTION_PLACEHOLDER,
    Division,
    DivisionMember,
)

logger = logging.getLogger(__name__)


def _members(raw: Optional[List[Dict[str, Any]]]) -> List[DivisionMember]:
    return [
        DivisionMember(
            member_id=member.get("MemberId"),
            display_as=member.get("DisplayAs") or "",
            party=member.get("Party"),
        )
        for member in raw or []
    ]


def _date_part(value: Any) -> Optional[str]:
    if not value:
        return None
    return str(value).split("T", 1)[0]


def normalize_division(
    entry: Dict[str, Any],
    detail: Dict[str, Any],
    debate_ext_id: str,
) -> Division:
    """Build a Division from a divisions-list entry and its detail payload."""
    return Division(
        division_id=entry["Id"],
        external_id=entry["ExternalId"],
        debate_section_ext_id=debate_ext_id,
        division_date=_date_part(entry.get("Date")),
        time=entry.get("Time"),
        has_time=bool(entry.get("DivisionHasTime")),
        ayes_count=entry.get("AyesCount") or 0,
        noes_count=entry.get("NoesCount") or 0,
        house=entry.get("House"),
        division_number=entry.get("Number"),
        text_before_vote=entry.get("TextBeforeVote"),
        text_after_vote=entry.get("TextAfterVote"),
        is_committee_division=bool(entry.get("IsCommitteeDivision")),
        aye_members=_members(detail.get("AyeMembers")),
        noe_members=_members(detail.get("NoeMembers")),
    )


class DivisionReconciler:
    """Loads divisions for a debate and merges AI content onto them."""

    def __init__(self, source: HansardAdapter):
        self.source = source

    async def fetch_divisions(self, debate_ext_id: str) -> Optional[List[Division]]:
        """
        Fetch and normalize the divisions belonging to ``debate_ext_id``.

        Returns:
            Normalized divisions, or ``None`` when the debate has none

        Raises:
            DivisionFetchError: The divisions list could not be fetched
            UpstreamUnavailableError: The records API is unreachable
        """
        try:
            listing = await self.source.fetch_divisions_list(debate_ext_id)
        except UpstreamUnavailableError:
            raise
        except httpx.HTTPError as exc:
            raise DivisionFetchError(f"Divisions list for {debate_ext_id} failed: {exc}") from exc

        owned = []
        for entry in listing:
            section = entry.get("DebateSectionExtId")
            if section != debate_ext_id:
                logger.info(
                    "Dropping division %s: belongs to section %s, not %s",
                    entry.get("ExternalId"), section, debate_ext_id
                )
                continue
            owned.append(entry)

        if not owned:
            return None

        loaded = await asyncio.gather(*(self._load(entry, debate_ext_id) for entry in owned))
        divisions = [division for division in loaded if division is not None]
        logger.debug("Loaded %s/%s divisions for %s", len(divisions), len(owned), debate_ext_id)
        return divisions or None

    async def _load(self, entry: Dict[str, Any], debate_ext_id: str) -> Optional[Division]:
        division_ext_id = entry.get("ExternalId")
        try:
            detail = await self.source.fetch_division(division_ext_id)
            return normalize_division(entry, detail or {}, debate_ext_id)
        except UpstreamUnavailableError:
            raise
        except (httpx.HTTPError, ValidationError, KeyError, TypeError) as exc:
            logger.error("Division %s dropped: %s", division_ext_id, exc)
            return None


def merge_division_questions(
    divisions: Optional[List[Division]],
    questions: Optional[Sequence[DivisionQuestionItem]],
) -> List[Division]:
    """
    Attach AI questions to divisions in place.

    Entries are matched by external id (or numeric division id) first; an
    entry at the same position is used only when its id does not point at
    another division. Anything left unmatched gets placeholder text. Never
    raises.
    """
    if not divisions:
        return []

    entries = list(questions or [])
    known_ids = set()
    for division in divisions:
        known_ids.add(division.external_id)
        known_ids.add(str(division.division_id))
    by_id: Dict[str, DivisionQuestionItem] = {}
    for entry in entries:
        if not entry.division_id:
            continue
        if entry.division_id in by_id:
            logger.warning("Ignoring repeated question for division %s", entry.division_id)
            continue
        by_id[entry.division_id] = entry

    for index, division in enumerate(divisions):
        try:
            match = by_id.get(division.external_id) or by_id.get(str(division.division_id))
            if match is None and index < len(entries):
                candidate = entries[index]
                if not candidate.division_id or candidate.division_id not in known_ids:
                    match = candidate

            if match is None:
                logger.warning(
                    "No AI question for division %s; using placeholder", division.external_id
                )
                division.apply_placeholders()
                continue

            division.ai_question = match.question.strip() or QUESTION_PLACEHOLDER
            division.ai_topic = match.topic if is_valid_topic(match.topic) else ""
            division.ai_context = match.context.strip() or CONTEXT_PLACEHOLDER
            division.ai_key_arguments = {
                "for": match.key_arguments.for_,
                "against": match.key_arguments.against,
            }
        except (AttributeError, TypeError, ValueError) as exc:
            logger.error("Division %s merge failed: %s", division.external_id, exc)
            if not division.ai_question:
                division.apply_placeholders()

    return divisions
