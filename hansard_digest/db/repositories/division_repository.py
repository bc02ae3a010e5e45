"""
Repository for division (vote) records.

Responsibility: Data access layer for the ``divisions`` table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.division import QUESTION_PLACEHOLDER, Division
from ..models import DivisionModel

logger = logging.getLogger(__name__)


def division_payload(division: Division, stored_ai: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Column values for a normalized division.

    ``stored_ai`` holds AI columns already in the datastore; they win over
    placeholders or missing content on ``division``.
    """
    payload = {
        "division_id": division.division_id,
        "external_id": division.external_id,
        "debate_section_ext_id": division.debate_section_ext_id,
        "date": division.division_date,
        "time": division.time,
        "has_time": division.has_time,
        "ayes_count": division.ayes_count,
        "noes_count": division.noes_count,
        "house": division.house,
        "division_number": division.division_number,
        "text_before_vote": division.text_before_vote,
        "text_after_vote": division.text_after_vote,
        "is_committee_division": division.is_committee_division,
        "aye_members": [member.model_dump() for member in division.aye_members],
        "noe_members": [member.model_dump() for member in division.noe_members],
    }
    keep_stored = bool(stored_ai) and not division.has_ai_content and (
        division.ai_question is None or stored_ai["ai_question"] != QUESTION_PLACEHOLDER
    )
    if keep_stored:
        payload.update(stored_ai)
    else:
        payload.update(
            ai_question=division.ai_question,
            ai_topic=division.ai_topic,
            ai_context=division.ai_context,
            ai_key_arguments=division.ai_key_arguments or None,
        )
    return payload


class DivisionRepository:
    """Repository handling persistence for ``DivisionModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_debate(self, debate_ext_id: str) -> List[DivisionModel]:
        stmt = (
            select(DivisionModel)
            .where(DivisionModel.debate_section_ext_id == debate_ext_id)
            .order_by(DivisionModel.division_number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def stored_ai_content(self, external_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """AI columns already stored, keyed by division external id."""
        ids = sorted(set(external_ids))
        if not ids:
            return {}
        stmt = select(
            DivisionModel.external_id,
            DivisionModel.ai_question,
            DivisionModel.ai_topic,
            DivisionModel.ai_context,
            DivisionModel.ai_key_arguments,
        ).where(DivisionModel.external_id.in_(ids))
        result = await self.session.execute(stmt)
        return {
            row.external_id: {
                "ai_question": row.ai_question,
                "ai_topic": row.ai_topic,
                "ai_context": row.ai_context,
                "ai_key_arguments": row.ai_key_arguments,
            }
            for row in result.all()
            if row.ai_question is not None
        }

    async def upsert_many(self, divisions: Sequence[Division]) -> int:
        """
        Insert or update divisions by ``external_id``.

        AI columns are decided per division: fresh content is written,
        otherwise stored content is kept and placeholders only fill rows
        that have nothing better.
        """
        if not divisions:
            return 0

        stored = await self.stored_ai_content(division.external_id for division in divisions)
        now = datetime.utcnow()
        rows = [
            {**division_payload(division, stored.get(division.external_id)), "updated_at": now}
            for division in divisions
        ]
        bind = self.session.bind

        if bind is not None and bind.dialect.name == "postgresql":
            stmt = pg_insert(DivisionModel).values([{**row, "created_at": now} for row in rows])
            stmt = stmt.on_conflict_do_update(
                index_elements=[DivisionModel.external_id],
                set_={key: stmt.excluded[key] for key in rows[0] if key != "external_id"},
            )
            await self.session.execute(stmt)
            logger.debug("Upserted %s divisions (bulk)", len(rows))
            return len(rows)

        for row in rows:
            result = await self.session.execute(
                select(DivisionModel).where(DivisionModel.external_id == row["external_id"])
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                self.session.add(DivisionModel(**row))
            else:
                for key, value in row.items():
                    setattr(existing, key, value)
        await self.session.flush()
        logger.debug("Upserted %s divisions (sequential)", len(rows))
        return len(rows)
