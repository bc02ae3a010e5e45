"""
Repository for member lookups.

Responsibility: Data access layer for the ``members`` table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.debate import Member
from ..models import MemberModel

logger = logging.getLogger(__name__)


class MemberRepository:
    """Repository handling reads and sync writes of ``MemberModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_ids(self, member_ids: Iterable[int]) -> List[Member]:
        ids = sorted({member_id for member_id in member_ids if member_id is not None})
        if not ids:
            return []
        stmt = select(MemberModel).where(MemberModel.member_id.in_(ids))
        result = await self.session.execute(stmt)
        return [Member.model_validate(model) for model in result.scalars().all()]

    async def upsert_many(self, members: Iterable[Member]) -> int:
        """Insert or update members by ``member_id``; a repeated id keeps its last row."""
        now = datetime.utcnow()
        rows = {member.member_id: {**member.model_dump(), "updated_at": now} for member in members}
        if not rows:
            return 0

        bind = self.session.bind
        if bind is not None and bind.dialect.name == "postgresql":
            stmt = pg_insert(MemberModel).values(list(rows.values()))
            stmt = stmt.on_conflict_do_update(
                index_elements=[MemberModel.member_id],
                set_={key: stmt.excluded[key] for key in next(iter(rows.values())) if key != "member_id"},
            )
            await self.session.execute(stmt)
            logger.debug("Upserted %s members (bulk)", len(rows))
            return len(rows)

        for member_id, row in rows.items():
            existing = await self.session.get(MemberModel, member_id)
            if existing is None:
                self.session.add(MemberModel(**row))
            else:
                for key, value in row.items():
                    setattr(existing, key, value)
        await self.session.flush()
        logger.debug("Upserted %s members (sequential)", len(rows))
        return len(rows)
