"""
Repository for embedded debate chunks.

Responsibility: Data access layer for the ``debate_chunks`` table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Sequence

from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.vector import DebateChunk
from ..models import DebateChunkModel

logger = logging.getLogger(__name__)


class DebateChunkRepository:
    """Repository handling persistence for ``DebateChunkModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_debate(self, debate_ext_id: str) -> List[DebateChunk]:
        stmt = (
            select(DebateChunkModel)
            .where(DebateChunkModel.debate_ext_id == debate_ext_id)
            .order_by(DebateChunkModel.chunk_index)
        )
        result = await self.session.execute(stmt)
        return [DebateChunk.model_validate(model) for model in result.scalars().all()]

    async def replace_for_debate(self, debate_ext_id: str, chunks: Sequence[DebateChunk]) -> int:
        """
        Upsert ``chunks`` by (debate, position) and drop positions past the end.

        A debate whose content shrank since the last run keeps no stale chunks.
        """
        now = datetime.utcnow()
        rows = [
            {**chunk.model_dump(), "debate_ext_id": debate_ext_id, "updated_at": now}
            for chunk in chunks
        ]

        await self.session.execute(
            delete(DebateChunkModel).where(
                and_(
                    DebateChunkModel.debate_ext_id == debate_ext_id,
                    DebateChunkModel.chunk_index >= len(rows),
                )
            )
        )
        if not rows:
            return 0

        bind = self.session.bind
        if bind is not None and bind.dialect.name == "postgresql":
            stmt = pg_insert(DebateChunkModel).values(rows)
            stmt = stmt.on_conflict_do_update(
                index_elements=[DebateChunkModel.debate_ext_id, DebateChunkModel.chunk_index],
                set_={
                    key: stmt.excluded[key]
                    for key in rows[0]
                    if key not in ("debate_ext_id", "chunk_index")
                },
            )
            await self.session.execute(stmt)
            logger.debug("Upserted %s chunks for %s (bulk)", len(rows), debate_ext_id)
            return len(rows)

        for row in rows:
            result = await self.session.execute(
                select(DebateChunkModel).where(
                    and_(
                        DebateChunkModel.debate_ext_id == debate_ext_id,
                        DebateChunkModel.chunk_index == row["chunk_index"],
                    )
                )
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                self.session.add(DebateChunkModel(**row))
            else:
                for key, value in row.items():
                    setattr(existing, key, value)
        await self.session.flush()
        logger.debug("Upserted %s chunks for %s (sequential)", len(rows), debate_ext_id)
        return len(rows)
