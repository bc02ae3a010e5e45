"""
Repository for debate database operations.

Persists processed Hansard debates keyed by their external id.

Responsibility: Data access layer for the ``debates`` table.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import DebateModel

logger = logging.getLogger(__name__)

# Reader votes are owned by the front end; the pipeline never writes them.
CURATED_FIELDS = frozenset({"ai_question_ayes", "ai_question_noes"})

WRITABLE_FIELDS = frozenset(
    column.name
    for column in DebateModel.__table__.columns
    if column.name not in {"id", "created_at"} | CURATED_FIELDS
)

REQUIRED_FIELDS = frozenset({"ext_id", "title", "date"})


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.split("T", 1)[0])
        except ValueError:
            return None
    return None


def model_to_dict(model: DebateModel) -> Dict[str, Any]:
    """Column values of a stored debate, keyed by column name."""
    return {column.name: getattr(model, column.name) for column in DebateModel.__table__.columns}


class DebateRepository:
    """Repository handling persistence for ``DebateModel`` records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _dialect_name(self) -> str:
        bind = self.session.bind
        return bind.dialect.name if bind is not None else ""

    async def get_by_ext_id(self, ext_id: str) -> Optional[DebateModel]:
        stmt = select(DebateModel).where(DebateModel.ext_id == ext_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_existing_fields(self, ext_id: str) -> Optional[Dict[str, Any]]:
        """Stored column values for ``ext_id``, or ``None`` if not stored yet."""
        model = await self.get_by_ext_id(ext_id)
        return model_to_dict(model) if model is not None else None

    async def count(self) -> int:
        result = await self.session.execute(select(DebateModel.id))
        return len(result.scalars().all())

    def _normalize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Restrict to writable columns and check required fields."""
        data = {key: value for key, value in payload.items() if key in WRITABLE_FIELDS}

        if data.get("ext_id"):
            data["ext_id"] = str(data["ext_id"])
        parsed = _parse_date(data.get("date"))
        if parsed is not None:
            data["date"] = parsed
        data["updated_at"] = datetime.utcnow()

        missing = sorted(field for field in REQUIRED_FIELDS if not data.get(field))
        if missing:
            raise ValueError(
                "debate payload missing required fields: " + ", ".join(missing)
            )
        return data

    async def upsert(self, payload: Dict[str, Any]) -> None:
        """Insert or update one debate by ``ext_id``."""
        data = self._normalize_payload(payload)

        if self._dialect_name() == "postgresql":
            stmt = pg_insert(DebateModel).values(created_at=datetime.utcnow(), **data)
            stmt = stmt.on_conflict_do_update(
                index_elements=[DebateModel.ext_id],
                set_={key: stmt.excluded[key] for key in data if key != "ext_id"},
            )
            await self.session.execute(stmt)
            return

        existing = await self.get_by_ext_id(data["ext_id"])
        if existing is None:
            self.session.add(DebateModel(**data))
        else:
            for key, value in data.items():
                setattr(existing, key, value)
        await self.session.flush()

    async def set_file_ids(self, file_ids: Dict[str, str]) -> None:
        """Record the uploaded index file for each debate."""
        for ext_id, file_id in file_ids.items():
            await self.session.execute(
                update(DebateModel)
                .where(DebateModel.ext_id == ext_id)
                .values(file_id=file_id, updated_at=datetime.utcnow())
            )
        logger.debug("Recorded file ids for %s debates", len(file_ids))

    async def list_by_ext_ids(self, ext_ids: Iterable[str]) -> List[DebateModel]:
        ids = [ext_id for ext_id in set(ext_ids) if ext_id]
        if not ids:
            return []
        result = await self.session.execute(select(DebateModel).where(DebateModel.ext_id.in_(ids)))
        return list(result.scalars().all())
