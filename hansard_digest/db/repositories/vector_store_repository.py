"""
Repository for weekly vector store windows.

Responsibility: Data access layer for the ``vector_store_windows`` table.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.vector import VectorStoreWindow
from ..models import VectorStoreWindowModel


class VectorStoreRepository:
    """Lookup and creation of window rows keyed by start date."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_start_date(self, start_date: date) -> Optional[VectorStoreWindow]:
        stmt = select(VectorStoreWindowModel).where(VectorStoreWindowModel.start_date == start_date)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return VectorStoreWindow.model_validate(model) if model is not None else None

    async def create(self, window: VectorStoreWindow) -> VectorStoreWindow:
        self.session.add(VectorStoreWindowModel(**window.model_dump()))
        await self.session.flush()
        return window
