"""
Member table sync.

Pages through the Hansard member search (current and former members of
both houses) and upserts every page into ``members``, which the per-run
``MemberCache`` reads for speaker attribution and party counts.
"""

import asyncio
import logging
from typing import Optional, Protocol

from ..config import settings
from ..db.repositories import MemberRepository
from ..db.session import Database
from ..models.debate import MemberPage

logger = logging.getLogger(__name__)


class MemberSource(Protocol):
    async def search_members(self, skip: int = 0, take: int = 50) -> MemberPage:
        ...


async def sync_members(
    source: MemberSource,
    database: Database,
    page_size: Optional[int] = None,
    page_delay_seconds: Optional[float] = None,
) -> int:
    """
    Upsert every member the search returns.

    Returns:
        Number of member rows written
    """
    config = settings.processing
    page_size = page_size or config.member_page_size
    if page_delay_seconds is None:
        page_delay_seconds = config.member_page_delay_seconds

    skip = 0
    written = 0
    while True:
        page = await source.search_members(skip=skip, take=page_size)
        if not page.rows:
            break

        if page.members:
            async with database.session() as session:
                written += await MemberRepository(session).upsert_many(page.members)
        skip += page.rows
        logger.info("Member sync: %s rows read, %s written (total %s)", skip, written, page.total or "?")

        if page.rows < page_size:
            break
        await asyncio.sleep(page_delay_seconds)

    logger.info("Member sync complete: %s members", written)
    return written
