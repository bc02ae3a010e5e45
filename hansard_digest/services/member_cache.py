"""
Per-run member cache.

Loaded once up front for every member id seen in the run; later lookups
only hit the loader for ids that were not seen before. Entries are never
invalidated during a run.

Responsibility: Member lookup for speaker attribution and party stats
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from ..db.repositories import MemberRepository
from ..db.session import Database
from ..models.debate import Member

logger = logging.getLogger(__name__)

MemberLoader = Callable[[List[int]], Awaitable[List[Member]]]


class MemberCache:
    """Lazy, run-scoped map of member id to ``Member``."""

    def __init__(self, loader: MemberLoader):
        self._loader = loader
        self._members: Dict[int, Member] = {}
        self._requested: set = set()
        self._lock = asyncio.Lock()
        self.loads = 0

    @classmethod
    def from_database(cls, database: Database) -> "MemberCache":
        async def load(member_ids: List[int]) -> List[Member]:
            async with database.session() as session:
                return await MemberRepository(session).get_by_ids(member_ids)

        return cls(load)

    async def load(self, member_ids: Iterable[int]) -> None:
        """Fetch any ids not requested before."""
        async with self._lock:
            missing = sorted(
                {member_id for member_id in member_ids if member_id is not None} - self._requested
            )
            if not missing:
                return
            members = await self._loader(missing)
            self._requested.update(missing)
            self.loads += 1

        for member in members:
            self._members[member.member_id] = member
        logger.debug("Member cache loaded %s/%s ids", len(members), len(missing))

    async def get_many(self, member_ids: Iterable[int]) -> Dict[int, Member]:
        ids = list(member_ids)
        await self.load(ids)
        return {member_id: self._members[member_id] for member_id in ids if member_id in self._members}

    def get(self, member_id: int) -> Optional[Member]:
        return self._members.get(member_id)

    @property
    def members(self) -> Mapping[int, Member]:
        return self._members

    def __len__(self) -> int:
        return len(self._members)
