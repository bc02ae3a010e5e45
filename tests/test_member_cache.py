import asyncio

import pytest

from hansard_digest.services.member_cache import MemberCache

from helpers import MEMBERS


class CountingLoader:
    def __init__(self, fail_first=False):
        self.calls = []
        self.fail_first = fail_first

    async def __call__(self, member_ids):
        self.calls.append(list(member_ids))
        if self.fail_first and len(self.calls) == 1:
            raise ConnectionError("members table unavailable")
        return [MEMBERS[member_id] for member_id in member_ids if member_id in MEMBERS]


def test_only_unseen_ids_are_loaded() -> None:
    loader = CountingLoader()
    cache = MemberCache(loader)

    async def run():
        await cache.load([101, 102, None])
        return await cache.get_many([102, 103, 999])

    found = asyncio.run(run())

    assert loader.calls == [[101, 102], [103, 999]]
    assert sorted(found) == [102, 103]
    assert cache.get(101).party == "Labour"
    assert len(cache) == 3
    assert cache.loads == 2


def test_unknown_ids_are_not_requested_twice() -> None:
    loader = CountingLoader()
    cache = MemberCache(loader)

    async def run():
        await cache.get_many([999])
        return await cache.get_many([999])

    assert asyncio.run(run()) == {}
    assert loader.calls == [[999]]


def test_failed_load_is_retried_next_time() -> None:
    loader = CountingLoader(fail_first=True)
    cache = MemberCache(loader)

    async def run():
        with pytest.raises(ConnectionError):
            await cache.load([101])
        return await cache.get_many([101])

    assert list(asyncio.run(run())) == [101]
    assert loader.calls == [[101], [101]]


def test_concurrent_lookups_share_one_load() -> None:
    loader = CountingLoader()
    cache = MemberCache(loader)

    async def run():
        await asyncio.gather(*(cache.get_many([101, 102]) for _ in range(5)))

    asyncio.run(run())

    assert loader.calls == [[101, 102]]
