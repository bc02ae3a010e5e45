import asyncio
from datetime import date

import pytest

from hansard_digest.exceptions import VectorIngestError, VectorIngestTimeoutError
from hansard_digest.models.vector import VectorDocument, week_start
from hansard_digest.services.index_client import object_id
from hansard_digest.services.vector_index import VectorIndexRotationManager

from helpers import FakeIndexClient, make_database


def _document(ext_id: str, day: date) -> VectorDocument:
    return VectorDocument(ext_id=ext_id, debate_date=day, filename=f"{ext_id}.txt", content=f"Debate {ext_id}")


def _manager(client, database, **kwargs):
    kwargs.setdefault("poll_interval_seconds", 0)
    return VectorIndexRotationManager(client, database, **kwargs)


def test_week_start_is_monday() -> None:
    assert week_start(date(2024, 3, 5)) == date(2024, 3, 4)
    assert week_start(date(2024, 3, 4)) == date(2024, 3, 4)
    assert week_start(date(2024, 3, 10)) == date(2024, 3, 4)


def test_window_reused_within_week(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        client = FakeIndexClient()
        manager = _manager(client, database)
        try:
            tuesday = await manager.get_or_create_window(date(2024, 3, 5))
            sunday = await manager.get_or_create_window(date(2024, 3, 10))
            monday = await manager.get_or_create_window(date(2024, 3, 11))
            return client, tuesday, sunday, monday
        finally:
            await database.close()

    client, tuesday, sunday, monday = asyncio.run(run())

    assert tuesday.store_id == sunday.store_id
    assert monday.store_id != tuesday.store_id
    assert tuesday.end_date == date(2024, 3, 10)
    assert tuesday.assistant_id == "asst-1"
    assert client.stores == ["Weekly Debates 2024-03-04", "Weekly Debates 2024-03-11"]


def test_stored_window_reused_by_new_run(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        try:
            first = await _manager(FakeIndexClient(), database).get_or_create_window(date(2024, 3, 5))
            second_client = FakeIndexClient()
            second = await _manager(second_client, database).get_or_create_window(date(2024, 3, 7))
            return first, second, second_client
        finally:
            await database.close()

    first, second, second_client = asyncio.run(run())

    assert second.store_id == first.store_id
    assert second_client.stores == []


def test_concurrent_requests_create_one_window(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        client = FakeIndexClient()
        manager = _manager(client, database)
        try:
            windows = await asyncio.gather(*(
                manager.get_or_create_window(date(2024, 3, day)) for day in range(4, 11)
            ))
            return client, windows
        finally:
            await database.close()

    client, windows = asyncio.run(run())

    assert len(client.stores) == 1
    assert {window.store_id for window in windows} == {"vs-1"}


def test_failed_batch_raises() -> None:
    client = FakeIndexClient([{"status": "failed"}])
    manager = _manager(client, database=None)

    with pytest.raises(VectorIngestError):
        asyncio.run(manager._poll_file_batch("vs-1", "batch-1"))


def test_failed_file_counts_raise() -> None:
    client = FakeIndexClient([{"status": "completed", "file_counts": {"failed": 1}}])
    manager = _manager(client, database=None)

    with pytest.raises(VectorIngestError):
        asyncio.run(manager._poll_file_batch("vs-1", "batch-1"))


def test_polling_gives_up_after_ceiling() -> None:
    client = FakeIndexClient([{"status": "in_progress"}])
    manager = _manager(client, database=None, poll_max_attempts=3)

    with pytest.raises(VectorIngestTimeoutError):
        asyncio.run(manager._poll_file_batch("vs-1", "batch-1"))
    assert client.polls == 3


def test_polling_waits_for_completion() -> None:
    client = FakeIndexClient([{"status": "in_progress"}, {"status": "completed", "file_counts": {"failed": 0}}])
    manager = _manager(client, database=None)

    batch = asyncio.run(manager._poll_file_batch("vs-1", "batch-1"))

    assert batch["status"] == "completed"
    assert client.polls == 2


def test_index_documents_feeds_permanent_and_weekly_stores(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        client = FakeIndexClient()
        manager = _manager(client, database, permanent_store_id="vs-permanent")
        try:
            report = await manager.index_documents([
                _document("DEB-1", date(2024, 3, 5)),
                _document("DEB-2", date(2024, 3, 6)),
                _document("DEB-3", date(2024, 3, 12)),
            ])
            return client, report
        finally:
            await database.close()

    client, report = asyncio.run(run())

    assert report.failures == 0
    assert report.file_ids == {"DEB-1": "file-1", "DEB-2": "file-2", "DEB-3": "file-3"}
    assert client.batches[0] == {"store": "vs-permanent", "file_ids": ["file-1", "file-2", "file-3"]}
    assert client.batches[1:] == [
        {"store": "vs-1", "file_ids": ["file-1", "file-2"]},
        {"store": "vs-2", "file_ids": ["file-3"]},
    ]


def test_index_failures_are_counted_per_document(tmp_path) -> None:
    class FlakyUploads(FakeIndexClient):
        async def upload_file(self, filename, content):
            if filename == "DEB-2.txt":
                raise VectorIngestError("upload rejected")
            return await super().upload_file(filename, content)

    async def run():
        database = await make_database(tmp_path)
        client = FlakyUploads([{"status": "failed"}])
        manager = _manager(client, database)
        try:
            return await manager.index_documents([
                _document("DEB-1", date(2024, 3, 5)),
                _document("DEB-2", date(2024, 3, 5)),
                _document("DEB-3", date(2024, 3, 5)),
            ])
        finally:
            await database.close()

    report = asyncio.run(run())

    assert "DEB-2" not in report.file_ids
    assert report.failures == 3


def test_batch_without_id_counts_as_failure(tmp_path) -> None:
    class NamelessBatches(FakeIndexClient):
        async def create_file_batch(self, vector_store_id, file_ids):
            await super().create_file_batch(vector_store_id, file_ids)
            return {"status": "in_progress"}

    async def run():
        database = await make_database(tmp_path)
        client = NamelessBatches()
        try:
            report = await _manager(client, database).index_documents([_document("DEB-1", date(2024, 3, 5))])
            return client, report
        finally:
            await database.close()

    client, report = asyncio.run(run())

    assert report.failures == 1
    assert report.file_ids == {"DEB-1": "file-1"}
    assert client.polls == 0


def test_created_object_needs_an_id() -> None:
    assert object_id({"id": "vs-9", "object": "vector_store"}, "vector store") == "vs-9"
    with pytest.raises(VectorIngestError):
        object_id({"object": "vector_store"}, "vector store")
    with pytest.raises(VectorIngestError):
        object_id(["vs-9"], "vector store")
