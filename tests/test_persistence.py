import asyncio

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from hansard_digest.db.models import DebateModel, FetchLogModel
from hansard_digest.db.repositories import DebateChunkRepository, DebateRepository, DivisionRepository
from hansard_digest.exceptions import (
    DatastoreTimeoutError,
    ExistingContentReadError,
    PersistenceError,
    UpstreamUnavailableError,
)
from hansard_digest.models.analysis import AIProcessMode
from hansard_digest.models.division import QUESTION_PLACEHOLDER
from hansard_digest.models.results import DebateOutcome, OutcomeReason, ProcessingStatus, RunSummary
from hansard_digest.models.vector import DebateChunk
from hansard_digest.processing.divisions import normalize_division
from hansard_digest.services.debate_persistence import (
    DebatePersistence,
    merge_records,
    translate_datastore_error,
)

from helpers import division_entry, make_database


class StatementTimeout(Exception):
    sqlstate = "57014"


def _timeout_error() -> DBAPIError:
    return DBAPIError("UPDATE debates", {}, StatementTimeout("canceling statement due to statement timeout"))


def _record(**overrides):
    record = {
        "ext_id": "DEB-1",
        "title": "Local Bus Services",
        "date": "2024-03-05",
        "house": "Commons",
        "ai_title": "MPs back rural buses",
        "ai_summary": "Members debated funding for rural bus routes.",
        "ai_tone": "contentious",
        "ai_topics": [{"name": "Economy, Business, and Infrastructure", "frequency": 3, "speakers": []}],
        "ai_key_points": [],
        "speaker_count": 3,
        "contribution_count": 3,
        "party_count": {"Labour": 1, "Conservative": 1, "Liberal Democrat": 1},
        "interest_score": 0.5,
    }
    record.update(overrides)
    return record


async def _stored(database, ext_id="DEB-1"):
    async with database.session() as session:
        return await DebateRepository(session).get_existing_fields(ext_id)


async def _count(database):
    async with database.session() as session:
        return await DebateRepository(session).count()


def test_merge_records_keeps_stored_values_for_missing_fields() -> None:
    merged = merge_records({"ai_title": "Old", "ai_summary": "Kept"}, {"ai_title": "New", "ai_summary": None})

    assert merged == {"ai_title": "New", "ai_summary": "Kept"}


def test_translate_datastore_error() -> None:
    assert isinstance(translate_datastore_error(_timeout_error()), DatastoreTimeoutError)
    assert isinstance(translate_datastore_error(ConnectionRefusedError("refused")), UpstreamUnavailableError)
    generic = translate_datastore_error(SQLAlchemyError("constraint"))
    assert type(generic) is PersistenceError


def test_upsert_is_idempotent(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            await persistence.upsert(_record())
            await persistence.upsert(_record())
            return await _count(database), await _stored(database)
        finally:
            await database.close()

    count, stored = asyncio.run(run())

    assert count == 1
    assert stored["ai_title"] == "MPs back rural buses"
    assert "rural bus routes" in stored["search_text"]


def test_curated_vote_counts_survive_rewrite(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            await persistence.upsert(_record())
            async with database.session() as session:
                await session.execute(
                    update(DebateModel).where(DebateModel.ext_id == "DEB-1").values(ai_question_ayes=7)
                )
            await persistence.upsert(_record(ai_title="Rewritten", ai_question_ayes=0))
            return await _stored(database)
        finally:
            await database.close()

    stored = asyncio.run(run())

    assert stored["ai_title"] == "Rewritten"
    assert stored["ai_question_ayes"] == 7


def test_partial_mode_keeps_other_fields_and_rescores(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            await persistence.upsert(_record())
            partial = {
                "ext_id": "DEB-1",
                "title": "Local Bus Services",
                "date": "2024-03-05",
                "ai_title": "A calmer debate",
                "ai_summary": "Members agreed.",
                "ai_tone": "collaborative",
                "ai_topics": None,
            }
            merged = await persistence.upsert(partial, AIProcessMode.SUMMARY)
            return merged, await _stored(database)
        finally:
            await database.close()

    merged, stored = asyncio.run(run())

    assert stored["ai_title"] == "A calmer debate"
    assert stored["ai_topics"] == [{"name": "Economy, Business, and Infrastructure", "frequency": 3, "speakers": []}]
    assert stored["house"] == "Commons"
    assert stored["interest_score"] == merged["interest_score"]
    assert stored["interest_score"] != 0.5
    assert stored["interest_factors"]["controversy"] == 0.3


def test_unreadable_existing_row_is_not_overwritten(tmp_path, monkeypatch) -> None:
    async def failing(self, ext_id):
        raise SQLAlchemyError("read failed")

    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            monkeypatch.setattr(DebateRepository, "get_existing_fields", failing)
            with pytest.raises(ExistingContentReadError):
                await persistence.upsert(_record())
            return await _count(database)
        finally:
            await database.close()

    assert asyncio.run(run()) == 0


def test_lost_connection_on_read_is_upstream_outage(tmp_path, monkeypatch) -> None:
    async def failing(self, ext_id):
        raise ConnectionRefusedError("connection refused")

    async def run():
        database = await make_database(tmp_path)
        try:
            monkeypatch.setattr(DebateRepository, "get_existing_fields", failing)
            await DebatePersistence(database).upsert(_record())
        finally:
            await database.close()

    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(run())


def test_statement_timeout_is_retried(tmp_path, monkeypatch) -> None:
    original = DebateRepository.upsert
    calls = []

    async def flaky(self, payload):
        calls.append(payload["ext_id"])
        if len(calls) == 1:
            raise _timeout_error()
        return await original(self, payload)

    async def run():
        database = await make_database(tmp_path)
        try:
            monkeypatch.setattr(DebateRepository, "upsert", flaky)
            await DebatePersistence(database, max_retries=2, retry_delay_seconds=0).upsert(_record())
            return await _count(database)
        finally:
            await database.close()

    assert asyncio.run(run()) == 1
    assert len(calls) == 2


def test_statement_timeout_gives_up_after_retries(tmp_path, monkeypatch) -> None:
    calls = []

    async def always_times_out(self, payload):
        calls.append(payload["ext_id"])
        raise _timeout_error()

    async def run():
        database = await make_database(tmp_path)
        try:
            monkeypatch.setattr(DebateRepository, "upsert", always_times_out)
            await DebatePersistence(database, max_retries=2, retry_delay_seconds=0).upsert(_record())
        finally:
            await database.close()

    with pytest.raises(DatastoreTimeoutError):
        asyncio.run(run())
    assert len(calls) == 3


def test_division_ai_fields_survive_rewrite_without_analysis(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            analysed = normalize_division(division_entry("DIV-1", 1), {}, "DEB-1")
            analysed.ai_question = "Should the House back the motion?"
            analysed.ai_key_arguments = {"for": "Better routes", "against": "Cost"}
            await persistence.upsert_divisions([analysed])

            refreshed = normalize_division(division_entry("DIV-1", 1), {}, "DEB-1")
            refreshed.ayes_count = 999
            await persistence.upsert_divisions([refreshed])

            async with database.session() as session:
                return await DivisionRepository(session).list_for_debate("DEB-1")
        finally:
            await database.close()

    rows = asyncio.run(run())

    assert len(rows) == 1
    assert rows[0].ayes_count == 999
    assert rows[0].ai_question == "Should the House back the motion?"
    assert rows[0].ai_key_arguments == {"for": "Better routes", "against": "Cost"}


def test_record_run_writes_fetch_log(tmp_path) -> None:
    summary = RunSummary(outcomes=[
        DebateOutcome(ext_id="DEB-1", status=ProcessingStatus.SUCCESS, reason=OutcomeReason.PROCESSED),
        DebateOutcome(
            ext_id="DEB-2",
            status=ProcessingStatus.FAILED,
            reason=OutcomeReason.ERROR,
            error_type="ValueError",
            message="bad payload",
        ),
    ])

    async def run():
        database = await make_database(tmp_path)
        try:
            await DebatePersistence(database).record_run(summary, unit_of_work="2024-03-05")
            async with database.session() as session:
                return (await session.execute(select(FetchLogModel))).scalars().all()
        finally:
            await database.close()

    logs = asyncio.run(run())

    assert len(logs) == 1
    assert logs[0].status == "partial_success"
    assert logs[0].records_succeeded == 1
    assert logs[0].records_failed == 1
    assert logs[0].error_summary[0]["ext_id"] == "DEB-2"


def test_placeholders_do_not_replace_stored_division_questions(tmp_path) -> None:
    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            analysed = normalize_division(division_entry("DIV-1", 1), {}, "DEB-1")
            analysed.ai_question = "Should rural buses be funded?"
            analysed.ai_context = "Funding vote"
            await persistence.upsert_divisions([analysed])

            failed_again = normalize_division(division_entry("DIV-1", 1), {}, "DEB-1")
            failed_again.apply_placeholders()
            first_time = normalize_division(division_entry("DIV-2", 2), {}, "DEB-1")
            first_time.apply_placeholders()
            await persistence.upsert_divisions([failed_again, first_time])

            async with database.session() as session:
                return await DivisionRepository(session).list_for_debate("DEB-1")
        finally:
            await database.close()

    rows = asyncio.run(run())

    assert [row.external_id for row in rows] == ["DIV-1", "DIV-2"]
    assert rows[0].ai_question == "Should rural buses be funded?"
    assert rows[0].ai_context == "Funding vote"
    assert rows[1].ai_question == QUESTION_PLACEHOLDER


def test_stored_chunks_shrink_with_the_debate(tmp_path) -> None:
    def chunk(index, text):
        return DebateChunk(chunk_index=index, chunk_type="summary", chunk_text=text, embedding=[0.1, 0.2])

    async def run():
        database = await make_database(tmp_path)
        persistence = DebatePersistence(database, max_retries=0, retry_delay_seconds=0)
        try:
            await persistence.store_chunks("DEB-1", [chunk(0, "first"), chunk(1, "second"), chunk(2, "third")])
            await persistence.store_chunks("DEB-2", [chunk(0, "other")])
            written = await persistence.store_chunks("DEB-1", [chunk(0, "rewritten")])

            async with database.session() as session:
                repository = DebateChunkRepository(session)
                return written, await repository.list_for_debate("DEB-1"), await repository.list_for_debate("DEB-2")
        finally:
            await database.close()

    written, chunks, others = asyncio.run(run())

    assert written == 1
    assert [(c.chunk_index, c.chunk_text) for c in chunks] == [(0, "rewritten")]
    assert chunks[0].embedding == [0.1, 0.2]
    assert [c.chunk_text for c in others] == ["other"]
