"""
Idempotent persistence for processed debates.

Every write reads the stored row first and layers the freshly computed
fields over it, so a partial re-analysis only replaces what it produced.
Statement timeouts are retried with a fixed delay; a lost connection is
reported as ``UpstreamUnavailableError`` so the run stops.

Responsibility: Merge, retry and write debate and division records
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, TypeVar, Union

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..config import settings
from ..db.repositories import (
    DebateChunkRepository,
    DebateRepository,
    DivisionRepository,
    FetchLogRepository,
)
from ..db.session import Database
from ..exceptions import (
    DatastoreTimeoutError,
    ExistingContentReadError,
    PersistenceError,
    UpstreamUnavailableError,
)
from ..models.analysis import AIProcessMode, KeyPoint
from ..models.division import Division
from ..models.results import RunSummary
from ..models.vector import DebateChunk
from ..processing.scoring import calculate_interest_score
from ..processing.transform import build_search_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATEMENT_TIMEOUT_SQLSTATE = "57014"


def is_statement_timeout(exc: BaseException) -> bool:
    if isinstance(exc, asyncio.TimeoutError):
        return True
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return code == STATEMENT_TIMEOUT_SQLSTATE
    return False


def is_connection_failure(exc: BaseException) -> bool:
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, OSError) and not isinstance(exc, asyncio.TimeoutError)


def translate_datastore_error(exc: BaseException) -> Union[PersistenceError, UpstreamUnavailableError]:
    if is_statement_timeout(exc):
        return DatastoreTimeoutError(str(exc))
    if is_connection_failure(exc):
        return UpstreamUnavailableError("datastore", str(exc))
    return PersistenceError(str(exc))


def merge_records(existing: Optional[Mapping[str, Any]], fresh: Mapping[str, Any]) -> Dict[str, Any]:
    """Stored values, overwritten by every non-``None`` fresh value."""
    merged = dict(existing or {})
    merged.update({key: value for key, value in fresh.items() if value is not None})
    return merged


def rescore(record: Dict[str, Any]) -> Dict[str, Any]:
    """Recompute the interest score from a merged record."""
    key_points = [KeyPoint.model_validate(point) for point in record.get("ai_key_points") or []]
    interest = calculate_interest_score(
        record.get("ai_tone"),
        record.get("speaker_count") or 0,
        record.get("contribution_count") or 0,
        record.get("party_count") or {},
        key_points,
    )
    record["interest_score"] = interest.score
    record["interest_factors"] = interest.factors.model_dump()
    return record


class DebatePersistence:
    """Writes debate records, divisions and run logs through the repositories."""

    def __init__(
        self,
        database: Database,
        max_retries: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
    ):
        config = settings.processing
        self.database = database
        self.max_retries = config.upsert_max_retries if max_retries is None else max_retries
        self.retry_delay_seconds = (
            config.upsert_retry_delay_seconds if retry_delay_seconds is None else retry_delay_seconds
        )

    async def _write(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(DatastoreTimeoutError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.retry_delay_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                try:
                    async with self.database.session() as session:
                        return await operation(session)
                except (SQLAlchemyError, OSError) as exc:
                    raise translate_datastore_error(exc) from exc

    async def read_existing(self, ext_id: str) -> Optional[Dict[str, Any]]:
        """
        Stored fields for ``ext_id``.

        Raises:
            ExistingContentReadError: Row could not be read; merging would
                risk overwriting stored content
            UpstreamUnavailableError: Datastore unreachable
        """
        try:
            async with self.database.session() as session:
                return await DebateRepository(session).get_existing_fields(ext_id)
        except (SQLAlchemyError, OSError) as exc:
            if is_connection_failure(exc):
                raise UpstreamUnavailableError("datastore", str(exc)) from exc
            raise ExistingContentReadError(ext_id, exc) from exc

    async def upsert(
        self,
        record: Dict[str, Any],
        ai_process_mode: Optional[AIProcessMode] = None,
    ) -> Dict[str, Any]:
        """
        Merge ``record`` over the stored row and write it.

        Returns:
            The merged record as written
        """
        ext_id = record["ext_id"]
        existing = await self.read_existing(ext_id)
        merged = merge_records(existing, record)

        if ai_process_mode is not None and existing is not None:
            rescore(merged)
        merged["search_text"] = build_search_text(merged)

        await self._write(lambda session: DebateRepository(session).upsert(merged))
        logger.info(
            "Upserted debate %s (%s)", ext_id, "updated" if existing is not None else "inserted"
        )
        return merged

    async def upsert_divisions(self, divisions: Sequence[Division]) -> int:
        if not divisions:
            return 0
        return await self._write(lambda session: DivisionRepository(session).upsert_many(divisions))

    async def store_chunks(self, ext_id: str, chunks: Sequence[DebateChunk]) -> int:
        return await self._write(
            lambda session: DebateChunkRepository(session).replace_for_debate(ext_id, chunks)
        )

    async def set_file_ids(self, file_ids: Dict[str, str]) -> None:
        if file_ids:
            await self._write(lambda session: DebateRepository(session).set_file_ids(file_ids))

    async def record_run(self, summary: RunSummary, unit_of_work: Optional[str] = None) -> None:
        await self._write(
            lambda session: FetchLogRepository(session).record_run(summary, unit_of_work=unit_of_work)
        )

