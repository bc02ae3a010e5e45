"""
Weekly vector store rotation.

Each calendar week (Monday to Sunday) gets its own vector store plus an
assistant bound to it, recorded in ``vector_store_windows``. A permanent
store configured in settings receives every document as well.

Window resolution is cached for the run and serialized per week so that
concurrent debates from one week share a single creation.

Responsibility: Resolve weekly windows and ingest debate documents
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..db.repositories import VectorStoreRepository
from ..db.session import Database
from ..exceptions import VectorIngestError, VectorIngestTimeoutError
from ..models.vector import VectorDocument, VectorStoreWindow, week_start

logger = logging.getLogger(__name__)


class IndexProvider(Protocol):
    async def upload_file(self, filename: str, content: str) -> str: ...

    async def create_vector_store(self, name: str) -> str: ...

    async def create_assistant(self, name: str, vector_store_id: str) -> str: ...

    async def create_file_batch(self, vector_store_id: str, file_ids: List[str]) -> Dict[str, Any]: ...

    async def retrieve_file_batch(self, vector_store_id: str, batch_id: str) -> Dict[str, Any]: ...


@dataclass
class IndexReport:
    """File ids uploaded per debate and the number of documents not indexed."""
    file_ids: Dict[str, str] = field(default_factory=dict)
    failures: int = 0


class VectorIndexRotationManager:
    """Maps debate dates to weekly stores and feeds documents into them."""

    def __init__(
        self,
        client: IndexProvider,
        database: Database,
        permanent_store_id: Optional[str] = None,
        poll_interval_seconds: Optional[float] = None,
        poll_max_attempts: Optional[int] = None,
    ):
        self.client = client
        self.database = database
        self.permanent_store_id = permanent_store_id or settings.openai.permanent_vector_store_id
        self.poll_interval_seconds = (
            settings.processing.vector_poll_interval_seconds
            if poll_interval_seconds is None else poll_interval_seconds
        )
        self.poll_max_attempts = poll_max_attempts or settings.processing.vector_poll_max_attempts
        self._windows: Dict[str, VectorStoreWindow] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def get_or_create_window(self, day: date) -> VectorStoreWindow:
        """Window covering ``day``, created on first use."""
        start = week_start(day)
        key = start.isoformat()

        cached = self._windows.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self._windows.get(key)
            if cached is not None:
                return cached

            async with self.database.session() as session:
                window = await VectorStoreRepository(session).get_by_start_date(start)

            if window is None:
                window = await self._create_window(start)
            else:
                logger.debug("Reusing vector store %s for week %s", window.store_id, key)

            self._windows[key] = window
            return window

    async def _create_window(self, start: date) -> VectorStoreWindow:
        name = f"Weekly Debates {start.isoformat()}"
        store_id = await self.client.create_vector_store(name)
        assistant_id = await self.client.create_assistant(name, store_id)
        window = VectorStoreWindow(
            start_date=start,
            end_date=start + timedelta(days=6),
            store_id=store_id,
            assistant_id=assistant_id,
        )
        async with self.database.session() as session:
            await VectorStoreRepository(session).create(window)
        logger.info("Created weekly window %s -> store %s", window.key, store_id)
        return window

    async def _poll_file_batch(self, store_id: str, batch_id: str) -> Dict[str, Any]:
        for attempt in range(1, self.poll_max_attempts + 1):
            batch = await self.client.retrieve_file_batch(store_id, batch_id)
            status = batch.get("status")
            failed = (batch.get("file_counts") or {}).get("failed", 0)
            logger.debug(
                "File batch %s status=%s failed=%s (poll %s/%s)",
                batch_id, status, failed, attempt, self.poll_max_attempts
            )

            if status in ("failed", "cancelled"):
                raise VectorIngestError(f"File batch {batch_id} {status}")
            if failed:
                raise VectorIngestError(f"File batch {batch_id} had {failed} failed files")
            if status == "completed":
                return batch

            await asyncio.sleep(self.poll_interval_seconds)

        raise VectorIngestTimeoutError(
            f"File batch {batch_id} not complete after {self.poll_max_attempts} polls"
        )

    async def _ingest(self, store_id: str, file_ids: List[str]) -> None:
        batch = await self.client.create_file_batch(store_id, file_ids)
        batch_id = batch.get("id") if isinstance(batch, dict) else None
        if not batch_id:
            raise VectorIngestError(f"File batch for store {store_id} was created without an id")
        await self._poll_file_batch(store_id, batch_id)

    async def index_documents(self, documents: List[VectorDocument]) -> IndexReport:
        """
        Upload ``documents`` and add them to the permanent and weekly stores.

        Failures are logged and counted per document; they never raise.
        """
        report = IndexReport()
        by_week: Dict[date, List[str]] = {}
        failed_ids = set()

        for document in documents:
            try:
                file_id = await self.client.upload_file(document.filename, document.content)
            except VectorIngestError as exc:
                logger.error("Upload failed for %s: %s", document.ext_id, exc)
                failed_ids.add(document.ext_id)
                continue
            report.file_ids[document.ext_id] = file_id
            by_week.setdefault(week_start(document.debate_date), []).append(document.ext_id)

        if self.permanent_store_id and report.file_ids:
            try:
                await self._ingest(self.permanent_store_id, list(report.file_ids.values()))
            except VectorIngestError as exc:
                logger.error("Permanent store ingest failed: %s", exc)
                failed_ids.update(report.file_ids)

        for start, ext_ids in by_week.items():
            try:
                window = await self.get_or_create_window(start)
                await self._ingest(window.store_id, [report.file_ids[ext_id] for ext_id in ext_ids])
            except (VectorIngestError, SQLAlchemyError) as exc:
                logger.error("Weekly store ingest for %s failed: %s", start, exc)
                failed_ids.update(ext_ids)

        report.failures = len(failed_ids)
        logger.info(
            "Indexed %s/%s documents", len(documents) - report.failures, len(documents)
        )
        return report
