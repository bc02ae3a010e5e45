"""
Repository for processing run logs.

Responsibility: Record one ``fetch_logs`` row per pipeline run.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ...models.results import ProcessingStatus, RunSummary
from ..models import FetchLogModel


class FetchLogRepository:
    """Writes run summaries for monitoring."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_run(
        self,
        summary: RunSummary,
        *,
        source: str = "hansard",
        unit_of_work: Optional[str] = None,
    ) -> FetchLogModel:
        if summary.failed and not summary.success:
            status = "failure"
        elif summary.failed:
            status = "partial_success"
        else:
            status = "success"

        errors = [
            outcome.model_dump(mode="json", include={"ext_id", "reason", "error_type", "message"})
            for outcome in summary.outcomes
            if outcome.status == ProcessingStatus.FAILED
        ]
        log = FetchLogModel(
            source=source,
            status=status,
            unit_of_work=unit_of_work,
            records_succeeded=summary.success,
            records_failed=summary.failed,
            records_skipped=summary.skipped,
            index_failures=summary.index_failures,
            duration_seconds=summary.duration_seconds,
            error_summary=errors or None,
        )
        self.session.add(log)
        await self.session.flush()
        return log
