"""
Processing result models.

Per-debate outcomes and the run-level aggregate reported to the CLI, the
Prefect flow, and the fetch log.

Responsibility: Data transfer objects for pipeline results
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ProcessingStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class OutcomeReason(str, Enum):
    PROCESSED = "processed"
    INELIGIBLE = "ineligible"
    REFUSED = "refused"
    DATA_LOSS_RISK = "data_loss_risk"
    NOTHING_TO_EMBED = "nothing_to_embed"
    ERROR = "error"


class DebateOutcome(BaseModel):
    """What happened to one debate, with enough detail to diagnose later."""
    ext_id: str
    title: Optional[str] = None
    status: ProcessingStatus
    reason: OutcomeReason
    debate_type: Optional[str] = None
    error_type: Optional[str] = None
    message: Optional[str] = None
    interest_score: Optional[float] = None


class RunSummary(BaseModel):
    """Aggregate result of one processing run."""
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    outcomes: List[DebateOutcome] = Field(default_factory=list)
    index_failures: int = 0

    @property
    def success(self) -> int:
        return self._count(ProcessingStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(ProcessingStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ProcessingStatus.SKIPPED)

    def _count(self, status: ProcessingStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    def add(self, outcome: DebateOutcome) -> None:
        self.outcomes.append(outcome)

    def as_counts(self) -> dict:
        return {
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
        }

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.utcnow()
        return (end - self.started_at).total_seconds()
