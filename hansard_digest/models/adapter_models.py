"""
Envelope returned by the records adapter.

A discovery run can load most debates of a sitting day and lose a few, or
fail outright because Hansard is down. The envelope carries that outcome
explicitly so the pipeline does not have to infer it from log output.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar, Optional, List, Dict, Any

from pydantic import BaseModel, Field


class AdapterStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"
    SOURCE_UNAVAILABLE = "source_unavailable"


class AdapterError(BaseModel):
    """One section or debate that could not be loaded."""
    timestamp: datetime
    error_type: str
    message: str
    # adapter name plus whatever locates the failure: section, ext_id
    context: Dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False


class AdapterMetrics(BaseModel):
    records_attempted: int = Field(ge=0)
    records_succeeded: int = Field(ge=0)
    records_failed: int = Field(ge=0)
    duration_seconds: float = Field(ge=0.0)
    throttle_delays: int = Field(default=0, ge=0)


RecordT = TypeVar("RecordT")


class AdapterResponse(BaseModel, Generic[RecordT]):
    """Records loaded for one unit of work, with per-record failures."""
    status: AdapterStatus
    data: Optional[List[RecordT]] = None
    errors: List[AdapterError] = Field(default_factory=list)
    metrics: AdapterMetrics
    source: str
    fetch_timestamp: datetime

    @property
    def unavailable(self) -> bool:
        return self.status == AdapterStatus.SOURCE_UNAVAILABLE

    @property
    def loaded(self) -> int:
        return len(self.data or [])
