"""
Contract for records sources.

An adapter owns its rate limiter and logger, and reports every discovery
run as an ``AdapterResponse`` so callers can tell a partial day from an
outage.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, TypeVar, Any, List, Optional
import logging

from ..models.adapter_models import (
    AdapterResponse,
    AdapterStatus,
    AdapterError,
    AdapterMetrics,
)
from ..utils.rate_limiter import RateLimiter


T = TypeVar('T')


class BaseAdapter(ABC, Generic[T]):
    """
    Base class for records source adapters.

    Subclasses implement ``fetch`` for one unit of work and ``normalize``
    for a single raw payload. Every outbound request should go through
    ``self.rate_limiter.acquire()``.
    """

    def __init__(
        self,
        source_name: str,
        rate_limit_per_second: float = 1.0,
        max_retries: int = 3,
        timeout_seconds: int = 30
    ):
        self.source_name = source_name
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = RateLimiter(rate_limit_per_second, burst=max(1, int(rate_limit_per_second)))
        self.logger = logging.getLogger(f"adapter.{source_name}")

    @abstractmethod
    async def fetch(self, **kwargs: Any) -> AdapterResponse[T]:
        """Load and normalize the records for one unit of work."""

    @abstractmethod
    def normalize(self, raw_data: Any) -> T:
        """Raise ``ValueError`` when the payload cannot be turned into ``T``."""

    def _respond(
        self,
        status: AdapterStatus,
        started_at: datetime,
        data: Optional[List[T]] = None,
        errors: Optional[List[AdapterError]] = None,
    ) -> AdapterResponse[T]:
        finished_at = datetime.utcnow()
        errors = errors or []
        succeeded = len(data or [])
        failed = len(errors) if data is not None else 0
        return AdapterResponse(
            status=status,
            data=data,
            errors=errors,
            metrics=AdapterMetrics(
                records_attempted=succeeded + failed,
                records_succeeded=succeeded,
                records_failed=failed,
                duration_seconds=max(0.0, (finished_at - started_at).total_seconds()),
                throttle_delays=self.rate_limiter.delays,
            ),
            source=self.source_name,
            fetch_timestamp=finished_at,
        )

    def _loaded(self, data: List[T], errors: List[AdapterError], started_at: datetime) -> AdapterResponse[T]:
        status = AdapterStatus.PARTIAL_SUCCESS if errors else AdapterStatus.SUCCESS
        return self._respond(status, started_at, data=data, errors=errors)

    def _outage(self, error: Exception, started_at: datetime, retryable: bool) -> AdapterResponse[T]:
        """The whole unit of work failed; ``retryable`` marks the source as down."""
        status = AdapterStatus.SOURCE_UNAVAILABLE if retryable else AdapterStatus.FAILURE
        return self._respond(status, started_at, errors=[self._error(error, retryable=retryable)])

    def _error(self, error: Exception, retryable: bool = False, **context: Any) -> AdapterError:
        return AdapterError(
            timestamp=datetime.utcnow(),
            error_type=type(error).__name__,
            message=str(error),
            context={"adapter": self.source_name, **context},
            retryable=retryable,
        )
