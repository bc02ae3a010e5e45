"""
Models package for Hansard Digest.

This package contains all Pydantic models for:
- Adapter responses and metadata
- Hansard debate payloads and members
- AI analysis schemas and enriched output
- Divisions, vector windows and run results
"""

from .adapter_models import (
    AdapterStatus,
    AdapterError,
    AdapterMetrics,
    AdapterResponse,
)
from .analysis import AIContent, AIProcessMode, Tone
from .debate import DebateClassification, Member, RawDebate, SpeakerRef
from .division import Division, DivisionMember
from .results import DebateOutcome, OutcomeReason, ProcessingStatus, RunSummary
from .vector import VectorDocument, VectorStoreWindow, week_start

__all__ = [
    "AdapterStatus",
    "AdapterError",
    "AdapterMetrics",
    "AdapterResponse",
    "AIContent",
    "AIProcessMode",
    "Tone",
    "DebateClassification",
    "Member",
    "RawDebate",
    "SpeakerRef",
    "Division",
    "DivisionMember",
    "DebateOutcome",
    "OutcomeReason",
    "ProcessingStatus",
    "RunSummary",
    "VectorDocument",
    "VectorStoreWindow",
    "week_start",
]
