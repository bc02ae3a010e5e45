"""
Repository package for data access operations.

Implements repository pattern for abstracting database operations.
"""

from .chunk_repository import DebateChunkRepository
from .debate_repository import DebateRepository
from .division_repository import DivisionRepository
from .fetch_log_repository import FetchLogRepository
from .member_repository import MemberRepository
from .vector_store_repository import VectorStoreRepository

__all__ = [
    "DebateChunkRepository",
    "DebateRepository",
    "DivisionRepository",
    "FetchLogRepository",
    "MemberRepository",
    "VectorStoreRepository",
]
