"""
Service layer for Hansard Digest.

Provider clients, the per-run member cache, debate persistence and the
weekly vector index.
"""

from .debate_persistence import DebatePersistence
from .index_client import IndexClient
from .llm_client import LLMClient, LLMResult, LLMStatus
from .member_cache import MemberCache
from .vector_index import IndexReport, VectorIndexRotationManager

__all__ = [
    "DebatePersistence",
    "IndexClient",
    "LLMClient",
    "LLMResult",
    "LLMStatus",
    "MemberCache",
    "IndexReport",
    "VectorIndexRotationManager",
]
