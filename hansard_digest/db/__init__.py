"""ORM models, engine lifecycle and repositories."""

from .models import (
    Base,
    DebateChunkModel,
    DebateModel,
    DivisionModel,
    FetchLogModel,
    MemberModel,
    VectorStoreWindowModel,
)
from .session import Database

__all__ = [
    "Base",
    "DebateChunkModel",
    "DebateModel",
    "DivisionModel",
    "FetchLogModel",
    "MemberModel",
    "VectorStoreWindowModel",
    "Database",
]
