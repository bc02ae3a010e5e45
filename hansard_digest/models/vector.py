"""
Vector index models.

Responsibility: Weekly window metadata, flattened index documents and
embedded debate chunks
"""
from datetime import date, timedelta
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def week_start(day: date) -> date:
    """Monday of the calendar week containing ``day``."""
    return day - timedelta(days=day.weekday())


class VectorStoreWindow(BaseModel):
    """One week's index plus its paired assistant."""
    model_config = ConfigDict(from_attributes=True)

    start_date: date
    end_date: date
    store_id: str
    assistant_id: Optional[str] = None

    @property
    def key(self) -> str:
        return self.start_date.isoformat()


class VectorDocument(BaseModel):
    """Flat text rendering of one processed debate."""
    ext_id: str
    debate_date: date
    filename: str
    content: str


class DebateChunk(BaseModel):
    """A searchable slice of a stored debate's AI content."""
    model_config = ConfigDict(from_attributes=True)

    chunk_index: int
    chunk_type: str
    chunk_text: str
    speaker_id: Optional[int] = None
    speaker_name: Optional[str] = None
    speaker_party: Optional[str] = None
    token_count: int = 0
    embedding: List[float] = Field(default_factory=list)
