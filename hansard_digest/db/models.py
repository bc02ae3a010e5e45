"""
SQLAlchemy database models for Hansard Digest.

ORM models that map to database tables with proper indexing,
constraints, and JSON columns for AI output.

Responsibility: Define database schema and ORM mappings
"""

import datetime as dt
from typing import Any, Dict, List, Optional
from sqlalchemy import (
    JSON, Boolean, Date, DateTime, Float, Index, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class DebateModel(Base):
    """
    Processed debate with derived metadata and AI analysis.

    ``ext_id`` is the Hansard external id and the upsert key.
    ``ai_question_ayes`` / ``ai_question_noes`` are reader votes collected
    downstream and are never written by the pipeline.
    """

    __tablename__ = "debates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ext_id: Mapped[str] = mapped_column(String(64), nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    day_of_week: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    start_time: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    house: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # AI analysis
    ai_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_tone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    ai_topics: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    ai_key_points: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    ai_comment_thread: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    ai_question: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_question_topic: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ai_question_subtopics: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    ai_question_ayes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ai_question_noes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Statistics
    speaker_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    contribution_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    party_count: Mapped[Optional[Dict[str, int]]] = mapped_column(JSON, nullable=True)
    speakers: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    interest_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True, index=True)
    interest_factors: Mapped[Optional[Dict[str, float]]] = mapped_column(JSON, nullable=True)

    # Navigation
    parent_ext_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    parent_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    prev_ext_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    next_ext_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    search_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("ext_id", name="uq_debate_ext_id"),
        Index("idx_debate_date_house", "date", "house"),
    )

    def __repr__(self) -> str:
        return f"<Debate(ext_id={self.ext_id}, title={self.title[:40]!r})>"


class DivisionModel(Base):
    """Recorded vote attached to a debate section"""

    __tablename__ = "divisions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    division_id: Mapped[int] = mapped_column(Integer, nullable=False)
    external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    debate_section_ext_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    time: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    has_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ayes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    noes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    house: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    division_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    text_before_vote: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    text_after_vote: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_committee_division: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    aye_members: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    noe_members: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)

    ai_question: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_topic: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ai_context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_key_arguments: Mapped[Optional[Dict[str, str]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_division_external_id"),
    )

    def __repr__(self) -> str:
        return f"<Division(external_id={self.external_id}, ayes={self.ayes_count}, noes={self.noes_count})>"


class MemberModel(Base):
    """Member of the Commons or Lords, synced from the members API"""

    __tablename__ = "members"

    member_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    display_as: Mapped[str] = mapped_column(String(200), nullable=False)
    party: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    member_from: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    house: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Member(member_id={self.member_id}, display_as={self.display_as})>"


class VectorStoreWindowModel(Base):
    """Weekly vector store and its paired assistant, keyed by Monday date"""

    __tablename__ = "vector_store_windows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    assistant_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=dt.datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("start_date", name="uq_vector_window_start"),
    )

    def __repr__(self) -> str:
        return f"<VectorStoreWindow(start_date={self.start_date}, store_id={self.store_id})>"


class DebateChunkModel(Base):
    """Embedded chunk of a debate summary or key point, keyed by debate and position"""

    __tablename__ = "debate_chunks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    debate_ext_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_type: Mapped[str] = mapped_column(String(20), nullable=False)
    chunk_text: Mapped[str] = mapped_column(Text, nullable=False)
    speaker_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    speaker_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    speaker_party: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    token_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Stored as a JSON float array; no vector extension is assumed
    embedding: Mapped[List[float]] = mapped_column(JSON, nullable=False)

    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("debate_ext_id", "chunk_index", name="uq_debate_chunk_position"),
    )

    def __repr__(self) -> str:
        return f"<DebateChunk(debate_ext_id={self.debate_ext_id}, chunk_index={self.chunk_index})>"


class FetchLogModel(Base):
    """
    One processing run.

    Tracks counts per status and timing for monitoring.
    """

    __tablename__ = "fetch_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_of_work: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    records_succeeded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    index_failures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_seconds: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    error_summary: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=dt.datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<FetchLog(source={self.source}, status={self.status})>"
