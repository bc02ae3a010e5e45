"""
AI analysis models.

Two layers live here:
- ``*Response`` models are the structured-output schemas sent to the LLM
  provider; their JSON schema is generated from the pydantic definition.
- The enriched models (``KeyPoint``, ``TopicAnalysis``, ``Comment``...) are
  what gets stored after speaker names are resolved against members.

Responsibility: Schemas for generator output and the merged AI bundle
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .debate import SpeakerRef


class Tone(str, Enum):
    NEUTRAL = "neutral"
    CONTENTIOUS = "contentious"
    COLLABORATIVE = "collaborative"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "Tone":
        """Map free-form provider output onto the three tones."""
        if isinstance(value, Tone):
            return value
        cleaned = (value or "").strip().lower()
        for tone in cls:
            if tone.value == cleaned:
                return tone
        return cls.NEUTRAL


class AIProcessMode(str, Enum):
    """Single generator to run for a partial re-analysis."""
    SUMMARY = "summary"
    QUESTIONS = "questions"
    TOPICS = "topics"
    KEYPOINTS = "keypoints"
    DIVISIONS = "divisions"
    COMMENTS = "comments"
    # Embed stored summary and key points; no generator runs
    EMBEDDINGS = "embeddings"


# ---------------------------------------------------------------------------
# Provider response schemas
# ---------------------------------------------------------------------------


class SummaryResponse(BaseModel):
    title: str
    sentence1: str
    sentence2: str
    sentence3: str
    tone: str
    word_count: int = 0


class QuestionBody(BaseModel):
    text: str
    topic: str
    subtopics: List[str] = Field(default_factory=list)


class QuestionResponse(BaseModel):
    question: QuestionBody


class TopicSpeakerItem(BaseModel):
    name: str
    subtopics: List[str] = Field(default_factory=list)
    frequency: int = 1


class TopicItem(BaseModel):
    name: str
    frequency: int = 1
    speakers: List[TopicSpeakerItem] = Field(default_factory=list)


class TopicsResponse(BaseModel):
    topics: List[TopicItem]


class KeyPointItem(BaseModel):
    point: str
    speaker: str
    support: List[str] = Field(default_factory=list)
    opposition: List[str] = Field(default_factory=list)
    context: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)


class KeyPointsResponse(BaseModel):
    key_points: List[KeyPointItem]


class KeyArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    for_: str = Field(default="", alias="for")
    against: str = ""


class DivisionQuestionItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    division_id: str = ""
    question: str
    topic: str = ""
    context: str = ""
    key_arguments: KeyArguments = Field(default_factory=KeyArguments)


class DivisionQuestionsResponse(BaseModel):
    questions: List[DivisionQuestionItem]


class CommentVotesItem(BaseModel):
    upvotes: int = 0
    upvotes_speakers: List[str] = Field(default_factory=list)
    downvotes: int = 0
    downvotes_speakers: List[str] = Field(default_factory=list)


class CommentItem(BaseModel):
    id: str
    parent_id: Optional[str] = None
    author: str
    content: str
    votes: CommentVotesItem = Field(default_factory=CommentVotesItem)
    tags: List[str] = Field(default_factory=list)


class CommentThreadResponse(BaseModel):
    comments: List[CommentItem]


# ---------------------------------------------------------------------------
# Enriched output
# ---------------------------------------------------------------------------


class AISummary(BaseModel):
    title: str = ""
    sentences: List[str] = Field(default_factory=list)
    tone: str = Tone.NEUTRAL.value
    word_count: int = 0

    @property
    def text(self) -> str:
        return "\n".join(sentence for sentence in self.sentences if sentence)


class SurveyQuestion(BaseModel):
    text: str = ""
    topic: str = ""
    subtopics: List[str] = Field(default_factory=list)


class TopicSpeaker(SpeakerRef):
    subtopics: List[str] = Field(default_factory=list)
    frequency: int = 1


class TopicAnalysis(BaseModel):
    name: str
    frequency: int = 1
    speakers: List[TopicSpeaker] = Field(default_factory=list)


class KeyPoint(BaseModel):
    point: str
    speaker: SpeakerRef
    support: List[SpeakerRef] = Field(default_factory=list)
    opposition: List[SpeakerRef] = Field(default_factory=list)
    context: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    @property
    def has_interaction(self) -> bool:
        return bool(self.support or self.opposition)


class CommentVotes(BaseModel):
    upvotes: int = 0
    upvotes_speakers: List[SpeakerRef] = Field(default_factory=list)
    downvotes: int = 0
    downvotes_speakers: List[SpeakerRef] = Field(default_factory=list)


class Comment(BaseModel):
    id: str
    parent_id: Optional[str] = None
    author: SpeakerRef
    content: str
    votes: CommentVotes = Field(default_factory=CommentVotes)
    tags: List[str] = Field(default_factory=list)


class AIContent(BaseModel):
    """
    Merged output of one analysis run.

    A ``None`` field means the generator was not run this time, which is
    different from an empty result.
    """
    summary: Optional[AISummary] = None
    question: Optional[SurveyQuestion] = None
    topics: Optional[List[TopicAnalysis]] = None
    key_points: Optional[List[KeyPoint]] = None
    division_questions: Optional[List[DivisionQuestionItem]] = None
    comment_thread: Optional[List[Comment]] = None

    @property
    def tone(self) -> Tone:
        return Tone.normalize(self.summary.tone if self.summary else None)
