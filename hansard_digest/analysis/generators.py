"""
AI analysis generators.

Six independent generators, each issuing one structured completion and
turning the result into enriched output. A generator never raises for
provider or schema trouble: transport errors give the safe default and
schema violations are salvaged item by item. A provider refusal is the one
exception and raises ``RefusalError``.

Responsibility: Prompt, call and shape each aspect of debate analysis
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import LLMProviderError, RefusalError
from ..models.analysis import (
    AISummary,
    Comment,
    CommentItem,
    CommentThreadResponse,
    CommentVotes,
    DivisionQuestionItem,
    DivisionQuestionsResponse,
    KeyPoint,
    KeyPointItem,
    KeyPointsResponse,
    QuestionResponse,
    SummaryResponse,
    SurveyQuestion,
    TopicAnalysis,
    TopicItem,
    TopicSpeaker,
    TopicsResponse,
)
from ..models.debate import RawDebate, SpeakerRef
from ..models.division import Division
from ..services.llm_client import LLMClient, LLMResult, LLMStatus
from . import taxonomy
from .context import resolve_speaker

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

MAX_KEYWORDS = 5

SYSTEM_PROMPT = (
    "You analyse UK parliamentary debates from Hansard transcripts for a general "
    "audience. Be accurate, neutral and concise, use British English, and refer "
    "to speakers exactly as named in the transcript."
)

TYPE_FOCUS = {
    "Prime Minister's Questions": "Focus on the main exchanges between the Prime Minister and the opposition.",
    "Urgent Question": "Focus on the urgent issue raised and the Government's response.",
    "Statement": "Focus on the announcement and the questions it prompted.",
    "Westminster Hall": "Focus on the constituency and policy concerns raised and the Minister's reply.",
    "Bill Reading": "Focus on the bill's purpose, its supporters and its critics.",
    "Debated Motion": "Focus on the motion, the arguments for and against, and the outcome.",
    "Lords Chamber": "Focus on the scrutiny offered by peers and any Government commitments.",
    "Grand Committee": "Focus on the detailed scrutiny of the legislation or instrument.",
}


@dataclass
class AnalysisContext:
    """Everything a generator needs about one debate."""
    debate: RawDebate
    debate_type: str
    transcript: str
    speakers: Dict[str, SpeakerRef] = field(default_factory=dict)
    divisions: Optional[List[Division]] = None

    @property
    def focus(self) -> str:
        return TYPE_FOCUS.get(
            self.debate_type,
            "Focus on the procedure used, the key arguments, ministerial responses and cross-party positions.",
        )

    def prompt(self, instructions: str) -> str:
        return f"Debate type: {self.debate_type}\n{self.focus}\n\n{instructions}\n\n{self.transcript}"


async def _complete(
    llm: LLMClient,
    name: str,
    ctx: AnalysisContext,
    instructions: str,
    schema: Type[M],
) -> Optional[LLMResult[M]]:
    try:
        result = await llm.parse(
            name=name,
            system=SYSTEM_PROMPT,
            prompt=ctx.prompt(instructions),
            schema=schema,
        )
    except LLMProviderError as exc:
        logger.warning("%s generator failed for %s, using defaults: %s", name, ctx.debate.ext_id, exc)
        return None

    if result.status == LLMStatus.REFUSAL:
        raise RefusalError(name, result.refusal or "refused")
    return result


def _load_json(raw: Optional[str]) -> Dict[str, Any]:
    try:
        data = json.loads(raw or "")
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def salvage_items(raw: Optional[str], key: str, item_model: Type[M]) -> List[M]:
    """Keep the individually valid entries of ``raw[key]``."""
    items = _load_json(raw).get(key)
    if not isinstance(items, list):
        return []
    kept: List[M] = []
    for item in items:
        try:
            kept.append(item_model.model_validate(item))
        except ValidationError:
            continue
    return kept


def _items(result: Optional[LLMResult], key: str, item_model: Type[M]) -> List[M]:
    if result is None:
        return []
    if result.status == LLMStatus.OK:
        return list(getattr(result.value, key))
    salvaged = salvage_items(result.raw, key, item_model)
    logger.info("Salvaged %s %s entries from invalid response", len(salvaged), key)
    return salvaged


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


async def generate_summary(llm: LLMClient, ctx: AnalysisContext) -> AISummary:
    result = await _complete(
        llm, "summary", ctx,
        "Write a short headline title and a three-sentence summary of this debate. "
        "Classify its tone as neutral, contentious or collaborative.",
        SummaryResponse,
    )
    if result is None:
        return AISummary()

    if result.status == LLMStatus.OK:
        value = result.value
        return AISummary(
            title=value.title.strip(),
            sentences=[s.strip() for s in (value.sentence1, value.sentence2, value.sentence3) if s.strip()],
            tone=value.tone,
            word_count=value.word_count,
        )

    data = _load_json(result.raw)
    sentences = [
        str(data[key]).strip() for key in ("sentence1", "sentence2", "sentence3")
        if isinstance(data.get(key), str) and data[key].strip()
    ]
    return AISummary(
        title=str(data.get("title") or "").strip(),
        sentences=sentences,
        tone=str(data.get("tone") or ""),
    )


async def generate_question(llm: LLMClient, ctx: AnalysisContext) -> SurveyQuestion:
    result = await _complete(
        llm, "question", ctx,
        "Write one neutral yes/no question a member of the public could vote on, "
        "about the central issue of this debate. Choose its topic and subtopics "
        "from this taxonomy:\n" + taxonomy.describe(),
        QuestionResponse,
    )
    if result is None:
        return SurveyQuestion()

    if result.status == LLMStatus.OK:
        body = result.value.question
        return SurveyQuestion(text=body.text.strip(), topic=body.topic, subtopics=body.subtopics)

    question = _load_json(result.raw).get("question")
    if isinstance(question, dict) and isinstance(question.get("text"), str):
        subtopics = question.get("subtopics")
        return SurveyQuestion(
            text=question["text"].strip(),
            topic=str(question.get("topic") or ""),
            subtopics=[s for s in subtopics if isinstance(s, str)] if isinstance(subtopics, list) else [],
        )
    return SurveyQuestion()


async def generate_topics(llm: LLMClient, ctx: AnalysisContext) -> List[TopicAnalysis]:
    result = await _complete(
        llm, "topics", ctx,
        "List the topics discussed, using only these topic names and their "
        "subtopics. For each topic give how often it came up and which speakers "
        "raised it, with the subtopics each speaker covered:\n" + taxonomy.describe(),
        TopicsResponse,
    )
    topics: List[TopicAnalysis] = []
    for item in _items(result, "topics", TopicItem):
        speakers = []
        for speaker in item.speakers:
            ref = resolve_speaker(speaker.name, ctx.speakers)
            speakers.append(TopicSpeaker(
                **ref.model_dump(),
                subtopics=speaker.subtopics,
                frequency=speaker.frequency,
            ))
        topics.append(TopicAnalysis(name=item.name, frequency=item.frequency, speakers=speakers))
    return topics


async def generate_key_points(llm: LLMClient, ctx: AnalysisContext) -> List[KeyPoint]:
    result = await _complete(
        llm, "key_points", ctx,
        "Extract the key points made in this debate. For each give the speaker, "
        "the speakers who supported or opposed it, brief context, and three to "
        "five keywords.",
        KeyPointsResponse,
    )
    points: List[KeyPoint] = []
    for item in _items(result, "key_points", KeyPointItem):
        keywords = [k.strip() for k in item.keywords if k and k.strip()][:MAX_KEYWORDS]
        points.append(KeyPoint(
            point=item.point.strip(),
            speaker=resolve_speaker(item.speaker, ctx.speakers),
            support=[resolve_speaker(name, ctx.speakers) for name in item.support if name],
            opposition=[resolve_speaker(name, ctx.speakers) for name in item.opposition if name],
            context=(item.context or "").strip() or None,
            keywords=keywords,
        ))
    return points


def _describe_divisions(divisions: List[Division]) -> str:
    lines = []
    for division in divisions:
        lines.append(
            f"- division_id: {division.external_id} (number {division.division_number}); "
            f"Ayes {division.ayes_count}, Noes {division.noes_count}; "
            f"text before vote: {division.text_before_vote or 'n/a'}"
        )
    return "\n".join(lines)


async def generate_division_questions(llm: LLMClient, ctx: AnalysisContext) -> List[DivisionQuestionItem]:
    if not ctx.divisions:
        return []

    result = await _complete(
        llm, "division_questions", ctx,
        "For each division below, write the question that was voted on in plain "
        "English, a taxonomy topic, short context, and one-sentence arguments for "
        "and against. Echo each division_id exactly.\n" + _describe_divisions(ctx.divisions),
        DivisionQuestionsResponse,
    )
    return _items(result, "questions", DivisionQuestionItem)


def _stable_comment_ids(items: List[CommentItem]) -> Dict[str, str]:
    """Map provider comment ids to ``c{n}`` / ``c{n}_r{m}``."""
    mapping: Dict[str, str] = {}
    top_level = 0
    replies: Dict[str, int] = {}
    for item in items:
        parent = mapping.get(item.parent_id) if item.parent_id else None
        if parent is None:
            top_level += 1
            mapping[item.id] = f"c{top_level}"
        else:
            replies[parent] = replies.get(parent, 0) + 1
            mapping[item.id] = f"{parent}_r{replies[parent]}"
    return mapping


async def generate_comment_thread(llm: LLMClient, ctx: AnalysisContext) -> List[Comment]:
    result = await _complete(
        llm, "comment_thread", ctx,
        "Recast this debate as a social media style comment thread. Each comment "
        "is written by a speaker from the debate, replies reference their parent "
        "comment id, and votes list the speakers who would up- or downvote it.",
        CommentThreadResponse,
    )
    items = _items(result, "comments", CommentItem)
    ids = _stable_comment_ids(items)

    comments: List[Comment] = []
    for item in items:
        comment_id = ids[item.id]
        comments.append(Comment(
            id=comment_id,
            parent_id=comment_id.rsplit("_r", 1)[0] if "_r" in comment_id else None,
            author=resolve_speaker(item.author, ctx.speakers),
            content=item.content.strip(),
            votes=CommentVotes(
                upvotes=item.votes.upvotes,
                upvotes_speakers=[resolve_speaker(n, ctx.speakers) for n in item.votes.upvotes_speakers],
                downvotes=item.votes.downvotes,
                downvotes_speakers=[resolve_speaker(n, ctx.speakers) for n in item.votes.downvotes_speakers],
            ),
            tags=item.tags,
        ))
    return comments
