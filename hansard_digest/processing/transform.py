"""
Debate record assembly.

Flattens a classified, analysed debate into the column values of the
``debates`` table. AI columns are only present when their generator ran,
which lets the persistence merge keep stored values for everything else.

Responsibility: Build the datastore record for one debate
"""
from typing import Any, Dict, List, Mapping, Optional

from ..analysis.context import speaker_for
from ..models.analysis import AIContent
from ..models.debate import Member, RawDebate
from .scoring import InterestScore
from .stats import DebateStats


def debate_speakers(debate: RawDebate, members: Mapping[int, Member]) -> List[Dict[str, Any]]:
    """Unique speakers in order of first contribution."""
    speakers: List[Dict[str, Any]] = []
    seen = set()
    for item in debate.contributions:
        speaker = speaker_for(item.member_id, item.attributed_to, members)
        key = speaker.member_id or speaker.name
        if not speaker.name or key in seen:
            continue
        seen.add(key)
        speakers.append(speaker.model_dump())
    return speakers


def build_search_text(record: Mapping[str, Any]) -> str:
    """Title, summary, key points and topic names as one searchable string."""
    parts = [record.get("title") or "", record.get("ai_title") or "", record.get("ai_summary") or ""]
    for point in record.get("ai_key_points") or []:
        parts.append(point.get("point") or "")
        parts.extend(point.get("keywords") or [])
    for topic in record.get("ai_topics") or []:
        parts.append(topic.get("name") or "")
    return " ".join(part.strip() for part in parts if part and part.strip())


def build_debate_record(
    debate: RawDebate,
    debate_type: str,
    stats: DebateStats,
    members: Mapping[int, Member],
    content: Optional[AIContent] = None,
    interest: Optional[InterestScore] = None,
) -> Dict[str, Any]:
    """
    Column values for ``debate``.

    ``None`` values are left out of the write by the persistence merge, so
    generators that did not run never blank stored AI columns.
    """
    overview = debate.overview
    sitting_date = overview.sitting_date
    parent = debate.parent

    record: Dict[str, Any] = {
        "ext_id": debate.ext_id,
        "title": overview.title,
        "date": sitting_date,
        "day_of_week": sitting_date.strftime("%A") if sitting_date else None,
        "start_time": debate.start_time,
        "type": debate_type,
        "house": overview.house,
        "location": overview.location,
        "speaker_count": stats.speaker_count,
        "contribution_count": stats.contribution_count,
        "party_count": dict(stats.party_counts),
        "speakers": debate_speakers(debate, members),
        "parent_ext_id": parent.external_id if parent else None,
        "parent_title": parent.title if parent else None,
        "prev_ext_id": overview.previous_debate_ext_id,
        "next_ext_id": overview.next_debate_ext_id,
    }

    if interest is not None:
        record["interest_score"] = interest.score
        record["interest_factors"] = interest.factors.model_dump()

    if content is not None:
        if content.summary is not None:
            record["ai_title"] = content.summary.title
            record["ai_summary"] = content.summary.text
            record["ai_tone"] = content.tone.value
        if content.question is not None:
            record["ai_question"] = content.question.text
            record["ai_question_topic"] = content.question.topic
            record["ai_question_subtopics"] = list(content.question.subtopics)
        if content.topics is not None:
            record["ai_topics"] = [topic.model_dump() for topic in content.topics]
        if content.key_points is not None:
            record["ai_key_points"] = [point.model_dump() for point in content.key_points]
        if content.comment_thread is not None:
            record["ai_comment_thread"] = [comment.model_dump() for comment in content.comment_thread]

    record["search_text"] = build_search_text(record)
    return record
