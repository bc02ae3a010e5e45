"""
Plain-text rendering of processed debates for the semantic index.

Responsibility: Format one debate record as an index document
"""
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..models.division import Division
from ..models.vector import VectorDocument


def _describe(person: Mapping[str, Any]) -> str:
    return ", ".join(
        str(value) for value in (person.get("name"), person.get("party"), person.get("constituency")) if value
    )


def _keywords(key_points: Iterable[Mapping[str, Any]]) -> List[str]:
    keywords: List[str] = []
    for point in key_points:
        for keyword in point.get("keywords") or []:
            if keyword and keyword not in keywords:
                keywords.append(keyword)
    return keywords


def _metadata(record: Mapping[str, Any], keywords: List[str]) -> str:
    debate_date = record.get("date")
    date_line = f"Date: {debate_date}"
    if isinstance(debate_date, date):
        date_line = f"Date: {debate_date.isoformat()} ({debate_date.strftime('%A')})"
    lines = [
        f"Title: {record.get('title') or ''}",
        date_line,
        f"Type: {record.get('type') or ''}",
        f"Location: {record.get('location') or ''}",
        f"House: {record.get('house') or ''}",
    ]
    if keywords:
        lines.append(f"Keywords: {', '.join(keywords)}")
    return "\n".join(lines)


def _speakers(speakers: Iterable[Mapping[str, Any]]) -> str:
    lines = []
    for speaker in speakers:
        details = [value for value in (speaker.get("party"), speaker.get("constituency")) if value]
        suffix = f" ({', '.join(details)})" if details else ""
        lines.append(f"- {speaker.get('name')}{suffix}")
    return "\n".join(lines)


def _summary(record: Mapping[str, Any]) -> str:
    parts = [record.get("ai_title") or "", record.get("ai_summary") or ""]
    parts.append(f"Tone: {record.get('ai_tone') or 'neutral'}")
    return "\n\n".join(part for part in parts if part)


def _topics(topics: Iterable[Mapping[str, Any]]) -> str:
    blocks = []
    for topic in topics:
        lines = [f"{topic.get('name')}:"]
        for speaker in topic.get("speakers") or []:
            details = _describe(speaker)
            if speaker.get("subtopics"):
                details += f", discussing {', '.join(speaker['subtopics'])}"
            lines.append(f"  - {details}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _key_points(key_points: Iterable[Mapping[str, Any]]) -> str:
    blocks = []
    for point in key_points:
        lines = [f"Point: {point.get('point')}"]
        speaker = point.get("speaker") or {}
        if speaker.get("name"):
            lines.append(f"Made by: {_describe(speaker)}")
        if point.get("support"):
            lines.append("Supported by:")
            lines.extend(f"  - {_describe(person)}" for person in point["support"])
        if point.get("opposition"):
            lines.append("Opposed by:")
            lines.extend(f"  - {_describe(person)}" for person in point["opposition"])
        if point.get("keywords"):
            lines.append(f"Keywords: {', '.join(point['keywords'])}")
        if point.get("context"):
            lines.append(f"Context: {point['context']}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _divisions(divisions: Iterable[Division]) -> str:
    blocks = []
    for division in divisions:
        lines = [
            f"Division {division.division_number or division.external_id}: "
            f"Ayes {division.ayes_count}, Noes {division.noes_count}"
        ]
        if division.ai_question:
            lines.append(f"Question: {division.ai_question}")
        if division.ai_context:
            lines.append(f"Context: {division.ai_context}")
        arguments = division.ai_key_arguments or {}
        if arguments.get("for"):
            lines.append(f"For: {arguments['for']}")
        if arguments.get("against"):
            lines.append(f"Against: {arguments['against']}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_debate_for_vector(
    record: Mapping[str, Any],
    divisions: Optional[List[Division]] = None,
) -> VectorDocument:
    """Render a stored debate record as a markdown document."""
    key_points = record.get("ai_key_points") or []
    sections: Dict[str, str] = {
        "Metadata": _metadata(record, _keywords(key_points)),
        "Speakers": _speakers(record.get("speakers") or []),
        "Summary": _summary(record),
        "Topics": _topics(record.get("ai_topics") or []),
        "Key Points": _key_points(key_points),
    }
    if divisions:
        sections["Divisions"] = _divisions(divisions)

    content = "\n\n".join(f"# {title}\n\n{body}" for title, body in sections.items())
    return VectorDocument(
        ext_id=record["ext_id"],
        debate_date=record["date"],
        filename=f"{record['ext_id']}.txt",
        content=content,
    )
