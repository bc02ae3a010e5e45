"""
Transcript rendering for AI prompts.

Groups consecutive contributions by speaker, renders them with member
details, and trims very long debates down to a word budget by keeping the
most substantive speeches.

Responsibility: Build the debate text handed to the LLM provider
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from ..models.debate import Member, RawDebate, SpeakerRef
from ..utils.text import clean_html, clean_speaker_name, word_count

logger = logging.getLogger(__name__)

_MINISTERIAL = re.compile(r"Minister|Secretary")
_FINANCIAL = re.compile(r"[0-9]+%|£[0-9]+|billion|million")
_LEGISLATIVE = re.compile(r"policy|legislation|amendment|bill", re.IGNORECASE)


@dataclass
class SpeakerTurn:
    """Consecutive contributions by one speaker."""
    speaker: SpeakerRef
    paragraphs: List[str] = field(default_factory=list)

    def render(self) -> str:
        header = (
            f"Speaker [ID: {self.speaker.member_id or 'N/A'}]: {self.speaker.name}, "
            f"Party: {self.speaker.party}, Constituency: {self.speaker.constituency}"
        )
        return header + "\n" + "\n".join(self.paragraphs)


def speaker_for(member_id: Optional[int], attributed_to: Optional[str], members: Mapping[int, Member]) -> SpeakerRef:
    member = members.get(member_id) if member_id is not None else None
    if member:
        return SpeakerRef.from_member(member)
    return SpeakerRef(name=clean_speaker_name(attributed_to) or "Unknown", member_id=member_id)


def group_turns(debate: RawDebate, members: Mapping[int, Member]) -> List[SpeakerTurn]:
    turns: List[SpeakerTurn] = []
    for item in debate.contributions:
        text = clean_html(item.value)
        if not text:
            continue
        speaker = speaker_for(item.member_id, item.attributed_to, members)
        if turns and turns[-1].speaker.name == speaker.name:
            turns[-1].paragraphs.append(text)
        else:
            turns.append(SpeakerTurn(speaker=speaker, paragraphs=[text]))
    return turns


def section_priority(section: str) -> int:
    priority = 0
    if _MINISTERIAL.search(section):
        priority += 5
    if _FINANCIAL.search(section):
        priority += 3
    if _LEGISLATIVE.search(section):
        priority += 2
    if "?" in section:
        priority += 1
    return priority


def trim_sections(sections: List[str], max_words: int) -> List[str]:
    """
    Fit ``sections`` into ``max_words``.

    Returned unchanged when already within budget. Otherwise the first
    section is always kept and the rest are admitted by descending priority
    while they fit, then put back in transcript order.
    """
    counts = [word_count(section) for section in sections]
    if sum(counts) <= max_words or not sections:
        return sections

    budget = max_words - counts[0]
    ranked = sorted(
        range(1, len(sections)),
        key=lambda index: section_priority(sections[index]),
        reverse=True,
    )
    kept = {0}
    for index in ranked:
        if counts[index] <= budget:
            kept.add(index)
            budget -= counts[index]

    logger.debug("Trimmed transcript to %s of %s sections", len(kept), len(sections))
    return [section for index, section in enumerate(sections) if index in kept]


def format_debate_context(
    debate: RawDebate,
    members: Mapping[int, Member],
    max_words: Optional[int] = None,
) -> str:
    """Render header and speaker turns, trimming if over ``max_words``."""
    overview = debate.overview
    house = "House of Lords" if debate.is_lords else "House of Commons"
    header = "\n\n".join([
        f"Title: {overview.title}",
        f"Location: {overview.location}",
        f"House: {house}",
        "Debate Transcript:",
    ])
    sections = [turn.render() for turn in group_turns(debate, members)]
    if sections:
        sections[0] = header + "\n\n" + sections[0]
    else:
        sections = [header]
    if max_words:
        sections = trim_sections(sections, max_words)
    return "\n\n".join(sections)


def build_speaker_index(debate: RawDebate, members: Mapping[int, Member]) -> Dict[str, SpeakerRef]:
    """Cleaned name -> speaker descriptor for every speaker in the debate."""
    index: Dict[str, SpeakerRef] = {}
    for item in debate.contributions:
        speaker = speaker_for(item.member_id, item.attributed_to, members)
        index.setdefault(clean_speaker_name(speaker.name).lower(), speaker)
    return index


def resolve_speaker(name: str, speakers: Mapping[str, SpeakerRef]) -> SpeakerRef:
    """Map a name from AI output back onto a known speaker if possible."""
    cleaned = clean_speaker_name(name)
    found = speakers.get(cleaned.lower())
    if found:
        return found
    return SpeakerRef(name=cleaned or name)
