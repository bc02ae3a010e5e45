"""
Embedding chunks for stored debates.

A debate contributes its AI summary (split into word windows when long)
and one chunk per key point, carrying the speaker who made it.

Responsibility: Turn a stored debate record into embeddable chunks
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models.vector import DebateChunk

SUMMARY_CHUNK = "summary"
KEY_POINT_CHUNK = "key_point"


def word_chunks(text: str, max_words: int = 750) -> List[Tuple[str, int, int]]:
    """
    Split ``text`` into windows of at most ``max_words`` words.

    Returns (chunk_text, start_char, end_char) with offsets into the
    whitespace-normalised text.
    """
    words = text.split()
    chunks: List[Tuple[str, int, int]] = []
    offset = 0
    for start in range(0, len(words), max_words):
        chunk = " ".join(words[start:start + max_words])
        chunks.append((chunk, offset, offset + len(chunk)))
        offset += len(chunk) + 1
    return chunks


def _speaker(point: Mapping[str, Any]) -> Dict[str, Any]:
    speaker = point.get("speaker")
    return speaker if isinstance(speaker, dict) else {}


def _member_id(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def build_debate_chunks(record: Mapping[str, Any], max_words: int = 750) -> List[DebateChunk]:
    chunks: List[DebateChunk] = []

    summary = (record.get("ai_summary") or "").strip()
    for text, _, _ in word_chunks(summary, max_words):
        chunks.append(DebateChunk(
            chunk_index=len(chunks),
            chunk_type=SUMMARY_CHUNK,
            chunk_text=text,
            token_count=len(text.split()),
        ))

    for point in record.get("ai_key_points") or []:
        text = (point.get("point") or "").strip() if isinstance(point, dict) else ""
        if not text:
            continue
        speaker = _speaker(point)
        chunks.append(DebateChunk(
            chunk_index=len(chunks),
            chunk_type=KEY_POINT_CHUNK,
            chunk_text=text,
            speaker_id=_member_id(speaker.get("member_id")),
            speaker_name=speaker.get("name") or None,
            speaker_party=speaker.get("party") or None,
            token_count=len(text.split()),
        ))

    return chunks
