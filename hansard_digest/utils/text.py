"""
Text helpers shared by classification, context building and indexing.

Responsibility: Markup stripping and speaker name cleanup
"""
import re
from typing import Optional

from bs4 import BeautifulSoup

_HONORIFICS = re.compile(
    r"^(?:(?:the\s+)?right\s+hon\.?|hon\.?|sir|dame|dr\.?|mr\.?|mrs\.?|ms\.?|miss|lord|baroness|lady)\s+",
    re.IGNORECASE,
)
_TRAILING_PAREN = re.compile(r"\s*\([^)]*\)\s*$")
_PARTY_SUFFIX = re.compile(
    r"\s*(?:conservative|labour|liberal democrat|snp|democratic unionist party|green party|sinn féin)\s*$",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")


def clean_html(content: Optional[str]) -> str:
    """Strip markup and collapse whitespace."""
    if not content:
        return ""
    text = BeautifulSoup(content, "html.parser").get_text(" ", strip=True)
    return _WHITESPACE.sub(" ", text).strip()


def word_count(text: str) -> int:
    return len(text.split())


def clean_speaker_name(name: Optional[str]) -> str:
    """
    Normalize a speaker name for matching.

    Drops leading honorifics and trailing "(Party)" / "(Constituency)"
    parentheticals or party names, e.g. ``"Sir Keir Starmer (Holborn and
    St Pancras) (Lab)"`` -> ``"Keir Starmer"``. Returns the input unchanged
    when cleaning would leave nothing.
    """
    if not name:
        return ""
    cleaned = name.strip()
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _TRAILING_PAREN.sub("", cleaned)
        cleaned = _PARTY_SUFFIX.sub("", cleaned)
        cleaned = _HONORIFICS.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned or name.strip()
