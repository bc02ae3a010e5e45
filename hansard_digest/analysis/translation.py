"""
American to British spelling normalization for AI output.

The provider tends to answer in American English; stored text should read
like Hansard. Substitution is whole-word and case-insensitive, keeps the
casing of the original word, and is idempotent because no British spelling
in the table is itself a key.

Responsibility: Deterministic lexical substitution over AI free text
"""
import re
from typing import Any, Dict, FrozenSet

US_TO_GB: Dict[str, str] = {
    "acknowledgment": "acknowledgement",
    "aging": "ageing",
    "airplane": "aeroplane",
    "aluminum": "aluminium",
    "analyze": "analyse",
    "analyzed": "analysed",
    "analyzes": "analyses",
    "analyzing": "analysing",
    "apologize": "apologise",
    "apologized": "apologised",
    "authorization": "authorisation",
    "authorize": "authorise",
    "authorized": "authorised",
    "behavior": "behaviour",
    "behavioral": "behavioural",
    "behaviors": "behaviours",
    "canceled": "cancelled",
    "canceling": "cancelling",
    "catalog": "catalogue",
    "center": "centre",
    "centered": "centred",
    "centers": "centres",
    "civilization": "civilisation",
    "color": "colour",
    "colors": "colours",
    "counselor": "counsellor",
    "criticize": "criticise",
    "criticized": "criticised",
    "criticizing": "criticising",
    "defense": "defence",
    "emphasize": "emphasise",
    "emphasized": "emphasised",
    "emphasizing": "emphasising",
    "endeavor": "endeavour",
    "enrollment": "enrolment",
    "favor": "favour",
    "favorable": "favourable",
    "favored": "favoured",
    "favorite": "favourite",
    "fulfill": "fulfil",
    "fulfillment": "fulfilment",
    "harbor": "harbour",
    "honor": "honour",
    "honorable": "honourable",
    "honored": "honoured",
    "humor": "humour",
    "installment": "instalment",
    "labor": "labour",
    "labeled": "labelled",
    "maneuver": "manoeuvre",
    "maximize": "maximise",
    "minimize": "minimise",
    "mobilize": "mobilise",
    "modeled": "modelled",
    "modeling": "modelling",
    "modernize": "modernise",
    "modernized": "modernised",
    "neighbor": "neighbour",
    "neighborhood": "neighbourhood",
    "neighborhoods": "neighbourhoods",
    "neighbors": "neighbours",
    "offense": "offence",
    "organization": "organisation",
    "organizations": "organisations",
    "organize": "organise",
    "organized": "organised",
    "organizing": "organising",
    "pediatric": "paediatric",
    "prioritize": "prioritise",
    "prioritized": "prioritised",
    "prioritizing": "prioritising",
    "privatization": "privatisation",
    "privatize": "privatise",
    "program": "programme",
    "programs": "programmes",
    "realize": "realise",
    "realized": "realised",
    "recognize": "recognise",
    "recognized": "recognised",
    "recognizes": "recognises",
    "rumor": "rumour",
    "skillful": "skilful",
    "stabilize": "stabilise",
    "theater": "theatre",
    "traveled": "travelled",
    "traveling": "travelling",
    "utilize": "utilise",
    "utilized": "utilised",
}

# Keys whose values are identifiers, names or taxonomy labels
UNTRANSLATED_KEYS: FrozenSet[str] = frozenset({
    "id",
    "parent_id",
    "division_id",
    "member_id",
    "name",
    "party",
    "constituency",
    "topic",
    "subtopics",
    "tone",
})

_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(map(re.escape, US_TO_GB), key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)


def _match_case(original: str, replacement: str) -> str:
    if original.isupper() and len(original) > 1:
        return replacement.upper()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


def _substitute(match: "re.Match[str]") -> str:
    word = match.group(0)
    return _match_case(word, US_TO_GB[word.lower()])


def translate(text: str) -> str:
    """Return ``text`` with American spellings replaced by British ones."""
    if not text:
        return text
    return _PATTERN.sub(_substitute, text)


def translate_content(value: Any, key: str = "") -> Any:
    """
    Recursively translate every free-text string in a JSON-like structure.

    Values under keys in ``UNTRANSLATED_KEYS`` are returned unchanged.
    """
    if key in UNTRANSLATED_KEYS:
        return value
    if isinstance(value, str):
        return translate(value)
    if isinstance(value, list):
        return [translate_content(item, key) for item in value]
    if isinstance(value, dict):
        return {k: translate_content(v, k) for k, v in value.items()}
    return value
