"""
Debate eligibility and type classification.

Procedural sections (prayers, bold business headings, empty placeholders)
carry no debate worth analysing and are filtered out before any network or
AI work. Eligible debates get a human-readable type label derived from the
Hansard location, title and HRS tag.

Responsibility: Decide eligibility and derive debate type
"""
import logging
import re
from typing import Optional

from ..models.debate import DebateClassification, RawDebate
from ..utils.text import clean_html

logger = logging.getLogger(__name__)

GRAND_COMMITTEE = "Grand Committee"
LORDS_CHAMBER = "Lords Chamber"
PMQS = "Prime Minister's Questions"
GENERAL_DEBATE = "General Debate"

# Tags seen in the wild with a settled display name
KNOWN_TAGS = {
    "hs_2BillTitle": "Bill Reading",
    "hs_2cBillTitle": "Bill Reading",
    "hs_8Question": "Question",
    "hs_8Statement": "Written Statement",
    "hs_8Petition": "Petition",
    "hs_2cStatement": "Statement",
    "hs_2cUrgentQuestion": "Urgent Question",
    "hs_2DebBill": "Debated Bill",
    "hs_6bDepartment": "Department Question",
    "hs_2BusinessWODebate": "Business Without Debate",
    "hs_2cWestHallDebate": "Westminster Hall",
    "hs_2WestHallDebate": "Westminster Hall",
    "hs_2cGenericHdg": "General Debate",
    "hs_2cDebatedMotion": "Debated Motion",
    "hs_2DebatedMotion": "Debated Motion",
    "hs_3MainHdg": "Main",
    "hs_2GenericHdg": "Generic Debate",
}

# Used unpredictably on Lords sections; location is more reliable
UNINFORMATIVE_TAGS = {"NewDebate", "hs_Venue", "Venue"}

ABBREVIATIONS = (
    ("West Hall", "Westminster Hall"),
    ("Hdg", "Heading"),
    ("Deb ", "Debated "),
    ("WO ", "Without "),
)

_TAG_PREFIX = re.compile(r"^hs_\d*[a-z]?(?=[A-Z])")
_CASE_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def classify_debate(debate: RawDebate) -> DebateClassification:
    """Run the eligibility check and, if it passes, derive the type."""
    reason = ineligibility_reason(debate)
    if reason:
        logger.debug("Debate %s ineligible: %s", debate.ext_id, reason)
        return DebateClassification(eligible=False, reason=reason)
    return DebateClassification(eligible=True, type=get_debate_type(debate))


def ineligibility_reason(debate: RawDebate) -> Optional[str]:
    """
    Return why ``debate`` should be skipped, or ``None`` if it is eligible.

    Lower-chamber debates additionally need at least one attributed
    contribution unless they continue a preceding section.
    """
    overview = debate.overview

    if "Prayer" in overview.title:
        return "prayers"

    if overview.hrs_tag and "BigBold" in overview.hrs_tag:
        return "procedural heading"

    contributions = debate.contributions
    text = "".join(clean_html(item.value) for item in contributions)
    if not text.strip():
        return "no contribution text"

    if not debate.is_lords:
        attributed = any(item.member_id is not None for item in contributions)
        if not attributed and not overview.previous_debate_ext_id:
            return "no attributed speakers"

    return None


def humanize_tag(tag: str) -> str:
    """
    Turn an HRS tag into a display label.

    ``hs_2cUrgentQuestion`` -> ``Urgent Question``;
    ``hs_2BusinessWODebate`` -> ``Business Without Debate``.
    """
    if tag in KNOWN_TAGS:
        return KNOWN_TAGS[tag]

    stripped = _TAG_PREFIX.sub("", tag)
    if stripped.startswith("hs_"):
        stripped = stripped[3:]
    words = _CASE_BOUNDARY.sub(" ", stripped).replace("_", " ")
    words = " ".join(words.split()) + " "
    for short, full in ABBREVIATIONS:
        words = words.replace(short, full)
    return words.strip()


def get_debate_type(debate: RawDebate) -> str:
    """Derive the debate type. Pure: same input, same label."""
    overview = debate.overview
    location = overview.location or ""
    is_lords = debate.is_lords

    if GRAND_COMMITTEE in location:
        return GRAND_COMMITTEE
    if LORDS_CHAMBER in location:
        return LORDS_CHAMBER

    if "Prime Minister" in overview.title:
        return PMQS

    tag = overview.hrs_tag or ""
    if tag and tag not in UNINFORMATIVE_TAGS and "BigBold" not in tag:
        label = humanize_tag(tag)
        if label:
            return label

    if not is_lords:
        if "Public Bill Committees" in location:
            return "Public Bill Committees"
        if "General Committees" in location:
            return "General Committees"
    if "Westminster Hall" in location:
        return "Westminster Hall"

    return LORDS_CHAMBER if is_lords else GENERAL_DEBATE
