"""
Topic taxonomy for debate classification.

Eight fixed topics, each with its permitted subtopics. AI output is checked
against this catalogue; anything outside it is filtered or repaired before
storage.

Responsibility: Static topic/subtopic catalogue and validation helpers
"""
from typing import Dict, Iterable, List, Optional

TAXONOMY: Dict[str, List[str]] = {
    "Environment and Natural Resources": [
        "Climate Change and Net Zero",
        "Energy Policy",
        "Agriculture and Food",
        "Water and Flooding",
        "Biodiversity and Conservation",
    ],
    "Healthcare and Social Welfare": [
        "NHS Services",
        "Social Care",
        "Mental Health",
        "Public Health",
        "Welfare and Benefits",
    ],
    "Economy, Business, and Infrastructure": [
        "Public Finance and Taxation",
        "Trade and Industry",
        "Employment and Labour",
        "Transport",
        "Housing and Planning",
    ],
    "Science, Technology, and Innovation": [
        "Digital and Data",
        "Artificial Intelligence",
        "Research and Development",
        "Telecommunications",
    ],
    "Legal Affairs and Public Safety": [
        "Policing and Crime",
        "Justice and Courts",
        "Immigration and Borders",
        "Prisons and Probation",
        "Civil Liberties",
    ],
    "International Relations and Diplomacy": [
        "Defence and Security",
        "Foreign Policy",
        "International Development",
        "Trade Agreements",
        "Conflicts and Humanitarian Crises",
    ],
    "Parliamentary Affairs and Governance": [
        "Parliamentary Procedure",
        "Elections and Democracy",
        "Devolution and Local Government",
        "Standards and Ethics",
        "Constitutional Affairs",
    ],
    "Education, Culture, and Society": [
        "Schools",
        "Higher Education and Skills",
        "Arts, Culture and Media",
        "Sport",
        "Equality and Communities",
    ],
}

TOPIC_NAMES: List[str] = list(TAXONOMY)


def is_valid_topic(topic: Optional[str]) -> bool:
    return topic in TAXONOMY


def permitted_subtopics(topic: str) -> List[str]:
    return TAXONOMY.get(topic, [])


def repair_subtopics(topic: str, subtopics: Iterable[str]) -> List[str]:
    """
    Keep only subtopics permitted for ``topic``.

    Duplicates are dropped. When nothing valid remains the topic's first
    permitted subtopic is returned so the list is never empty.

    Raises:
        KeyError: if ``topic`` is not in the taxonomy
    """
    permitted = TAXONOMY[topic]
    kept: List[str] = []
    for subtopic in subtopics or []:
        if subtopic in permitted and subtopic not in kept:
            kept.append(subtopic)
    return kept or [permitted[0]]


def describe() -> str:
    """Render the taxonomy for inclusion in prompts."""
    lines = []
    for topic, subtopics in TAXONOMY.items():
        lines.append(f"- {topic}: {', '.join(subtopics)}")
    return "\n".join(lines)
