"""
Interest score calculation.

Composite score in [0, 1] ranking how engaging a debate is, from four
factors:

- controversy: tone of the exchange
- participation: speakers and contributions, saturating at 20 and 50
- diversity: party count and how evenly speakers spread across parties
- discussion: key points that drew support or opposition

Weights are fixed constants.

Responsibility: Score debates for ranking
"""
import math
from typing import Iterable, Mapping, Optional, Union

from pydantic import BaseModel

from ..models.analysis import KeyPoint, Tone

CONTROVERSY_BY_TONE = {
    Tone.CONTENTIOUS: 1.0,
    Tone.COLLABORATIVE: 0.3,
    Tone.NEUTRAL: 0.6,
}

WEIGHTS = {
    "controversy": 0.3,
    "participation": 0.2,
    "diversity": 0.2,
    "discussion": 0.3,
}

SPEAKER_SATURATION = 20
CONTRIBUTION_SATURATION = 50
PARTY_SATURATION = 6
ENTROPY_SATURATION = 2.0
DISCUSSION_SATURATION = 5


class InterestFactors(BaseModel):
    controversy: float
    participation: float
    diversity: float
    discussion: float


class InterestScore(BaseModel):
    score: float
    factors: InterestFactors


def shannon_entropy(party_counts: Mapping[str, int]) -> float:
    """Base-2 entropy of party shares; 0 for empty or single-party maps."""
    total = sum(count for count in party_counts.values() if count > 0)
    if total <= 0:
        return 0.0
    entropy = 0.0
    for count in party_counts.values():
        if count <= 0:
            continue
        share = count / total
        entropy -= share * math.log2(share)
    return max(entropy, 0.0)


def diversity_factor(party_counts: Mapping[str, int]) -> float:
    active = [count for count in party_counts.values() if count > 0]
    if not active:
        return 0.0
    breadth = min(len(active) / PARTY_SATURATION, 1.0)
    evenness = min(shannon_entropy(party_counts) / ENTROPY_SATURATION, 1.0)
    return 0.4 * breadth + 0.6 * evenness


def participation_factor(speaker_count: int, contribution_count: int) -> float:
    speakers = min(max(speaker_count, 0) / SPEAKER_SATURATION, 1.0)
    contributions = min(max(contribution_count, 0) / CONTRIBUTION_SATURATION, 1.0)
    return 0.4 * speakers + 0.6 * contributions


def discussion_factor(key_points: Optional[Iterable[KeyPoint]]) -> float:
    interactive = sum(1 for point in key_points or [] if point.has_interaction)
    return min(interactive / DISCUSSION_SATURATION, 1.0)


def calculate_interest_score(
    tone: Union[Tone, str, None],
    speaker_count: int,
    contribution_count: int,
    party_counts: Mapping[str, int],
    key_points: Optional[Iterable[KeyPoint]] = None,
) -> InterestScore:
    """
    Compute the composite interest score.

    Args:
        tone: Debate tone; anything unrecognised counts as neutral
        speaker_count: Unique speakers
        contribution_count: Contribution items
        party_counts: Speakers per party
        key_points: Extracted key points

    Returns:
        InterestScore with score and factors rounded to 2 decimals
    """
    factors = {
        "controversy": CONTROVERSY_BY_TONE[Tone.normalize(tone)],
        "participation": participation_factor(speaker_count, contribution_count),
        "diversity": diversity_factor(party_counts),
        "discussion": discussion_factor(key_points),
    }
    score = sum(WEIGHTS[name] * value for name, value in factors.items())
    score = min(max(score, 0.0), 1.0)

    return InterestScore(
        score=round(score, 2),
        factors=InterestFactors(**{name: round(value, 2) for name, value in factors.items()}),
    )
