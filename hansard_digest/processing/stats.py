"""
Participation statistics for a debate.

Responsibility: Count speakers, contributions and party representation
"""
from dataclasses import dataclass, field
from typing import Dict, Mapping

from ..models.debate import Member, RawDebate


@dataclass
class DebateStats:
    """Speaker and party counts for one debate."""
    speaker_count: int = 0
    contribution_count: int = 0
    party_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def party_count(self) -> int:
        return len(self.party_counts)


def calculate_stats(debate: RawDebate, members: Mapping[int, Member]) -> DebateStats:
    """
    Count unique speakers, contributions and speakers per party.

    Party counts are over unique attributed speakers, so a member who
    speaks ten times counts once for their party. Speakers missing from
    ``members`` or without a party are not counted toward any party.
    """
    contributions = debate.contributions
    speaker_ids = debate.member_ids()

    party_counts: Dict[str, int] = {}
    for member_id in speaker_ids:
        member = members.get(member_id)
        if member and member.party:
            party_counts[member.party] = party_counts.get(member.party, 0) + 1

    return DebateStats(
        speaker_count=len(speaker_ids),
        contribution_count=len(contributions),
        party_counts=party_counts,
    )
