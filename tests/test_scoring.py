from hansard_digest.models.analysis import KeyPoint
from hansard_digest.models.debate import SpeakerRef
from hansard_digest.processing.scoring import calculate_interest_score, shannon_entropy
from hansard_digest.processing.stats import calculate_stats

from helpers import MEMBERS, contribution, make_debate


def _key_point(interactive: bool) -> KeyPoint:
    other = [SpeakerRef(name="Bob Jones")] if interactive else []
    return KeyPoint(point="A point", speaker=SpeakerRef(name="Alice Smith"), support=other)


def test_empty_debate_scores_only_neutral_tone() -> None:
    result = calculate_interest_score("neutral", 0, 0, {}, [])

    assert result.score == 0.18
    assert result.factors.diversity == 0.0
    assert result.factors.participation == 0.0


def test_score_saturates_at_one() -> None:
    parties = {name: 3 for name in ("Lab", "Con", "LD", "SNP", "Green", "DUP")}
    key_points = [_key_point(True) for _ in range(8)]

    result = calculate_interest_score("contentious", 40, 100, parties, key_points)

    assert result.score == 1.0
    assert result.factors.discussion == 1.0


def test_worked_example_rounds_to_two_decimals() -> None:
    result = calculate_interest_score("collaborative", 10, 25, {"Labour": 1, "Conservative": 1})

    assert result.factors.controversy == 0.3
    assert result.factors.participation == 0.5
    assert result.factors.diversity == 0.43
    assert result.score == 0.28


def test_unknown_tone_counts_as_neutral() -> None:
    assert calculate_interest_score("heated", 5, 5, {}).factors.controversy == 0.6


def test_only_interactive_key_points_count_towards_discussion() -> None:
    points = [_key_point(True), _key_point(False), _key_point(True)]

    assert calculate_interest_score("neutral", 1, 1, {}, points).factors.discussion == 0.4


def test_score_always_within_bounds() -> None:
    for tone in ("neutral", "contentious", "collaborative", None):
        for speakers in (0, 3, 500):
            result = calculate_interest_score(tone, speakers, speakers * 3, {"A": speakers, "B": 1})
            assert 0.0 <= result.score <= 1.0


def test_entropy() -> None:
    assert shannon_entropy({}) == 0.0
    assert shannon_entropy({"Labour": 12}) == 0.0
    assert shannon_entropy({"Labour": 5, "Conservative": 5}) == 1.0
    assert shannon_entropy({"Labour": 9, "Conservative": 1}) < shannon_entropy({"Labour": 6, "Conservative": 4})


def test_stats_count_unique_speakers_per_party() -> None:
    debate = make_debate(items=[
        contribution("First.", 101),
        contribution("Second.", 102),
        contribution("Third.", 101),
        contribution("Intervention.", attributed_to="Mr Speaker"),
    ])

    stats = calculate_stats(debate, MEMBERS)

    assert stats.speaker_count == 2
    assert stats.contribution_count == 4
    assert stats.party_counts == {"Labour": 1, "Conservative": 1}
    assert stats.party_count == 2
