import pytest

from hansard_digest.analysis import taxonomy


def test_catalogue_shape() -> None:
    assert len(taxonomy.TAXONOMY) == 8
    for subtopics in taxonomy.TAXONOMY.values():
        assert 4 <= len(subtopics) <= 5
        assert len(set(subtopics)) == len(subtopics)


def test_repair_filters_foreign_subtopics() -> None:
    repaired = taxonomy.repair_subtopics(
        "Healthcare and Social Welfare",
        ["Mental Health", "Transport", "Mental Health", "Social Care"],
    )

    assert repaired == ["Mental Health", "Social Care"]


def test_repair_substitutes_first_subtopic_when_nothing_valid() -> None:
    repaired = taxonomy.repair_subtopics("Science, Technology, and Innovation", ["Schools", ""])

    assert repaired == ["Digital and Data"]


def test_repair_never_leaves_invalid_or_empty_lists() -> None:
    candidates = [[], ["nonsense"], ["Transport", "Schools", "Sport"]]
    for topic in taxonomy.TOPIC_NAMES:
        for subtopics in candidates:
            repaired = taxonomy.repair_subtopics(topic, subtopics)
            assert repaired
            assert set(repaired) <= set(taxonomy.permitted_subtopics(topic))


def test_unknown_topic_raises() -> None:
    with pytest.raises(KeyError):
        taxonomy.repair_subtopics("Astrology", ["Horoscopes"])


def test_describe_lists_every_topic() -> None:
    description = taxonomy.describe()

    for topic in taxonomy.TOPIC_NAMES:
        assert topic in description
