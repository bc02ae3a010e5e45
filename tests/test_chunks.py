from hansard_digest.processing.chunks import (
    KEY_POINT_CHUNK,
    SUMMARY_CHUNK,
    build_debate_chunks,
    word_chunks,
)


def test_word_chunks_split_on_word_windows() -> None:
    chunks = word_chunks("one two  three\nfour five", max_words=2)

    assert [text for text, _, _ in chunks] == ["one two", "three four", "five"]
    assert chunks[1][1:] == (8, 18)
    assert word_chunks("   ") == []


def test_summary_and_key_points_become_chunks() -> None:
    record = {
        "ai_summary": "Members debated funding for rural bus routes.",
        "ai_key_points": [
            {
                "point": "Rural bus routes need long-term funding",
                "speaker": {"name": "Alice Smith", "member_id": 101, "party": "Labour"},
            },
            {"point": "  ", "speaker": {"name": "Bob Jones"}},
            {"point": "Fares should be capped", "speaker": "Carol White"},
        ],
    }

    chunks = build_debate_chunks(record)

    assert [(c.chunk_index, c.chunk_type) for c in chunks] == [
        (0, SUMMARY_CHUNK),
        (1, KEY_POINT_CHUNK),
        (2, KEY_POINT_CHUNK),
    ]
    assert chunks[0].token_count == 7
    assert (chunks[1].speaker_id, chunks[1].speaker_name, chunks[1].speaker_party) == (
        101, "Alice Smith", "Labour"
    )
    assert chunks[2].speaker_name is None
    assert all(chunk.embedding == [] for chunk in chunks)


def test_debate_without_ai_content_has_no_chunks() -> None:
    assert build_debate_chunks({"ai_summary": None, "ai_key_points": None}) == []
