from hansard_digest.analysis.translation import US_TO_GB, translate, translate_content


def test_translate_whole_words_preserving_case() -> None:
    text = "The Organization will Analyze the DEFENSE program."

    assert translate(text) == "The Organisation will Analyse the DEFENCE programme."


def test_translate_leaves_partial_words_alone() -> None:
    assert translate("colorful colors") == "colorful colours"


def test_translate_is_idempotent() -> None:
    text = "We analyze the color of the center and its defense organizations."

    once = translate(text)

    assert translate(once) == once


def test_no_replacement_is_itself_replaced() -> None:
    assert not set(US_TO_GB.values()) & set(US_TO_GB)


def test_translate_content_skips_identifiers_and_names() -> None:
    content = {
        "summary": {"title": "Center of attention", "tone": "neutral"},
        "topics": [{
            "name": "Defense Center",
            "speakers": [{"name": "Ann Color", "party": "Labor", "subtopics": ["Program"]}],
        }],
        "comments": [{"id": "c1", "content": "I favor this."}],
    }

    translated = translate_content(content)

    assert translated["summary"]["title"] == "Centre of attention"
    assert translated["topics"][0]["name"] == "Defense Center"
    assert translated["topics"][0]["speakers"][0] == {"name": "Ann Color", "party": "Labor", "subtopics": ["Program"]}
    assert translated["comments"][0] == {"id": "c1", "content": "I favour this."}
