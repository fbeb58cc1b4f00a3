import pytest

from interview.analyzer import (
    analyze,
    analyze_sentiment,
    average_sentence_words,
    calculate_specificity,
    count_enthusiasm,
    extract_keywords,
    extract_technical_terms,
    has_examples,
)

SCENARIO_B = "I led a team of 5 engineers, for example on Project X, using React and AWS."


def test_scenario_b_features():
    features = analyze(SCENARIO_B)
    assert {"react", "aws"} <= set(features.technical_terms)
    assert features.has_examples is True
    assert "team" in features.keywords
    assert "project" in features.keywords
    assert features.char_length == len(SCENARIO_B)


def test_analyze_is_pure():
    assert analyze(SCENARIO_B) == analyze(SCENARIO_B)


def test_keywords_match_both_directions():
    assert extract_keywords("Teamwork matters") == ["team"]
    assert extract_keywords("lead") == ["leadership"]


def test_technical_terms_ignore_unrelated_words():
    assert extract_technical_terms("Docker deployments") == ["docker"]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Excited and passionate!", "positive"),
        ("It was difficult and I struggled.", "negative"),
        ("I love this but it was difficult", "neutral"),
        ("Nothing remarkable here", "neutral"),
    ],
)
def test_sentiment_majority(text, expected):
    assert analyze_sentiment(text) == expected


def test_specificity_is_clamped():
    assert calculate_specificity("For example, the release went out.") == 1.0
    assert calculate_specificity("Maybe, perhaps it was fine.") == 0.0
    assert calculate_specificity("It went fine.") == 0.5


def test_specificity_counts_phrases_on_word_boundaries():
    # "concretely" is not the indicator "concrete"
    assert calculate_specificity("We spoke concretely") == 0.5
    assert calculate_specificity("A concrete plan, kind of") == 0.5


@pytest.mark.parametrize(
    "text",
    ["For example we shipped", "tools such as git", "like when we migrated", "Specifically the cache", "in one case"],
)
def test_example_patterns(text):
    assert has_examples(text)


def test_no_example_pattern():
    assert not has_examples("We shipped it on time.")


def test_enthusiasm_strips_punctuation():
    assert count_enthusiasm("Thrilled! I love it, amazing.") == 3


def test_average_sentence_words():
    assert average_sentence_words("") == 0.0
    assert average_sentence_words("...") == 0.0
    assert average_sentence_words("One two. Three four five!") == 2.5
