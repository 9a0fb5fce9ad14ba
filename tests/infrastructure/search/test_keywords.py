"""Tests for claim keyword extraction."""

from verity.infrastructure.search.keywords import extract_keywords


def test_proper_nouns_come_first():
    keywords = extract_keywords("The population of Lisbon grew faster than Porto in 2020.")
    assert keywords == "Lisbon Porto population grew faster than 2020"


def test_stop_words_and_short_words_are_dropped():
    assert extract_keywords("it is a big day of us") == "big day"


def test_portuguese_stop_words():
    assert extract_keywords("O presidente de Portugal é eleito para um mandato") == "Portugal presidente eleito mandato"


def test_punctuation_is_stripped():
    assert extract_keywords('"Einstein" (physicist), said: "relativity!"') == "Einstein physicist said relativity"


def test_keyword_limit():
    claim = " ".join(f"word{i}" for i in range(20))
    assert len(extract_keywords(claim, max_keywords=5).split()) == 5


def test_nothing_left():
    assert extract_keywords("it is a of") == ""
