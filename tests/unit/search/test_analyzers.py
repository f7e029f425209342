"""Unit tests for analyzers."""

import pytest

from object_search.search.analyzers import (
    StandardAnalyzer,
    StopFilter,
    Token,
    WhitespaceAnalyzer,
    analyze_words,
    get_analyzer,
)


def test_standard_analyzer_lowercases_and_numbers_positions():
    tokens = StandardAnalyzer()("Acme Corp, Ltd.")

    assert [token.text for token in tokens] == ["acme", "corp", "ltd"]
    assert [token.position for token in tokens] == [0, 1, 2]
    assert tokens[1].start_char == 5
    assert tokens[1].end_char == 9


def test_standard_analyzer_keeps_stopwords_by_default():
    assert analyze_words(StandardAnalyzer(), "Bank of America") == ["bank", "of", "america"]


def test_english_analyzer_removes_stopwords_and_renumbers():
    tokens = get_analyzer("english")("Bank of America")

    assert [token.text for token in tokens] == ["bank", "america"]
    assert [token.position for token in tokens] == [0, 1]


def test_whitespace_analyzer_keeps_punctuation():
    assert analyze_words(WhitespaceAnalyzer(), "AT&T Inc.") == ["at&t", "inc."]


def test_stop_filter_accepts_custom_vocabulary():
    tokens = [Token(text=word, position=i, start_char=0, end_char=0) for i, word in enumerate(["the", "acme"])]

    assert [token.text for token in StopFilter(["acme"])(tokens)] == ["the"]


def test_get_analyzer_defaults_and_is_case_insensitive():
    assert isinstance(get_analyzer(None), StandardAnalyzer)
    assert isinstance(get_analyzer("Whitespace"), WhitespaceAnalyzer)


def test_get_analyzer_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown analyzer"):
        get_analyzer("klingon")


def test_analyze_words_on_punctuation_only_text_is_empty():
    assert analyze_words(StandardAnalyzer(), " -- !! ") == []
