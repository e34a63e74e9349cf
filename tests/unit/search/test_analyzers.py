"""Unit tests for analyzer pipelines and filters."""

import pytest

from entity_search.search.analyzers import (
    AnalyzerPipeline,
    KeywordAnalyzer,
    LowercaseFilter,
    RegexTokenizer,
    StandardAnalyzer,
    StopFilter,
    SuffixStemFilter,
    Token,
    get_analyzer,
)


def _texts(tokens):
    return [token.text for token in tokens]


@pytest.mark.unit
class TestRegexTokenizer:
    """Regex tokenizer should emit positions and char offsets."""

    def test_emits_tokens_with_offsets(self):
        tokens = list(RegexTokenizer()("hello there"))

        assert tokens == [
            Token(text="hello", position=0, start_char=0, end_char=5),
            Token(text="there", position=1, start_char=6, end_char=11),
        ]

    def test_punctuation_splits_words(self):
        assert _texts(RegexTokenizer()("john.smith@example.com")) == ["john", "smith", "example", "com"]


@pytest.mark.unit
class TestFilters:
    def test_lowercase_keeps_offsets(self):
        token = Token("JoHN", 3, 10, 14)

        (lowered,) = LowercaseFilter()([token])

        assert lowered == Token("john", 3, 10, 14)

    def test_stop_filter_uses_custom_vocabulary(self):
        tokens = [Token("keep", 0, 0, 4), Token("drop", 1, 5, 9)]

        assert _texts(StopFilter(["DROP"])(tokens)) == ["keep"]

    def test_stem_filter_requires_three_letter_stem(self):
        tokens = [Token(word, idx, 0, 0) for idx, word in enumerate(["payments", "processing", "is", "things"])]

        assert _texts(SuffixStemFilter()(tokens)) == ["payment", "process", "is", "thing"]


@pytest.mark.unit
class TestAnalyzers:
    def test_pipeline_renumbers_positions_after_stopwords(self):
        pipeline = AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter(), StopFilter()])

        tokens = pipeline("The Quick and the Brown")

        assert _texts(tokens) == ["quick", "brown"]
        assert [token.position for token in tokens] == [0, 1]

    def test_standard_analyzer_without_stemming(self):
        assert _texts(StandardAnalyzer()("Payments API")) == ["payments", "api"]

    def test_english_analyzer_stems(self):
        assert _texts(get_analyzer("english")("Processing payments")) == ["process", "payment"]

    def test_keyword_analyzer_keeps_whole_value(self):
        assert _texts(KeywordAnalyzer()("  John.Smith@Example.com ")) == ["john.smith@example.com"]

    def test_keyword_analyzer_blank_value(self):
        assert KeywordAnalyzer()("   ") == []


@pytest.mark.unit
class TestGetAnalyzer:
    def test_default_is_standard(self):
        assert get_analyzer(None) is get_analyzer("standard")

    def test_lookup_is_case_insensitive_and_shared(self):
        assert get_analyzer("KEYWORD") is get_analyzer("keyword")

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Unknown analyzer"):
            get_analyzer("klingon")
