"""Unit tests for the classic query parser and literal escaping."""

import pytest

from entity_search.search.parser import RESERVED_CHARACTERS, QueryParseError, QueryParser, escape_literal
from entity_search.search.query import (
    BooleanClause,
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PhraseQuery,
    TermQuery,
    WildcardQuery,
)


def _walk(query):
    yield query
    if isinstance(query, BooleanQuery):
        for clause in query.clauses:
            yield from _walk(clause.query)


@pytest.fixture
def parser(schema):
    return QueryParser(schema, [("firstname", 1.0)])


@pytest.fixture
def names_parser(schema):
    return QueryParser(schema, [("firstname", 1.0), ("lastname", 2.0)])


@pytest.mark.unit
class TestTerms:
    def test_single_field_term_is_analyzed(self, parser):
        assert parser.parse("John") == TermQuery("firstname", "john")

    def test_term_searches_every_default_field(self, names_parser):
        assert names_parser.parse("john") == BooleanQuery.of(
            (TermQuery("firstname", "john"), Occur.SHOULD),
            (TermQuery("lastname", "john", boost=2.0), Occur.SHOULD),
        )

    def test_field_prefix_overrides_defaults(self, names_parser):
        assert names_parser.parse("email:John@Example.com") == TermQuery("email", "john@example.com")

    def test_phrase_on_text_field(self, schema):
        parser = QueryParser(schema, [("displayname", 1.0)])

        assert parser.parse('"John Smith"') == PhraseQuery("displayname", ("john", "smith"))

    def test_stopword_only_text_yields_empty_query(self, parser):
        assert parser.parse("the") == BooleanQuery(())

    def test_boost_multiplies_clause(self, parser):
        assert parser.parse("john^2") == TermQuery("firstname", "john", boost=2.0)


@pytest.mark.unit
class TestOperators:
    def test_default_operator_is_or(self, parser):
        query = parser.parse("john jane")

        assert [clause.occur for clause in query.clauses] == [Occur.SHOULD, Occur.SHOULD]

    def test_and_promotes_both_sides(self, parser):
        query = parser.parse("john AND jane")

        assert query == BooleanQuery.of(
            (TermQuery("firstname", "john"), Occur.MUST),
            (TermQuery("firstname", "jane"), Occur.MUST),
        )

    def test_symbolic_operators(self, parser):
        assert parser.parse("john && jane") == parser.parse("john AND jane")
        assert parser.parse("john || jane") == parser.parse("john OR jane")

    def test_plus_and_minus_modifiers(self, parser):
        query = parser.parse("+john -jane")

        assert query.clauses == (
            BooleanClause(TermQuery("firstname", "john"), Occur.MUST),
            BooleanClause(TermQuery("firstname", "jane"), Occur.MUST_NOT),
        )

    def test_lone_negation_is_kept_as_boolean(self, parser):
        assert parser.parse("NOT jane") == BooleanQuery.of((TermQuery("firstname", "jane"), Occur.MUST_NOT))
        assert parser.parse("!jane") == parser.parse("NOT jane")

    def test_grouping(self, parser):
        query = parser.parse("(john OR jane) AND smith")

        assert query.clauses[0].occur == Occur.MUST
        assert isinstance(query.clauses[0].query, BooleanQuery)
        assert query.clauses[1] == BooleanClause(TermQuery("firstname", "smith"), Occur.MUST)

    def test_hyphen_inside_word_is_not_an_operator(self, parser):
        query = parser.parse("jean-luc")

        assert query == BooleanQuery.of(
            (TermQuery("firstname", "jean"), Occur.SHOULD),
            (TermQuery("firstname", "luc"), Occur.SHOULD),
        )


@pytest.mark.unit
class TestFuzzyAndWildcard:
    def test_wildcard_term(self, parser):
        assert parser.parse("Jo*n") == WildcardQuery("firstname", "jo*n")

    def test_fuzzy_uses_default_similarity(self, parser):
        assert parser.parse("jonh~") == FuzzyQuery("firstname", "jonh", 0.6)

    def test_fuzzy_with_explicit_similarity(self, parser):
        assert parser.parse("jonh~0.8") == FuzzyQuery("firstname", "jonh", 0.8)

    def test_fuzzy_with_edit_count(self, parser):
        assert parser.parse("jonh~1") == FuzzyQuery("firstname", "jonh", 0.75)

    def test_leading_wildcard_can_be_disabled(self, schema):
        strict = QueryParser(schema, [("firstname", 1.0)], allow_leading_wildcard=False)

        with pytest.raises(QueryParseError, match="leading wildcards"):
            strict.parse("*son")


@pytest.mark.unit
class TestParseErrors:
    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("AND", "unexpected operator"),
            ("john AND", "dangling operator"),
            ("john AND OR jane", "unexpected operator"),
            ("(john", "unbalanced opening"),
            ("john)", "unbalanced closing"),
            ("[a TO b]", "range queries"),
            ('"john', "unterminated phrase"),
            ('"john smith"~2', "proximity"),
            ("firstname:", "has no value"),
            ("john\\", "dangling escape"),
            ("+", "missing its operand"),
            ("~", "requires a term"),
            ("^2", "unexpected"),
        ],
    )
    def test_malformed_queries(self, parser, text, message):
        with pytest.raises(QueryParseError, match=message):
            parser.parse(text)

    def test_error_carries_position(self, parser):
        with pytest.raises(QueryParseError) as excinfo:
            parser.parse("john)")

        assert excinfo.value.position == 4
        assert excinfo.value.text == "john)"

    def test_parser_requires_default_fields(self, schema):
        with pytest.raises(ValueError, match="default field"):
            QueryParser(schema, [])


@pytest.mark.unit
class TestEscapeLiteral:
    def test_every_reserved_character_is_escaped(self):
        for char in RESERVED_CHARACTERS:
            assert escape_literal(char) == f"\\{char}"

    def test_plain_text_is_untouched(self):
        assert escape_literal("john smith") == "john smith"

    @pytest.mark.parametrize(
        "text",
        [
            "jo*n",
            "a:b",
            "(unbalanced",
            'quote"d',
            "x~",
            "[1 TO 5]",
            "{a}",
            "a^2",
            "+-!",
            "path/to",
            "a && b || c",
            "back\\slash",
            "?",
            "*",
            "~0.5",
        ],
    )
    def test_escaped_text_parses_as_plain_terms(self, names_parser, text):
        query = names_parser.parse(escape_literal(text))

        for node in _walk(query):
            assert not isinstance(node, (WildcardQuery, FuzzyQuery))
            if isinstance(node, BooleanQuery):
                assert all(clause.occur == Occur.SHOULD for clause in node.clauses)
