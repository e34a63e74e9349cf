"""Unit tests for schema definitions, scoring primitives and query rendering."""

import math

import pytest

from entity_search.search.query import BooleanQuery, FuzzyQuery, Occur, PhraseQuery, TermQuery, WildcardQuery
from entity_search.search.schema import (
    ID_FIELD,
    TYPE_FIELD,
    FieldType,
    KeywordField,
    Schema,
    TextField,
    create_default_schema,
)
from entity_search.search.scoring import FieldStats, bm25, idf


@pytest.mark.unit
class TestSchema:
    def test_reserved_fields_are_added(self):
        schema = Schema(fields=(TextField("title"),))

        assert ID_FIELD in schema
        assert TYPE_FIELD in schema
        assert schema[TYPE_FIELD].field_type == FieldType.KEYWORD
        assert schema[TYPE_FIELD].stored is True
        assert len(schema) == 3
        assert [field.name for field in schema] == [ID_FIELD, TYPE_FIELD, "title"]

    @pytest.mark.parametrize("name", ["title", ID_FIELD])
    def test_duplicate_or_reserved_names_are_rejected(self, name):
        with pytest.raises(ValueError, match="Duplicate or reserved"):
            Schema(fields=(TextField("title"), KeywordField(name)))

    def test_analyzer_lookup(self):
        schema = create_default_schema()

        assert schema.analyzer_for("email") == "keyword"
        assert schema.analyzer_for("description") == "english"
        assert schema.analyzer_for("firstname") == "standard"
        assert schema.analyzer_for("missing") == "standard"

    def test_default_schema_stores_names(self):
        schema = create_default_schema()

        assert schema["name"].stored is True
        assert schema["content"].stored is False


@pytest.mark.unit
class TestScoring:
    def test_idf_matches_lucene_formula(self):
        assert idf(1, 10) == pytest.approx(math.log(1 + 9.5 / 1.5))

    def test_idf_is_positive_for_common_terms(self):
        assert idf(10, 10) > 0

    def test_idf_degenerate_inputs(self):
        assert idf(0, 10) == 0.0
        assert idf(1, 0) == 0.0

    def test_bm25_saturates(self):
        assert bm25(1, 10, 10.0) < bm25(2, 10, 10.0) < bm25(50, 10, 10.0) < 2.2

    def test_bm25_penalizes_long_fields(self):
        assert bm25(1, 2, 10.0) > bm25(1, 20, 10.0)

    def test_field_stats_average(self):
        assert FieldStats(total_terms=9, document_count=3).average_length == 3.0
        assert FieldStats(total_terms=0, document_count=0).average_length == 0.0


@pytest.mark.unit
class TestQueryRendering:
    def test_leaf_queries(self):
        assert str(TermQuery("name", "pay")) == "name:pay"
        assert str(TermQuery("name", "pay", boost=2.0)) == "name:pay^2"
        assert str(PhraseQuery("name", ("a", "b"))) == 'name:"a b"'
        assert str(FuzzyQuery("name", "jonh")) == "name:jonh~0.6"
        assert str(WildcardQuery("name", "*pay*", boost=0.5)) == "name:*pay*^0.5"

    def test_boolean_query(self):
        inner = BooleanQuery.of((TermQuery("a", "x"), Occur.SHOULD), (TermQuery("b", "y"), Occur.SHOULD))
        query = BooleanQuery.of((inner, Occur.MUST), (TermQuery("type", "user"), Occur.MUST_NOT))

        assert str(query) == "+(a:x b:y) -type:user"
        assert str(BooleanQuery.of((TermQuery("a", "x"), Occur.MUST), boost=2.0)) == "(+a:x)^2"

    def test_empty_boolean(self):
        assert BooleanQuery(()).is_empty()
        assert not BooleanQuery.of((TermQuery("a", "x"), Occur.SHOULD)).is_empty()
