"""Unit tests for entity -> document transformers and the indexing path."""

import pytest

from entity_search.domain.kinds import EntityKind
from entity_search.transformers import (
    ApiDocumentTransformer,
    EntityIndexer,
    EntityTransformError,
    PageDocumentTransformer,
    UserDocumentTransformer,
)
from helpers import SAMPLE_ENTITIES


@pytest.mark.unit
class TestTransformers:
    def test_user_display_name_defaults_to_full_name(self):
        document = UserDocumentTransformer().transform({"id": "u1", "firstname": " John ", "lastname": "Smith"})

        assert document == {
            "id": "u1",
            "type": "user",
            "firstname": "John",
            "lastname": "Smith",
            "displayname": "John Smith",
        }

    def test_api_owner_and_lists(self):
        document = ApiDocumentTransformer().transform(
            {"id": 7, "name": "Payments", "owner": {"username": "jdoe"}, "labels": "finance", "tags": []}
        )

        assert document == {"id": "7", "type": "api", "name": "Payments", "owner": "jdoe", "labels": ["finance"]}

    def test_missing_id(self):
        with pytest.raises(EntityTransformError, match="no id"):
            PageDocumentTransformer().transform({"name": "Intro"})

    def test_handles_only_its_kind(self):
        assert PageDocumentTransformer().handles(EntityKind.PAGE)
        assert not PageDocumentTransformer().handles(EntityKind.API)


@pytest.mark.unit
class TestEntityIndexer:
    def test_index_all(self, index):
        report = EntityIndexer(index).index_all(SAMPLE_ENTITIES)

        assert report.documents_indexed == len(SAMPLE_ENTITIES)
        assert report.documents_skipped == 0
        assert index.get_document("api-pay")["name"] == "Payments"

    def test_bad_entities_are_skipped_and_reported(self, index):
        report = EntityIndexer(index).index_all(
            [
                {"id": "u1", "type": "user", "firstname": "John"},
                {"id": "x1", "type": "dashboard"},
                {"id": "x2"},
                {"type": "page", "name": "Anonymous"},
            ]
        )

        assert report.documents_indexed == 1
        assert report.documents_skipped == 3
        assert any("Unknown entity type" in error for error in report.errors)
        assert len(index) == 1

    def test_type_is_case_insensitive(self, index):
        EntityIndexer(index).index_entity({"id": "p1", "type": " PAGE ", "name": "Intro"})

        assert index.get_document("p1")["type"] == "page"

    def test_missing_transformer(self, index):
        indexer = EntityIndexer(index, [UserDocumentTransformer()])

        with pytest.raises(EntityTransformError, match="No transformer registered for api"):
            indexer.index_entity({"id": "a1", "type": "api"})

    def test_remove(self, populated_index):
        indexer = EntityIndexer(populated_index)

        assert indexer.remove("u-john") is True
        assert indexer.remove("u-john") is False
