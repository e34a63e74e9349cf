"""Unit tests for wiring the default search stack."""

import pytest

from entity_search import build_search_stack
from entity_search.config import Settings
from entity_search.domain.kinds import EntityKind
from entity_search.exceptions import ConfigurationError, SearchExecutionError
from entity_search.searchers import UserDocumentSearcher
from helpers import SAMPLE_ENTITIES


@pytest.fixture
def stack(settings):
    stack = build_search_stack(settings)
    stack.indexer.index_all(SAMPLE_ENTITIES)
    return stack


@pytest.mark.unit
class TestSearchStack:
    def test_registry_is_frozen_in_merge_order(self, stack):
        assert stack.registry.frozen
        assert stack.registry.kinds() == [EntityKind.API, EntityKind.APPLICATION, EntityKind.USER, EntityKind.PAGE]
        with pytest.raises(ConfigurationError):
            stack.registry.register(EntityKind.USER, UserDocumentSearcher(stack.index))

    def test_search_by_kind(self, stack):
        result = stack.search("doe", EntityKind.USER)

        assert result.document_ids == ("u-jane",)

    def test_default_page_size_comes_from_settings(self):
        stack = build_search_stack(Settings(default_page_size=1))
        stack.indexer.index_all(SAMPLE_ENTITIES)

        result = stack.search("payments")

        assert result.document_ids == ("api-pay",)
        assert result.total_hits == 3

    def test_closed_stack_reports_outage(self, stack):
        stack.close()

        with pytest.raises(SearchExecutionError):
            stack.search("payments")
