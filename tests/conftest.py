"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
from pathlib import Path
import sys

import pytest


TESTS_ROOT = Path(__file__).resolve().parent
if str(TESTS_ROOT) not in sys.path:
    sys.path.insert(0, str(TESTS_ROOT))

from entity_search.config import Settings  # noqa: E402
from entity_search.search.index import SearchIndex  # noqa: E402
from entity_search.search.schema import create_default_schema  # noqa: E402
from entity_search.transformers import EntityIndexer  # noqa: E402
from helpers import SAMPLE_ENTITIES  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep ENTITY_SEARCH_* variables and any local .env out of tests."""
    for key in list(os.environ):
        if key.startswith("ENTITY_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def schema():
    return create_default_schema()


@pytest.fixture
def index(schema) -> SearchIndex:
    return SearchIndex(schema)


@pytest.fixture
def populated_index(index) -> SearchIndex:
    report = EntityIndexer(index).index_all(SAMPLE_ENTITIES)
    assert report.documents_indexed == len(SAMPLE_ENTITIES)
    return index
