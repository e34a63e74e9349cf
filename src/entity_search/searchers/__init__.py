"""Document searchers, one per entity kind family."""

from entity_search.searchers.api import ApiDocumentSearcher
from entity_search.searchers.application import ApplicationDocumentSearcher
from entity_search.searchers.base import AbstractDocumentSearcher, DocumentSearcher
from entity_search.searchers.generic import GenericDocumentSearcher
from entity_search.searchers.page import PageDocumentSearcher
from entity_search.searchers.user import UserDocumentSearcher


__all__ = [
    "AbstractDocumentSearcher",
    "ApiDocumentSearcher",
    "ApplicationDocumentSearcher",
    "DocumentSearcher",
    "GenericDocumentSearcher",
    "PageDocumentSearcher",
    "UserDocumentSearcher",
]
