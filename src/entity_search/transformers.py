"""Entity -> index document transformation and the indexing write path.

Each transformer turns a raw entity mapping (as stored by the owning service)
into the flat record the index expects: ``id``, ``type`` and the searchable
fields declared by :func:`~entity_search.search.schema.create_default_schema`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
import logging
from typing import Any

from entity_search.domain.kinds import EntityKind
from entity_search.search.index import DocumentError, SearchIndex
from entity_search.search.schema import ID_FIELD, TYPE_FIELD


logger = logging.getLogger(__name__)


class EntityTransformError(ValueError):
    """Raised when an entity cannot be converted into an index document."""


class DocumentTransformer(ABC):
    """Maps one entity kind to index documents."""

    KIND: EntityKind

    def handles(self, kind: EntityKind) -> bool:
        return kind == self.KIND

    def transform(self, entity: Mapping[str, Any]) -> dict[str, Any]:
        entity_id = _entity_id(entity)
        record: dict[str, Any] = {ID_FIELD: entity_id, TYPE_FIELD: self.KIND.value}
        for name, value in self.fields(entity).items():
            if value is None or value == "" or value == []:
                continue
            record[name] = value
        return record

    @abstractmethod
    def fields(self, entity: Mapping[str, Any]) -> dict[str, Any]:
        """Searchable fields extracted from ``entity``."""


class UserDocumentTransformer(DocumentTransformer):
    KIND = EntityKind.USER

    def fields(self, entity: Mapping[str, Any]) -> dict[str, Any]:
        firstname = _text(entity.get("firstname"))
        lastname = _text(entity.get("lastname"))
        displayname = _text(entity.get("displayname")) or " ".join(part for part in (firstname, lastname) if part)
        return {
            "firstname": firstname,
            "lastname": lastname,
            "displayname": displayname,
            "email": _text(entity.get("email")),
        }


class ApiDocumentTransformer(DocumentTransformer):
    KIND = EntityKind.API

    def fields(self, entity: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "name": _text(entity.get("name")),
            "description": _text(entity.get("description")),
            "owner": _owner_name(entity.get("owner")),
            "labels": _coerce_list(entity.get("labels")),
            "tags": _coerce_list(entity.get("tags")),
        }


class ApplicationDocumentTransformer(DocumentTransformer):
    KIND = EntityKind.APPLICATION

    def fields(self, entity: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "name": _text(entity.get("name")),
            "description": _text(entity.get("description")),
            "owner": _owner_name(entity.get("owner")),
        }


class PageDocumentTransformer(DocumentTransformer):
    KIND = EntityKind.PAGE

    def fields(self, entity: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "name": _text(entity.get("name")),
            "content": _text(entity.get("content")),
        }


def default_transformers() -> tuple[DocumentTransformer, ...]:
    return (
        UserDocumentTransformer(),
        ApiDocumentTransformer(),
        ApplicationDocumentTransformer(),
        PageDocumentTransformer(),
    )


@dataclass(frozen=True)
class IndexingResult:
    """Outcome of one :meth:`EntityIndexer.index_all` run."""

    documents_indexed: int
    documents_skipped: int
    errors: tuple[str, ...] = ()


class EntityIndexer:
    """Write-side collaborator: upsert/delete one document keyed by entity id."""

    def __init__(self, index: SearchIndex, transformers: Iterable[DocumentTransformer] | None = None) -> None:
        self.search_index = index
        self.transformers = tuple(transformers) if transformers is not None else default_transformers()

    def transformer_for(self, kind: EntityKind) -> DocumentTransformer:
        for transformer in self.transformers:
            if transformer.handles(kind):
                return transformer
        raise EntityTransformError(f"No transformer registered for {kind.value} entities")

    def index_entity(self, entity: Mapping[str, Any]) -> str:
        """Transform and upsert one entity; returns its id.

        Raises:
            EntityTransformError: unknown or missing type, or missing id.
        """
        kind = _entity_kind(entity)
        document = self.transformer_for(kind).transform(entity)
        try:
            return self.search_index.upsert(document)
        except DocumentError as exc:
            raise EntityTransformError(str(exc)) from exc

    def index_all(self, entities: Iterable[Mapping[str, Any]]) -> IndexingResult:
        indexed = 0
        skipped = 0
        errors: list[str] = []
        for entity in entities:
            try:
                self.index_entity(entity)
            except EntityTransformError as exc:
                logger.warning("Failed to index entity %r: %s", entity.get(ID_FIELD), exc)
                errors.append(str(exc))
                skipped += 1
                continue
            indexed += 1
        logger.info("Indexed %d entities (%d skipped)", indexed, skipped)
        return IndexingResult(documents_indexed=indexed, documents_skipped=skipped, errors=tuple(errors))

    def remove(self, entity_id: str) -> bool:
        return self.search_index.delete(entity_id)


def _entity_id(entity: Mapping[str, Any]) -> str:
    value = entity.get(ID_FIELD)
    if value is None or not str(value).strip():
        raise EntityTransformError("Entity has no id")
    return str(value).strip()


def _entity_kind(entity: Mapping[str, Any]) -> EntityKind:
    raw = entity.get(TYPE_FIELD)
    if not isinstance(raw, str) or not raw.strip():
        raise EntityTransformError(f"Entity {entity.get(ID_FIELD)!r} has no type")
    try:
        return EntityKind(raw.strip().lower())
    except ValueError as exc:
        raise EntityTransformError(f"Unknown entity type {raw!r}") from exc


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _owner_name(candidate: Any) -> str:
    # owners arrive either as a display name or as an embedded user object
    if isinstance(candidate, Mapping):
        return _text(candidate.get("displayname") or candidate.get("username"))
    return _text(candidate)


def _coerce_list(candidate: Any) -> list[str]:
    if isinstance(candidate, (list, tuple, set, frozenset)):
        return [str(item) for item in candidate if str(item).strip()]
    if isinstance(candidate, str) and candidate.strip():
        return [candidate]
    return []
