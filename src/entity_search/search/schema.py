"""Schema definitions for the entity index.

Every document carries two reserved fields:

- ``id``: the entity identifier, unique across the whole index
- ``type``: the entity kind, indexed as a keyword so searchers can filter on it

All other fields are declared per index with one of two field types:

- TextField: analyzed with a named analyzer, scored with BM25
- KeywordField: the whole lowercased value is a single term (e-mails, labels)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


ID_FIELD = "id"
TYPE_FIELD = "type"


class FieldType(str, Enum):
    """Types of fields supported in the schema."""

    TEXT = "text"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class SchemaField:
    """Base class for schema fields."""

    name: str
    stored: bool = False

    @property
    def field_type(self) -> FieldType:
        raise NotImplementedError

    @property
    def analyzer_name(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class TextField(SchemaField):
    """Analyzed text field (names, descriptions, page content)."""

    analyzer: str = "standard"

    @property
    def field_type(self) -> FieldType:
        return FieldType.TEXT

    @property
    def analyzer_name(self) -> str:
        return self.analyzer


@dataclass(frozen=True)
class KeywordField(SchemaField):
    """Single-term field; values are lowercased but never split."""

    @property
    def field_type(self) -> FieldType:
        return FieldType.KEYWORD

    @property
    def analyzer_name(self) -> str:
        return "keyword"


@dataclass(frozen=True)
class Schema:
    """Set of fields known to an index.

    Example:
        schema = Schema(
            fields=(
                TextField("firstname"),
                TextField("lastname"),
                KeywordField("email"),
            ),
        )
    """

    fields: tuple[SchemaField, ...]
    name: str = "entities"
    _field_map: dict[str, SchemaField] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        mapping: dict[str, SchemaField] = {
            ID_FIELD: KeywordField(ID_FIELD, stored=True),
            TYPE_FIELD: KeywordField(TYPE_FIELD, stored=True),
        }
        for schema_field in self.fields:
            if schema_field.name in mapping:
                msg = f"Duplicate or reserved field name '{schema_field.name}' in schema '{self.name}'"
                raise ValueError(msg)
            mapping[schema_field.name] = schema_field
        object.__setattr__(self, "_field_map", mapping)

    def __getitem__(self, name: str) -> SchemaField:
        return self._field_map[name]

    def __contains__(self, name: object) -> bool:
        return name in self._field_map

    def __iter__(self) -> Iterator[SchemaField]:
        return iter(self._field_map.values())

    def __len__(self) -> int:
        return len(self._field_map)

    def analyzer_for(self, field_name: str) -> str:
        """Analyzer name for a field; unknown fields fall back to the standard analyzer."""

        schema_field = self._field_map.get(field_name)
        if schema_field is None:
            return "standard"
        return schema_field.analyzer_name


def create_default_schema() -> Schema:
    """
    Create the schema shared by all entity kinds.

    Fields:
    - firstname, lastname, displayname: user names (text)
    - email: user e-mail (keyword)
    - name: api/application/page name (text, stored)
    - description: api/application description (text, stemmed)
    - owner: display name of the owning user (text)
    - labels, tags: api labels and sharding tags (keyword, multi-valued)
    - content: page body (text, stemmed)
    """
    return Schema(
        name="entities",
        fields=(
            TextField("firstname"),
            TextField("lastname"),
            TextField("displayname"),
            KeywordField("email"),
            TextField("name", stored=True),
            TextField("description", analyzer="english"),
            TextField("owner"),
            KeywordField("labels"),
            KeywordField("tags"),
            TextField("content", analyzer="english"),
        ),
    )
