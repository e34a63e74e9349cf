"""Error taxonomy of the search subsystem.

- ``InvalidQueryError``: the caller's input cannot be turned into a query
- ``ConfigurationError``: the registry was wired incorrectly
- ``SearchExecutionError``: the index failed while serving a search
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from entity_search.domain.kinds import EntityKind


class EntitySearchError(Exception):
    """Base class for all errors raised by entity_search."""


class InvalidQueryError(EntitySearchError):
    """Query text (or page window) that cannot be searched."""

    def __init__(self, text: str, diagnostic: str) -> None:
        super().__init__(f"Invalid query {text!r}: {diagnostic}")
        self.text = text
        self.diagnostic = diagnostic


class ConfigurationError(EntitySearchError):
    """Registry misuse; a wiring defect rather than a runtime condition."""


class SearchExecutionError(EntitySearchError):
    """The index could not execute a search; never reported as an empty result."""

    def __init__(self, kind: EntityKind | None, message: str) -> None:
        label = kind.value if kind is not None else "any"
        super().__init__(f"Search failed for kind '{label}': {message}")
        self.kind = kind
