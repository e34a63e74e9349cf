"""Registry mapping entity kinds to the searchers responsible for them."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from entity_search.domain.kinds import EntityKind
from entity_search.exceptions import ConfigurationError


if TYPE_CHECKING:
    from entity_search.searchers.base import DocumentSearcher


logger = logging.getLogger(__name__)

KindPredicate = Callable[[EntityKind], bool]


@dataclass(frozen=True)
class _Registration:
    predicate: KindPredicate
    searcher: DocumentSearcher
    kinds: tuple[EntityKind, ...]


class SearcherRegistry:
    """Central registry of document searchers.

    Populated once at startup, then frozen; lookups never lock.

    Usage:
        registry = SearcherRegistry()
        registry.register(EntityKind.USER, UserDocumentSearcher(index))
        registry.register(lambda kind: kind in fallback_kinds, GenericDocumentSearcher(...))
        registry.freeze()

        registry.resolve(EntityKind.USER)  # -> (UserDocumentSearcher,)
    """

    def __init__(self) -> None:
        self._registrations: tuple[_Registration, ...] = ()
        self._frozen = False

    def register(self, target: EntityKind | KindPredicate, searcher: DocumentSearcher) -> None:
        """Associate a kind, or a predicate over kinds, with a searcher.

        Args:
            target: A single kind, or a predicate accepting every kind the
                searcher should answer for.
            searcher: The searcher instance.

        Raises:
            ConfigurationError: the registry is frozen, the searcher does not
                handle the kind, or the predicate accepts no known kind.
        """
        if self._frozen:
            raise ConfigurationError(f"Cannot register {searcher.name}: registry is frozen")

        if isinstance(target, EntityKind):
            if not searcher.handles(target):
                raise ConfigurationError(f"{searcher.name} does not handle {target.value} documents")
            kinds: tuple[EntityKind, ...] = (target,)

            def predicate(kind: EntityKind, _expected: EntityKind = target) -> bool:
                return kind == _expected

        else:

            def predicate(kind: EntityKind, _accepts: KindPredicate = target) -> bool:
                return _accepts(kind) and searcher.handles(kind)

            kinds = tuple(kind for kind in EntityKind if predicate(kind))
            if not kinds:
                raise ConfigurationError(f"Predicate registered for {searcher.name} accepts no kind it handles")

        self._registrations = (*self._registrations, _Registration(predicate, searcher, kinds))
        logger.debug("Registered %s for %s", searcher.name, [kind.value for kind in kinds])

    def register_searcher(self, searcher: DocumentSearcher) -> None:
        """Register a searcher for every kind it declares through ``handles``."""

        self.register(searcher.handles, searcher)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, kind: EntityKind) -> tuple[DocumentSearcher, ...]:
        """Return every searcher accepting ``kind``, in registration order.

        An empty tuple means "no searcher for this kind" and is not an error.

        Raises:
            ConfigurationError: nothing at all has been registered.
        """
        if not self._registrations:
            raise ConfigurationError("No searcher has been registered")
        resolved: list[DocumentSearcher] = []
        for registration in self._registrations:
            if registration.predicate(kind) and registration.searcher not in resolved:
                resolved.append(registration.searcher)
        return tuple(resolved)

    def require(self, kind: EntityKind) -> tuple[DocumentSearcher, ...]:
        """Like :meth:`resolve`, but a kind expected to exist must have a searcher."""

        searchers = self.resolve(kind)
        if not searchers:
            raise ConfigurationError(f"No searcher registered for {kind.value} documents")
        return searchers

    def kinds(self) -> list[EntityKind]:
        """Registered kinds, ordered by first registration."""

        ordered: list[EntityKind] = []
        for registration in self._registrations:
            for kind in registration.kinds:
                if kind not in ordered:
                    ordered.append(kind)
        return ordered

    def __len__(self) -> int:
        """Return number of registrations."""
        return len(self._registrations)
