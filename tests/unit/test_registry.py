"""Unit tests for entity_search.registry."""

from __future__ import annotations

import pytest

from entity_search.domain.kinds import EntityKind
from entity_search.exceptions import ConfigurationError
from entity_search.registry import SearcherRegistry
from helpers import FakeSearcher


@pytest.fixture
def registry() -> SearcherRegistry:
    return SearcherRegistry()


@pytest.mark.unit
class TestRegister:
    def test_register_single_kind(self, registry):
        users = FakeSearcher({EntityKind.USER}, label="users")

        registry.register(EntityKind.USER, users)

        assert registry.resolve(EntityKind.USER) == (users,)
        assert registry.resolve(EntityKind.API) == ()
        assert len(registry) == 1

    def test_searcher_must_handle_registered_kind(self, registry):
        with pytest.raises(ConfigurationError, match="does not handle api"):
            registry.register(EntityKind.API, FakeSearcher({EntityKind.USER}))

    def test_predicate_registration(self, registry):
        generic = FakeSearcher({EntityKind.API, EntityKind.APPLICATION}, label="generic")

        registry.register(lambda kind: kind != EntityKind.USER, generic)

        assert registry.resolve(EntityKind.API) == (generic,)
        assert registry.resolve(EntityKind.APPLICATION) == (generic,)
        # accepted by the predicate but not handled by the searcher
        assert registry.resolve(EntityKind.PAGE) == ()
        assert registry.kinds() == [EntityKind.API, EntityKind.APPLICATION]

    def test_predicate_must_accept_a_handled_kind(self, registry):
        with pytest.raises(ConfigurationError, match="accepts no kind"):
            registry.register(lambda kind: kind == EntityKind.PAGE, FakeSearcher({EntityKind.USER}))

    def test_register_searcher_uses_handles(self, registry):
        searcher = FakeSearcher({EntityKind.PAGE, EntityKind.API})

        registry.register_searcher(searcher)

        assert registry.kinds() == [EntityKind.API, EntityKind.PAGE]

    def test_frozen_registry_rejects_registration(self, registry):
        registry.register(EntityKind.USER, FakeSearcher({EntityKind.USER}))
        registry.freeze()

        assert registry.frozen
        with pytest.raises(ConfigurationError, match="frozen"):
            registry.register(EntityKind.USER, FakeSearcher({EntityKind.USER}))


@pytest.mark.unit
class TestResolve:
    def test_empty_registry_is_a_configuration_error(self, registry):
        with pytest.raises(ConfigurationError, match="No searcher has been registered"):
            registry.resolve(EntityKind.USER)

    def test_resolution_follows_registration_order(self, registry):
        specific = FakeSearcher({EntityKind.API}, label="specific")
        fallback = FakeSearcher({EntityKind.API, EntityKind.PAGE}, label="fallback")

        registry.register(EntityKind.API, specific)
        registry.register_searcher(fallback)

        assert registry.resolve(EntityKind.API) == (specific, fallback)
        assert registry.resolve(EntityKind.PAGE) == (fallback,)

    def test_same_searcher_registered_twice_resolves_once(self, registry):
        searcher = FakeSearcher({EntityKind.API})

        registry.register(EntityKind.API, searcher)
        registry.register_searcher(searcher)

        assert registry.resolve(EntityKind.API) == (searcher,)
        assert len(registry) == 2

    def test_require(self, registry):
        users = FakeSearcher({EntityKind.USER})
        registry.register(EntityKind.USER, users)

        assert registry.require(EntityKind.USER) == (users,)
        with pytest.raises(ConfigurationError, match="No searcher registered for page"):
            registry.require(EntityKind.PAGE)

    def test_kinds_ordered_by_first_registration(self, registry):
        registry.register(EntityKind.PAGE, FakeSearcher({EntityKind.PAGE}))
        registry.register(EntityKind.USER, FakeSearcher({EntityKind.USER}))
        registry.register_searcher(FakeSearcher({EntityKind.USER, EntityKind.API}))

        assert registry.kinds() == [EntityKind.PAGE, EntityKind.USER, EntityKind.API]
