"""Unit tests for CandidateResolver."""

import pytest

from corewire.application.candidate_resolver import CandidateResolver
from corewire.application.registry import ComponentRegistry
from corewire.domain import (
    AmbiguousDependencyError,
    AmbiguousPrimaryError,
    Cardinality,
    ComponentRecord,
    DependencyRequirement,
    IScopeManager,
    ReferenceKind,
    UnresolvedDependencyError,
)


class Cache:
    pass


class FastCache(Cache):
    pass


class SlowCache(Cache):
    pass


class FakeScopeManager(IScopeManager):
    """Returns the component name instead of building anything."""

    def __init__(self):
        self.requests = []

    def resolve_for_scope(self, name, allow_early=True):
        self.requests.append((name, allow_early))
        return f"instance:{name}"

    def deferred_for(self, requirement):
        return f"deferred:{requirement.required_type.__name__}"

    def provider_for(self, name):
        return f"provider:{name}"


def make_resolver(*records):
    registry = ComponentRegistry()
    for record in records:
        registry.register(record)
    registry.freeze()
    resolver = CandidateResolver(registry)
    scopes = FakeScopeManager()
    resolver.attach(scopes)
    return resolver, scopes


class TestSingleSelection:
    """Test cases for choosing a single candidate."""

    def test_single_candidate(self):
        """Test that a lone type match wins."""
        resolver, _ = make_resolver(ComponentRecord(name="fast", declared_type=FastCache))

        assert resolver.select(DependencyRequirement(required_type=Cache)) == "fast"

    def test_no_candidate_raises(self):
        """Test that a required dependency without candidates fails."""
        resolver, _ = make_resolver()

        with pytest.raises(UnresolvedDependencyError) as exc_info:
            resolver.select(DependencyRequirement(required_type=Cache))

        assert exc_info.value.required_type is Cache

    def test_no_candidate_optional_returns_none(self):
        """Test that an optional dependency without candidates is absent."""
        resolver, _ = make_resolver()

        assert resolver.select(DependencyRequirement(required_type=Cache, required=False)) is None

    def test_two_candidates_without_tie_break_are_ambiguous(self):
        """Test that two plain candidates raise with both names."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache),
            ComponentRecord(name="slow", declared_type=SlowCache),
        )

        with pytest.raises(AmbiguousDependencyError) as exc_info:
            resolver.select(DependencyRequirement(required_type=Cache))

        assert exc_info.value.candidates == ["fast", "slow"]

    def test_qualifier_narrows(self):
        """Test that a qualifier filter picks the matching candidate."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, qualifiers={"tier": "fast"}),
            ComponentRecord(name="slow", declared_type=SlowCache, qualifiers={"tier": "slow"}),
        )

        assert resolver.select(DependencyRequirement(required_type=Cache, qualifier_filter={"tier": "slow"})) == "slow"

    def test_qualifier_without_match_never_falls_through(self):
        """Test that an unmatched qualifier fails even when a primary exists."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, qualifiers={"tier": "fast"}, is_primary=True),
            ComponentRecord(name="slow", declared_type=SlowCache, qualifiers={"tier": "slow"}),
        )

        with pytest.raises(UnresolvedDependencyError):
            resolver.select(DependencyRequirement(required_type=Cache, qualifier_filter={"tier": "medium"}))

    def test_qualifier_applies_to_lone_candidate(self):
        """Test that a lone candidate must still satisfy the qualifier."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, qualifiers={"tier": "fast"}),
        )

        with pytest.raises(UnresolvedDependencyError):
            resolver.select(DependencyRequirement(required_type=Cache, qualifier_filter={"tier": "slow"}))

    def test_qualifier_mismatch_on_optional_is_absent(self):
        """Test that an optional requirement with unmatched qualifier is absent."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, qualifiers={"tier": "fast"}),
        )

        requirement = DependencyRequirement(
            required_type=Cache,
            qualifier_filter={"tier": "slow"},
            cardinality=Cardinality.OPTIONAL_ONE,
        )

        assert resolver.select(requirement) is None

    def test_primary_wins(self):
        """Test that a single primary candidate wins."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache),
            ComponentRecord(name="slow", declared_type=SlowCache, is_primary=True),
        )

        assert resolver.select(DependencyRequirement(required_type=Cache)) == "slow"

    def test_two_primaries_raise(self):
        """Test that several primaries are an error, never a fall-through."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, is_primary=True),
            ComponentRecord(name="slow", declared_type=SlowCache, is_primary=True),
        )

        with pytest.raises(AmbiguousPrimaryError) as exc_info:
            resolver.select(DependencyRequirement(required_type=Cache, by_name_hint="fast"))

        assert exc_info.value.candidates == ["fast", "slow"]

    def test_name_hint_breaks_tie(self):
        """Test that the slot name picks the candidate with the same name."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache),
            ComponentRecord(name="slow", declared_type=SlowCache),
        )

        assert resolver.select(DependencyRequirement(required_type=Cache, by_name_hint="slow")) == "slow"

    def test_primary_beats_name_hint(self):
        """Test that primary is consulted before the name hint."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, is_primary=True),
            ComponentRecord(name="slow", declared_type=SlowCache),
        )

        assert resolver.select(DependencyRequirement(required_type=Cache, by_name_hint="slow")) == "fast"

    def test_unknown_name_hint_stays_ambiguous(self):
        """Test that a name hint matching nobody does not help."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache),
            ComponentRecord(name="slow", declared_type=SlowCache),
        )

        with pytest.raises(AmbiguousDependencyError):
            resolver.select(DependencyRequirement(required_type=Cache, by_name_hint="cache"))


class TestMultipleSelection:
    """Test cases for collection and map cardinalities."""

    def test_select_all_orders_explicit_order_first(self):
        """Test that ordered records come first, then registration order."""
        resolver, _ = make_resolver(
            ComponentRecord(name="a", declared_type=FastCache),
            ComponentRecord(name="b", declared_type=SlowCache, order=2),
            ComponentRecord(name="c", declared_type=FastCache),
            ComponentRecord(name="d", declared_type=SlowCache, order=1),
        )

        assert resolver.select_all(DependencyRequirement(required_type=Cache)) == ["d", "b", "a", "c"]

    def test_collection_ignores_primary(self):
        """Test that collections include every candidate regardless of primary."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache, is_primary=True),
            ComponentRecord(name="slow", declared_type=SlowCache, is_primary=True),
        )

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, cardinality=Cardinality.ALL_AS_COLLECTION))

        assert reference.value == ["instance:fast", "instance:slow"]

    def test_named_map(self):
        """Test that a named map is keyed by component name."""
        resolver, _ = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache),
            ComponentRecord(name="slow", declared_type=SlowCache),
        )

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, cardinality=Cardinality.ALL_AS_NAMED_MAP))

        assert reference.value == {"fast": "instance:fast", "slow": "instance:slow"}

    def test_empty_collection_is_legal(self):
        """Test that no candidates yield an empty collection."""
        resolver, _ = make_resolver()

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, cardinality=Cardinality.ALL_AS_COLLECTION))

        assert reference.value == []


class TestResolve:
    """Test cases for resolve()."""

    def test_instance_reference(self):
        """Test that a chosen candidate is obtained from the scope manager."""
        resolver, scopes = make_resolver(ComponentRecord(name="fast", declared_type=FastCache))

        reference = resolver.resolve(DependencyRequirement(required_type=Cache), allow_early=False)

        assert reference.kind == ReferenceKind.INSTANCE
        assert reference.value == "instance:fast"
        assert scopes.requests == [("fast", False)]

    def test_absent_reference(self):
        """Test that an optional requirement without match resolves as absent."""
        resolver, scopes = make_resolver()

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, cardinality=Cardinality.OPTIONAL_ONE))

        assert reference.is_absent
        assert scopes.requests == []

    def test_lazy_reference(self):
        """Test that lazy requirements are delegated to deferred_for."""
        resolver, scopes = make_resolver()

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, lazy=True))

        assert reference.kind == ReferenceKind.DEFERRED
        assert reference.value == "deferred:Cache"
        assert scopes.requests == []

    def test_optional_lazy_reference_without_candidate_is_absent(self):
        """Test that an optional lazy requirement with no match never yields a handle."""
        resolver, scopes = make_resolver()

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, lazy=True, required=False))

        assert reference.is_absent
        assert scopes.requests == []

    def test_optional_lazy_reference_with_candidate_is_deferred(self):
        """Test that an optional lazy requirement with a match still gets a handle."""
        resolver, scopes = make_resolver(ComponentRecord(name="fast", declared_type=FastCache))

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, lazy=True, required=False))

        assert reference.kind == ReferenceKind.DEFERRED
        assert reference.value == "deferred:Cache"

    def test_provider_reference(self):
        """Test that provider requirements yield a provider for the chosen name."""
        resolver, scopes = make_resolver(ComponentRecord(name="fast", declared_type=FastCache))

        reference = resolver.resolve(DependencyRequirement(required_type=Cache, provider=True))

        assert reference.kind == ReferenceKind.DEFERRED
        assert reference.value == "provider:fast"
        assert scopes.requests == []

    def test_resolve_without_scope_manager_raises(self):
        """Test that an unattached resolver cannot produce instances."""
        resolver = CandidateResolver(ComponentRegistry())

        with pytest.raises(RuntimeError):
            resolver.resolve(DependencyRequirement(required_type=Cache))

    def test_can_satisfy(self):
        """Test that can_satisfy reports without building."""
        resolver, scopes = make_resolver(
            ComponentRecord(name="fast", declared_type=FastCache),
            ComponentRecord(name="slow", declared_type=SlowCache),
        )

        assert resolver.can_satisfy(DependencyRequirement(required_type=FastCache))
        assert not resolver.can_satisfy(DependencyRequirement(required_type=Cache))
        assert resolver.can_satisfy(DependencyRequirement(required_type=Cache, cardinality=Cardinality.ALL_AS_COLLECTION))
        assert scopes.requests == []
