"""Application layer - Candidate selection for dependency requirements."""

import logging
from typing import List, Optional

from corewire.domain import (
    AmbiguousDependencyError,
    AmbiguousPrimaryError,
    Cardinality,
    ComponentRecord,
    DependencyRequirement,
    DIException,
    ICandidateResolver,
    IComponentRegistry,
    IScopeManager,
    ResolvedReference,
    UnresolvedDependencyError,
)

logger = logging.getLogger(__name__)


class CandidateResolver(ICandidateResolver):
    """Chooses the component(s) that satisfy a dependency requirement.

    Single-candidate selection runs a fixed sequence and stops at the first
    unambiguous result: type match, qualifier filter, primary flag, name
    hint. A qualifier filter is explicit narrowing and never falls through
    to the weaker signals; several primaries are always an error.

    Attributes:
        _registry: Source of candidate records.
        _scopes: Turns chosen names into instances; attached by the container.
    """

    def __init__(self, registry: IComponentRegistry) -> None:
        self._registry = registry
        self._scopes: Optional[IScopeManager] = None

    def attach(self, scope_manager: IScopeManager) -> None:
        """Attach the scope manager used to obtain instances for chosen names."""
        self._scopes = scope_manager

    def select(self, requirement: DependencyRequirement) -> Optional[str]:
        """Choose the single component name satisfying a requirement.

        Args:
            requirement: What the slot needs.

        Returns:
            The winning name, or None when the requirement is optional and
            nothing matches.

        Raises:
            UnresolvedDependencyError: If nothing matches a required requirement,
                or the qualifier filter matches no candidate.
            AmbiguousPrimaryError: If several remaining candidates are primary.
            AmbiguousDependencyError: If no tie-break singles out a candidate.
        """
        try:
            return self._select_one(requirement)
        except UnresolvedDependencyError:
            if requirement.is_optional:
                return None
            raise

    def _select_one(self, requirement: DependencyRequirement) -> str:
        required_type = requirement.required_type
        candidates = self._registry.all_eligible_for_type(required_type)

        if not candidates:
            raise UnresolvedDependencyError(required_type)

        # The filter is applied even to a lone candidate
        if requirement.qualifier_filter:
            candidates = [c for c in candidates if c.matches_qualifiers(requirement.qualifier_filter)]
            if not candidates:
                raise UnresolvedDependencyError(
                    required_type,
                    f"No candidate matches qualifiers {requirement.qualifier_filter}",
                )

        if len(candidates) == 1:
            return candidates[0].name

        primaries = [c.name for c in candidates if c.is_primary]
        if len(primaries) > 1:
            raise AmbiguousPrimaryError(required_type, primaries)
        if len(primaries) == 1:
            return primaries[0]

        if requirement.by_name_hint is not None:
            named = [c.name for c in candidates if c.name == requirement.by_name_hint]
            if len(named) == 1:
                return named[0]

        raise AmbiguousDependencyError(required_type, [c.name for c in candidates])

    def select_all(self, requirement: DependencyRequirement) -> List[str]:
        """Return every candidate name, records with an explicit order first.

        Records with an ``order`` sort ascending by it; the rest follow in
        registration order.
        """
        candidates = self._registry.all_eligible_for_type(requirement.required_type)
        return [record.name for record in sorted(candidates, key=self._sort_key)]

    def _sort_key(self, record: ComponentRecord):
        has_order = record.order is not None
        return (0 if has_order else 1, record.order if has_order else 0, self._registry.registration_index(record.name))

    def can_satisfy(self, requirement: DependencyRequirement) -> bool:
        """Check, without building anything, whether a requirement would resolve."""
        if requirement.cardinality.is_multiple or requirement.lazy:
            return True
        try:
            self.select(requirement)
        except DIException:
            return False
        return True

    def resolve(self, requirement: DependencyRequirement, allow_early: bool = True) -> ResolvedReference:
        """Resolve a requirement to an instance, a deferred handle, or absence.

        Args:
            requirement: What the slot needs.
            allow_early: Whether an early reference of an in-progress singleton may be returned.

        Returns:
            ResolvedReference: a list or name map for collection
            cardinalities, a handle for lazy and provider requirements, an
            instance otherwise, or absence for an optional requirement with
            no match.
        """
        if self._scopes is None:
            raise RuntimeError("CandidateResolver is not attached to a scope manager")

        if requirement.cardinality.is_multiple:
            names = self.select_all(requirement)
            instances = [(name, self._scopes.resolve_for_scope(name, allow_early)) for name in names]
            if requirement.cardinality == Cardinality.ALL_AS_COLLECTION:
                return ResolvedReference.of_instance([instance for _, instance in instances])
            return ResolvedReference.of_instance(dict(instances))

        if requirement.lazy:
            if requirement.is_optional and self.select(requirement) is None:
                logger.debug("Optional lazy dependency of type %s resolved as absent", requirement.required_type)
                return ResolvedReference.absent()
            return ResolvedReference.of_deferred(self._scopes.deferred_for(requirement))

        name = self.select(requirement)
        if name is None:
            logger.debug("Optional dependency of type %s resolved as absent", requirement.required_type)
            return ResolvedReference.absent()

        if requirement.provider:
            return ResolvedReference.of_deferred(self._scopes.provider_for(name))

        return ResolvedReference.of_instance(self._scopes.resolve_for_scope(name, allow_early))
