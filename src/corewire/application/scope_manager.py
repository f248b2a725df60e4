"""Application layer - Scope-aware instance retrieval."""

import logging
import threading
from typing import Any, Dict, List, Optional

from corewire.application.candidate_resolver import CandidateResolver
from corewire.application.container_state import ContainerState
from corewire.application.deferred import DeferredHandle, Provider, resolve_deferred
from corewire.application.object_builder import ObjectBuilder
from corewire.domain import (
    ComponentRecord,
    DependencyRequirement,
    DIException,
    IScopeManager,
    Scope,
    UnresolvedDependencyError,
)

logger = logging.getLogger(__name__)


class _LazyTarget:
    """Requirement behind a lazy handle and the name it is bound to, once known."""

    def __init__(self, requirement: DependencyRequirement, name: Optional[str]) -> None:
        self.requirement = requirement
        self.name = name


class ScopeManager(IScopeManager):
    """Decides how a request for a named component is served.

    - Singleton: cached in the reference cache, built once.
    - Transient: built fresh on every request and never retained.
    - Deferred: one handle per name; the target is built once, through the
      singleton path, when the handle is first used.

    Attributes:
        _state: Container state, consulted for the closed flag.
        _resolver: Chooses candidates for lazy requirements.
        _builder: Builds instances.
        _deferred_handles: Handle per deferred-scope name.
        _pending: Lazy targets that had no candidate when created.
    """

    def __init__(self, state: ContainerState, resolver: CandidateResolver, builder: ObjectBuilder) -> None:
        self._state = state
        self._registry = state.registry
        self._cache = state.reference_cache
        self._resolver = resolver
        self._builder = builder
        self._deferred_handles: Dict[str, DeferredHandle] = {}
        self._pending: List[_LazyTarget] = []
        self._lock = threading.Lock()

    def resolve_for_scope(self, name: str, allow_early: bool = True) -> Any:
        """Return an instance of a named component according to its scope.

        Args:
            name: The component name.
            allow_early: Whether an early reference of an in-progress singleton may be returned.

        Returns:
            The singleton, a fresh transient instance, or the deferred handle.

        Raises:
            ContainerClosedError: If the container is closed.
            NotFoundError: If the name is unknown.
        """
        self._state.ensure_open()
        record = self._registry.lookup(name)

        if record.scope == Scope.SINGLETON:
            return self._singleton(name, allow_early)

        if record.scope == Scope.TRANSIENT:
            instance, _ = self._builder.build(name)
            return instance

        return self._deferred_handle(name)

    def _singleton(self, name: str, allow_early: bool) -> Any:
        cached = self._cache.get(name, allow_early)
        if cached is not None:
            return cached
        return self._cache.get_or_create(name, lambda: self._builder.build(name))

    def _deferred_handle(self, name: str) -> DeferredHandle:
        with self._lock:
            handle = self._deferred_handles.get(name)
            if handle is None:
                handle = DeferredHandle(lambda: self._build_deferred_target(name), name)
                self._deferred_handles[name] = handle
        return handle

    def _build_deferred_target(self, name: str) -> Any:
        with self._state.call():
            logger.debug("Building deferred component '%s' on first use", name)
            return self._singleton(name, allow_early=True)

    def deferred_for(self, requirement: DependencyRequirement) -> DeferredHandle:
        """Return a handle that resolves a lazy requirement on first use.

        The candidate is chosen now when one exists, so ambiguity still fails
        at injection time. A requirement without any candidate yet stays
        pending until a matching deferred record is registered late.

        Raises:
            AmbiguousDependencyError: If several candidates remain after tie-breaks.
            AmbiguousPrimaryError: If several candidates are primary.
        """
        strict = requirement.model_copy(update={"lazy": False})
        try:
            name = self._resolver.select(strict)
        except UnresolvedDependencyError:
            name = None

        target = _LazyTarget(strict, name)
        if name is None:
            with self._lock:
                self._pending.append(target)

        description = getattr(requirement.required_type, "__name__", repr(requirement.required_type))
        return DeferredHandle(lambda: self._resolve_lazy(target), description)

    def _resolve_lazy(self, target: _LazyTarget) -> Any:
        with self._state.call():
            if target.name is None:
                name = self._resolver.select(target.requirement)
                if name is None:
                    raise UnresolvedDependencyError(target.requirement.required_type)
                self._bind(target, name)

            instance = self.resolve_for_scope(target.name)
            if isinstance(instance, DeferredHandle):
                return resolve_deferred(instance)
            return instance

    def _bind(self, target: _LazyTarget, name: str) -> None:
        with self._lock:
            target.name = name
            if target in self._pending:
                self._pending.remove(target)
        logger.debug("Bound lazy dependency of type %s to '%s'", target.requirement.required_type, name)

    def notify_late_registration(self, record: ComponentRecord) -> None:
        """Bind pending lazy handles that a newly registered record satisfies."""
        with self._lock:
            pending = list(self._pending)

        for target in pending:
            try:
                name = self._resolver.select(target.requirement)
            except DIException as e:
                logger.debug("Pending lazy dependency still unresolved after late registration: %s", e)
                continue
            if name == record.name:
                self._bind(target, name)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def provider_for(self, name: str) -> Provider:
        """Return a provider resolving a named component anew on every call."""
        return Provider(name, self._provide)

    def _provide(self, name: str) -> Any:
        with self._state.call():
            return self.resolve_for_scope(name)
