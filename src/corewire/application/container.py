import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from corewire.application.candidate_resolver import CandidateResolver
from corewire.application.circular_detector import ConstructionTracker
from corewire.application.container_state import ContainerState
from corewire.application.deferred import Provider
from corewire.application.introspection import recipe_from_callable
from corewire.application.lifecycle import LifecycleOrchestrator
from corewire.application.object_builder import ObjectBuilder
from corewire.application.reference_cache import ReferenceCache
from corewire.application.registry import ComponentRegistry
from corewire.application.scope_manager import ScopeManager
from corewire.domain import (
    AlreadyActiveError,
    Cardinality,
    ComponentRecord,
    ContainerClosedError,
    ContainerConfig,
    ContainerNotActiveError,
    ContainerPhase,
    DependencyRequirement,
    IComponentPostProcessor,
    IContainer,
    InstanceState,
    IRegistryPostProcessor,
    RegistryFrozenError,
    Scope,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container(IContainer):
    """Main inversion-of-control container.

    Composes the registry, candidate resolver, object builder, reference
    cache, lifecycle orchestrator and scope manager. Records are registered
    first; ``refresh()`` freezes the registry and builds every singleton;
    ``close()`` destroys singletons in reverse order of readiness.

    Attributes:
        _config: Container settings.
        _state: All mutable state of this container.
        _registry: Component records.
        _resolver: Candidate selection.
        _lifecycle: Population, initialization and destruction.
        _builder: Construction of instances.
        _scopes: Scope-aware retrieval.

    Example:
        >>> container = Container()
        >>> container.register_singletons({"config": AppConfig, "database": Database})
        >>> container.refresh()
        >>> db = container.get(Database)
        >>> container.close()
    """

    def __init__(self, config: Optional[ContainerConfig] = None, **overrides: Any) -> None:
        """Initialize the container with empty state.

        Args:
            config: Container settings; defaults apply when omitted.
            **overrides: Individual settings overriding ``config``.
        """
        if overrides:
            base = config.model_dump() if config is not None else {}
            config = ContainerConfig(**{**base, **overrides})
        self._config = config or ContainerConfig()

        self._registry = ComponentRegistry()
        self._cache = ReferenceCache()
        self._state = ContainerState(
            self._registry,
            self._cache,
            ConstructionTracker(self._config.max_construction_depth),
        )
        self._resolver = CandidateResolver(self._registry)
        self._lifecycle = LifecycleOrchestrator(self._resolver, self._cache, self)
        self._builder = ObjectBuilder(
            self._registry,
            self._resolver,
            self._cache,
            self._lifecycle,
            self._state.in_progress,
            self._config,
        )
        self._scopes = ScopeManager(self._state, self._resolver, self._builder)
        self._resolver.attach(self._scopes)
        self._registry_post_processors: List[IRegistryPostProcessor] = []

    @property
    def config(self) -> ContainerConfig:
        return self._config

    @property
    def phase(self) -> ContainerPhase:
        return self._state.phase

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    def register_component(self, record: ComponentRecord, overwrite: bool = False) -> None:
        """Submit a component record.

        Before ``refresh()`` any record may be registered. While active, only
        deferred-scope records are accepted; they are merged immediately and
        bind any pending lazy handles they satisfy.

        Args:
            record: The record to register.
            overwrite: Replace an existing record with the same name.

        Raises:
            DuplicateNameError: If the name exists and overwrite is False.
            RegistryFrozenError: If a non-deferred record arrives after refresh().
            ContainerClosedError: If the container is closed.
        """
        if self._state.closed:
            raise ContainerClosedError("Cannot register components on a closed container")

        if self._state.phase == ContainerPhase.ACTIVE:
            if overwrite:
                raise RegistryFrozenError(f"Cannot overwrite '{record.name}' on an active container")
            effective = self._registry.register_late(record)
            self._scopes.notify_late_registration(effective)
            return

        self._registry.register(record, overwrite=overwrite)

    def _register_many(self, components: Dict[str, Union[Type, Callable[..., Any]]], scope: Scope) -> None:
        for name, target in components.items():
            if inspect.isclass(target):
                record = ComponentRecord(name=name, declared_type=target, scope=scope)
            else:
                record = ComponentRecord(name=name, scope=scope, construction_recipe=recipe_from_callable(target, name))
            self.register_component(record)

    def register_singletons(self, components: Dict[str, Union[Type, Callable[..., Any]]]) -> None:
        """Register several autowired singleton components at once.

        Args:
            components: Name to class (autowired from its constructor) or
                to factory function (autowired from its parameters).

        Example:
            >>> def open_connection(config: DatabaseConfig) -> DatabaseConnection:
            ...     return DatabaseConnection(config.url)
            >>>
            >>> container.register_singletons({
            ...     "config": DatabaseConfig,
            ...     "connection": open_connection,
            ... })
        """
        self._register_many(components, Scope.SINGLETON)

    def register_transients(self, components: Dict[str, Union[Type, Callable[..., Any]]]) -> None:
        """Register several autowired transient components at once."""
        self._register_many(components, Scope.TRANSIENT)

    def register_deferred(self, components: Dict[str, Union[Type, Callable[..., Any]]]) -> None:
        """Register several autowired deferred-scope components at once."""
        self._register_many(components, Scope.DEFERRED)

    def add_post_processor(self, post_processor: IComponentPostProcessor) -> None:
        """Add a hook invoked around the construction of every component.

        Raises:
            AlreadyActiveError: If the container has already been refreshed.
        """
        if self._state.phase != ContainerPhase.UNSTARTED:
            raise AlreadyActiveError("Post-processors must be added before refresh()")
        self._lifecycle.add_post_processor(post_processor)

    def add_registry_post_processor(self, post_processor: IRegistryPostProcessor) -> None:
        """Add a hook allowed to rewrite records before the registry is frozen.

        Raises:
            AlreadyActiveError: If the container has already been refreshed.
        """
        if self._state.phase != ContainerPhase.UNSTARTED:
            raise AlreadyActiveError("Registry post-processors must be added before refresh()")
        self._registry_post_processors.append(post_processor)

    def refresh(self) -> None:
        """Freeze the registry and build every non-deferred singleton.

        Any failure destroys the singletons built so far, closes the
        container and propagates.

        Raises:
            AlreadyActiveError: If the container is already active.
            ContainerClosedError: If the container is closed.
        """
        if self._state.phase == ContainerPhase.ACTIVE:
            raise AlreadyActiveError("Container is already active")

        with self._state.call():
            try:
                for post_processor in self._registry_post_processors:
                    post_processor.post_process_registry(self._registry)
                self._registry.freeze()
                self._state.phase = ContainerPhase.ACTIVE

                self._instantiate_post_processors()
                if self._config.eager_init:
                    self._instantiate_singletons()
            except Exception:
                logger.warning("Refresh failed; destroying %d singletons built so far", len(self._cache.ready_order()))
                self._state.mark_closed()
                self._destroy_singletons()
                raise

        logger.info("Container refreshed with %d ready singletons", len(self._cache.ready_order()))

    def _instantiate_post_processors(self) -> None:
        for record in self._registry.all_eligible_for_type(IComponentPostProcessor):
            if record.scope == Scope.SINGLETON:
                self._lifecycle.add_post_processor(self._scopes.resolve_for_scope(record.name))

    def _instantiate_singletons(self) -> None:
        for name in self._registry.names():
            record = self._registry.lookup(name)
            if record.scope == Scope.SINGLETON and not record.is_abstract_template:
                self._scopes.resolve_for_scope(name)

    def _ensure_active(self) -> None:
        if self._state.closed:
            raise ContainerClosedError("Container is closed")
        if self._state.phase != ContainerPhase.ACTIVE:
            raise ContainerNotActiveError("Call refresh() before requesting instances")

    def get(self, key: Union[str, Type[T]], qualifier: Optional[Dict[str, Any]] = None) -> Any:
        """Return the instance for a component name or a required type.

        Args:
            key: A component name, or a type resolved through candidate selection.
            qualifier: Qualifier filter applied when ``key`` is a type.

        Returns:
            The instance, or a deferred handle for deferred-scope components.

        Raises:
            NotFoundError: If no component has the given name.
            UnresolvedDependencyError: If no component matches the type.
            AmbiguousDependencyError: If several components match the type.
            ContainerNotActiveError: If refresh() has not been called.
            ContainerClosedError: If the container is closed.

        Example:
            >>> container.get("user_service")
            >>> container.get(Cache, qualifier={"tier": "fast"})
        """
        self._ensure_active()
        with self._state.call():
            if isinstance(key, str):
                return self._scopes.resolve_for_scope(key)
            requirement = DependencyRequirement(required_type=key, qualifier_filter=qualifier)
            return self._resolver.resolve(requirement).value

    def get_all(self, required_type: Type[T]) -> List[T]:
        """Return every candidate instance of a type, ordered.

        Records with an explicit ``order`` come first, ascending; the rest
        follow in registration order.
        """
        self._ensure_active()
        with self._state.call():
            requirement = DependencyRequirement(required_type=required_type, cardinality=Cardinality.ALL_AS_COLLECTION)
            return self._resolver.resolve(requirement).value

    def get_named_map(self, required_type: Type[T]) -> Dict[str, T]:
        """Return every candidate instance of a type, keyed by component name."""
        self._ensure_active()
        with self._state.call():
            requirement = DependencyRequirement(required_type=required_type, cardinality=Cardinality.ALL_AS_NAMED_MAP)
            return self._resolver.resolve(requirement).value

    def get_provider(self, name: str) -> Provider:
        """Return a provider that resolves a named component on every call.

        Raises:
            NotFoundError: If no component has the given name.
        """
        self._ensure_active()
        self._registry.lookup(name)
        return self._scopes.provider_for(name)

    def contains(self, name: str) -> bool:
        return self._registry.contains(name)

    def lifecycle_state(self, name: str) -> Optional[InstanceState]:
        """Return the lifecycle state of a singleton, or None if it was never requested."""
        return self._cache.state_of(name)

    def close(self) -> None:
        """Destroy every singleton in reverse order of readiness.

        Blocks until in-flight calls complete. Destroy hook failures are
        logged and do not stop the remaining destructions. Calling close()
        again is a no-op.
        """
        if not self._state.begin_close():
            return
        self._destroy_singletons()
        self._state.mark_closed()
        logger.info("Container closed")

    def _destroy_singletons(self) -> None:
        for name, instance in self._cache.destruction_order():
            self._lifecycle.destroy(instance, self._registry.lookup(name))
            self._cache.mark_destroyed(name)
        self._cache.clear()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False
