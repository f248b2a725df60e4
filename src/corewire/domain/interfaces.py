from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from corewire.domain.models import ComponentRecord, DependencyRequirement, ResolvedReference

T = TypeVar("T")


class IComponentRegistry(ABC):
    """Abstract interface for the store of component records."""

    @abstractmethod
    def register(self, record: ComponentRecord, overwrite: bool = False) -> None:
        """Store a record under its name.

        Args:
            record: The record to store.
            overwrite: Replace an existing record with the same name.
        """

    @abstractmethod
    def lookup(self, name: str) -> ComponentRecord:
        """Return the effective record registered under a name."""

    @abstractmethod
    def contains(self, name: str) -> bool:
        """Check whether a record is registered under a name."""

    @abstractmethod
    def names(self) -> List[str]:
        """Return every registered name in registration order."""

    @abstractmethod
    def all_eligible_for_type(self, required_type: Type) -> List[ComponentRecord]:
        """Return concrete, eligible records assignable to a type."""


class IContainer(ABC):
    """Abstract interface for container operations exposed to collaborators."""

    @abstractmethod
    def register_component(self, record: ComponentRecord, overwrite: bool = False) -> None:
        """Submit a component record.

        Args:
            record: The record to register.
            overwrite: Replace an existing record with the same name.
        """

    @abstractmethod
    def refresh(self) -> None:
        """Freeze the registry and build every eager singleton."""

    @abstractmethod
    def close(self) -> None:
        """Destroy singletons and refuse any further construction."""

    @abstractmethod
    def get(self, key: Union[str, Type[T]], qualifier: Optional[Dict[str, Any]] = None) -> Any:
        """Return the instance for a component name or a required type.

        Args:
            key: A component name or a type.
            qualifier: Optional qualifier filter, only used with a type.
        """

    @abstractmethod
    def get_all(self, required_type: Type[T]) -> List[T]:
        """Return every candidate instance of a type, ordered."""

    @abstractmethod
    def get_named_map(self, required_type: Type[T]) -> Dict[str, T]:
        """Return every candidate instance of a type, keyed by name."""


class ICandidateResolver(ABC):
    """Abstract interface for dependency resolution operations."""

    @abstractmethod
    def resolve(self, requirement: DependencyRequirement, allow_early: bool = True) -> ResolvedReference:
        """Resolve a requirement to an instance, a deferred handle, or absence.

        Args:
            requirement: What the slot needs.
            allow_early: Whether an early reference of an in-progress singleton may be returned.

        Raises:
            UnresolvedDependencyError: If a required dependency has no candidate.
            AmbiguousDependencyError: If several candidates remain after tie-breaks.
            AmbiguousPrimaryError: If several candidates are primary.
        """


class IScopeManager(ABC):
    """Abstract interface for scope-aware instance retrieval."""

    @abstractmethod
    def resolve_for_scope(self, name: str, allow_early: bool = True) -> Any:
        """Return an instance of a named component according to its scope.

        Args:
            name: The component name.
            allow_early: Whether an early reference of an in-progress singleton may be returned.
        """

    @abstractmethod
    def deferred_for(self, requirement: DependencyRequirement) -> Any:
        """Return a handle that resolves a lazy requirement on first use."""

    @abstractmethod
    def provider_for(self, name: str) -> Any:
        """Return a provider that resolves a named component on every call."""


class IComponentPostProcessor(ABC):
    """Extension point invoked around the construction of every component.

    Every method has a pass-through default so implementations override
    only what they need. Methods returning an instance may return a
    replacement; returning ``None`` keeps the current instance.
    """

    def after_instantiation(self, instance: Any, name: str) -> bool:
        """Called with the raw instance before population.

        Returns:
            False to skip field injection for this instance.
        """
        return True

    def get_early_reference(self, instance: Any, name: str) -> Any:
        """Called when a half-built singleton is first exposed to break a cycle."""
        return instance

    def before_initialization(self, instance: Any, name: str) -> Any:
        """Called after population, before init hooks."""
        return instance

    def after_initialization(self, instance: Any, name: str) -> Any:
        """Called after init hooks. A returned wrapper becomes the canonical reference."""
        return instance


class IRegistryPostProcessor(ABC):
    """Extension point allowed to rewrite records before the registry is frozen."""

    @abstractmethod
    def post_process_registry(self, registry: IComponentRegistry) -> None:
        """Inspect or modify records before any instance exists.

        Args:
            registry: The registry, still open for registration.
        """


class IContainerAware(ABC):
    """Capability interface: receives the owning container before init hooks."""

    @abstractmethod
    def set_container(self, container: IContainer) -> None:
        """Receive the container handle."""


class INameAware(ABC):
    """Capability interface: receives its own component name before init hooks."""

    @abstractmethod
    def set_component_name(self, name: str) -> None:
        """Receive the component name."""
