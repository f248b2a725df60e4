"""
corewire: Inversion-of-control container with scope-aware caching and cycle-safe wiring.

Public API exports for the corewire package.
"""

# Application exports
from corewire.application.container import Container
from corewire.application.deferred import DeferredHandle, Provider, is_resolved
from corewire.application.introspection import recipe_from_callable

# Domain exports
from corewire.domain.enums import Cardinality, ContainerPhase, InstanceState, Scope
from corewire.domain.exceptions import (
    AlreadyActiveError,
    AmbiguousConstructionRecipeError,
    AmbiguousDependencyError,
    AmbiguousPrimaryError,
    CannotInstantiateTemplateError,
    ComponentCreationError,
    ContainerClosedError,
    ContainerNotActiveError,
    CyclicConstructionError,
    DIException,
    DuplicateNameError,
    InvalidComponentRecordError,
    LifecycleHookError,
    NotFoundError,
    RegistryFrozenError,
    UnresolvedDependencyError,
)
from corewire.domain.interfaces import (
    IComponentPostProcessor,
    IContainerAware,
    INameAware,
    IRegistryPostProcessor,
)
from corewire.domain.models import (
    ComponentRecord,
    ConstructionRecipe,
    ContainerConfig,
    DependencyRequirement,
)

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    "ContainerConfig",
    "DeferredHandle",
    "Provider",
    "is_resolved",
    "recipe_from_callable",
    # Records
    "ComponentRecord",
    "ConstructionRecipe",
    "DependencyRequirement",
    # Enums
    "Scope",
    "Cardinality",
    "ContainerPhase",
    "InstanceState",
    # Extension points
    "IComponentPostProcessor",
    "IRegistryPostProcessor",
    "IContainerAware",
    "INameAware",
    # Exceptions
    "DIException",
    "DuplicateNameError",
    "NotFoundError",
    "CannotInstantiateTemplateError",
    "UnresolvedDependencyError",
    "AmbiguousDependencyError",
    "AmbiguousPrimaryError",
    "CyclicConstructionError",
    "AmbiguousConstructionRecipeError",
    "ContainerClosedError",
    "AlreadyActiveError",
    "ContainerNotActiveError",
    "RegistryFrozenError",
    "InvalidComponentRecordError",
    "ComponentCreationError",
    "LifecycleHookError",
]
