"""
Domain layer - Core models and rules.

This layer contains the component metadata records, the error taxonomy,
and the interfaces every container collaborator is written against.
It has no dependencies on other layers.
"""

from .enums import Cardinality, ContainerPhase, InstanceState, ReferenceKind, Scope
from .exceptions import (
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
from .interfaces import (
    ICandidateResolver,
    IComponentPostProcessor,
    IComponentRegistry,
    IContainer,
    IContainerAware,
    INameAware,
    IRegistryPostProcessor,
    IScopeManager,
)
from .models import (
    ComponentRecord,
    ConstructionRecipe,
    ContainerConfig,
    DependencyRequirement,
    ResolvedReference,
)

__all__ = [
    # Enums
    "Scope",
    "Cardinality",
    "ReferenceKind",
    "ContainerPhase",
    "InstanceState",
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
    # Interfaces
    "IComponentRegistry",
    "IContainer",
    "ICandidateResolver",
    "IScopeManager",
    "IComponentPostProcessor",
    "IRegistryPostProcessor",
    "IContainerAware",
    "INameAware",
    # Models
    "DependencyRequirement",
    "ConstructionRecipe",
    "ComponentRecord",
    "ResolvedReference",
    "ContainerConfig",
]
