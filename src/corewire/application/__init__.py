"""
Application layer - Use cases and orchestration.

This layer turns component records into a wired object graph.
It depends only on the Domain layer.
"""

from .candidate_resolver import CandidateResolver
from .circular_detector import ConstructionTracker
from .container import Container
from .container_state import ContainerState
from .deferred import DeferredHandle, Provider, is_deferred, is_resolved, resolve_deferred
from .introspection import recipe_from_callable, requirement_from_hint
from .lifecycle import LifecycleOrchestrator
from .object_builder import ObjectBuilder
from .reference_cache import ReferenceCache
from .registry import ComponentRegistry
from .scope_manager import ScopeManager

__all__ = [
    "Container",
    "ContainerState",
    "ComponentRegistry",
    "CandidateResolver",
    "ObjectBuilder",
    "ReferenceCache",
    "LifecycleOrchestrator",
    "ScopeManager",
    "ConstructionTracker",
    "DeferredHandle",
    "Provider",
    "is_deferred",
    "is_resolved",
    "resolve_deferred",
    "recipe_from_callable",
    "requirement_from_hint",
]
