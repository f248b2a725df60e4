from enum import Enum


class Scope(str, Enum):
    """Defines the lifetime policy of a component.

    Attributes:
        SINGLETON: Single instance per container, built once and cached.
        TRANSIENT: New instance created on each request, never retained.
        DEFERRED: Construction postponed behind a handle until first use.
    """

    SINGLETON = "singleton"
    TRANSIENT = "transient"
    DEFERRED = "deferred"

    def __str__(self) -> str:
        return self.value


class Cardinality(str, Enum):
    """How many candidates a dependency requirement consumes.

    Attributes:
        ONE: Exactly one candidate is required.
        OPTIONAL_ONE: At most one candidate; absence is legal.
        ALL_AS_COLLECTION: Every candidate, as an ordered list.
        ALL_AS_NAMED_MAP: Every candidate, as a name to instance mapping.
    """

    ONE = "one"
    OPTIONAL_ONE = "optional_one"
    ALL_AS_COLLECTION = "all_as_collection"
    ALL_AS_NAMED_MAP = "all_as_named_map"

    def __str__(self) -> str:
        return self.value

    @property
    def is_multiple(self) -> bool:
        return self in (Cardinality.ALL_AS_COLLECTION, Cardinality.ALL_AS_NAMED_MAP)


class ReferenceKind(str, Enum):
    """Outcome kinds of resolving a dependency requirement."""

    INSTANCE = "instance"
    DEFERRED = "deferred"
    ABSENT = "absent"

    def __str__(self) -> str:
        return self.value


class ContainerPhase(str, Enum):
    """Lifecycle phase of a container.

    Attributes:
        UNSTARTED: Records may be registered; nothing has been built.
        ACTIVE: Registry frozen; singletons built; instances are served.
        CLOSED: Singletons destroyed; no further construction is possible.
    """

    UNSTARTED = "unstarted"
    ACTIVE = "active"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


class InstanceState(str, Enum):
    """Lifecycle state of a single singleton instance."""

    REQUESTED = "requested"
    UNDER_CONSTRUCTION = "under_construction"
    EARLY_EXPOSED = "early_exposed"
    POPULATED = "populated"
    INITIALIZED = "initialized"
    READY = "ready"
    DESTROYED = "destroyed"

    def __str__(self) -> str:
        return self.value
