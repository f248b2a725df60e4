"""Application layer - Three-tier singleton reference cache."""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from corewire.domain import InstanceState

logger = logging.getLogger(__name__)


class ReferenceCache:
    """Owns singleton instances and their lifetime state.

    Three maps, keyed by component name:

    - finished: fully initialized instances, safe to hand to anyone.
    - early: half-built instances already handed out to break a cycle.
    - factories: one thunk per in-progress construction, registered right
      after raw instantiation, producing the early reference on demand.

    Every early exposure goes through the thunk, so at most one reference
    per name ever leaves the cache, wrapped or not. Finished reads are
    lock-free; creation and early exposure run under one re-entrant lock
    so racing threads observe a single construction.

    Attributes:
        _finished: Tier 1, initialized instances.
        _early: Tier 2, exposed half-built instances.
        _factories: Tier 3, early-reference thunks.
        _in_creation: Names whose construction has started and not finished.
        _ready_order: Names in the order they became ready.
        _disposables: Raw instance per ready name, handed to destroy hooks.
    """

    def __init__(self) -> None:
        self._finished: Dict[str, Any] = {}
        self._early: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._in_creation: Set[str] = set()
        self._states: Dict[str, InstanceState] = {}
        self._ready_order: List[str] = []
        self._disposables: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def get(self, name: str, allow_early: bool = True) -> Optional[Any]:
        """Return the cached reference for a name, or None.

        Checks finished instances first. When the name is mid-construction
        and early references are allowed, returns the already exposed early
        reference or, on first demand, invokes the factory thunk, moves its
        result to the early tier and drops the thunk.

        Args:
            name: The component name.
            allow_early: Whether a half-built instance may be returned.

        Returns:
            The reference, or None when nothing can be served.
        """
        instance = self._finished.get(name)
        if instance is not None or not allow_early or name not in self._in_creation:
            return instance

        with self._lock:
            if name in self._finished:
                return self._finished[name]
            if name in self._early:
                return self._early[name]
            factory = self._factories.pop(name, None)
            if factory is None:
                return None
            instance = factory()
            self._early[name] = instance
            self._states[name] = InstanceState.EARLY_EXPOSED
        logger.debug("Exposed early reference of singleton '%s'", name)
        return instance

    def get_or_create(self, name: str, factory: Callable[[], Tuple[Any, Any]]) -> Any:
        """Return the finished instance for a name, building it once if needed.

        Args:
            name: The component name.
            factory: Builds the component and returns ``(instance, raw_instance)``.

        Returns:
            The finished instance.
        """
        instance = self._finished.get(name)
        if instance is not None:
            return instance

        with self._lock:
            if name in self._finished:
                return self._finished[name]

            owner = name not in self._in_creation
            if owner:
                self._in_creation.add(name)
                self._states[name] = InstanceState.REQUESTED
            try:
                instance, raw_instance = factory()
            except BaseException:
                if owner:
                    self._discard(name)
                raise

            self.add_finished(name, instance, raw_instance)
            if owner:
                self._in_creation.discard(name)
            return instance

    def add_early_factory(self, name: str, factory: Callable[[], Any]) -> None:
        """Register the thunk producing the early reference of an in-progress singleton."""
        with self._lock:
            if name not in self._finished:
                self._factories[name] = factory
                self._states[name] = InstanceState.UNDER_CONSTRUCTION

    def early_reference_if_exposed(self, name: str) -> Optional[Any]:
        """Return the early reference handed out for a name, without invoking any thunk."""
        return self._early.get(name)

    def add_finished(self, name: str, instance: Any, raw_instance: Any = None) -> None:
        """Store a ready instance and drop its early tiers."""
        with self._lock:
            self._finished[name] = instance
            self._early.pop(name, None)
            self._factories.pop(name, None)
            if name not in self._disposables:
                self._ready_order.append(name)
            self._disposables[name] = raw_instance if raw_instance is not None else instance
            self._states[name] = InstanceState.READY
        logger.debug("Singleton '%s' is ready", name)

    def mark(self, name: str, state: InstanceState) -> None:
        """Record a lifecycle transition of an in-progress singleton."""
        if name in self._in_creation:
            self._states[name] = state

    def is_in_creation(self, name: str) -> bool:
        return name in self._in_creation

    def contains(self, name: str) -> bool:
        return name in self._finished

    def state_of(self, name: str) -> Optional[InstanceState]:
        return self._states.get(name)

    def ready_order(self) -> List[str]:
        return list(self._ready_order)

    def destruction_order(self) -> List[Tuple[str, Any]]:
        """Return ``(name, raw_instance)`` pairs in strict reverse of ready order."""
        with self._lock:
            return [(name, self._disposables[name]) for name in reversed(self._ready_order)]

    def mark_destroyed(self, name: str) -> None:
        self._states[name] = InstanceState.DESTROYED

    def _discard(self, name: str) -> None:
        self._early.pop(name, None)
        self._factories.pop(name, None)
        self._in_creation.discard(name)
        self._states.pop(name, None)

    def clear(self) -> None:
        """Drop every cached reference. Recorded states are kept."""
        with self._lock:
            self._finished.clear()
            self._early.clear()
            self._factories.clear()
            self._in_creation.clear()
            self._ready_order.clear()
            self._disposables.clear()
