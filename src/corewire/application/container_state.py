"""Application layer - Per-container mutable state."""

import threading
from contextlib import contextmanager
from typing import Iterator

from corewire.application.circular_detector import ConstructionTracker
from corewire.application.reference_cache import ReferenceCache
from corewire.application.registry import ComponentRegistry
from corewire.domain import ContainerClosedError, ContainerPhase


class ContainerState:
    """All mutable state owned by one container.

    Nothing here is process-wide: two containers never share a registry,
    a cache or a construction stack.

    Attributes:
        registry: The component registry.
        reference_cache: Singleton instances and their early references.
        in_progress: Names under construction, per thread.
        phase: UNSTARTED, ACTIVE or CLOSED.
    """

    def __init__(self, registry: ComponentRegistry, reference_cache: ReferenceCache, in_progress: ConstructionTracker) -> None:
        self.registry = registry
        self.reference_cache = reference_cache
        self.in_progress = in_progress
        self.phase = ContainerPhase.UNSTARTED
        self._closing = False
        self._in_flight = 0
        self._condition = threading.Condition()
        self._local = threading.local()

    @property
    def closed(self) -> bool:
        return self.phase == ContainerPhase.CLOSED

    @property
    def closing(self) -> bool:
        return self._closing

    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def ensure_open(self) -> None:
        """Raise if no construction may begin anymore.

        Once close() has started, only calls that were already in flight on
        the current thread may keep constructing.

        Raises:
            ContainerClosedError: If the container is closing or closed.
        """
        if self.closed or (self._closing and self._depth() == 0):
            raise ContainerClosedError("Container is closed; no new construction may begin")

    @contextmanager
    def call(self) -> Iterator[None]:
        """Track one in-flight call; close() waits for all of them.

        Calls nest: a call made on a thread that is already inside one is
        admitted until destruction starts.

        Raises:
            ContainerClosedError: If the container is closing or closed.
        """
        depth = self._depth()
        with self._condition:
            if self.closed or (self._closing and depth == 0):
                raise ContainerClosedError("Container is closed")
            self._in_flight += 1
        self._local.depth = depth + 1
        try:
            yield
        finally:
            self._local.depth = depth
            with self._condition:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._condition.notify_all()

    def begin_close(self) -> bool:
        """Refuse new calls, block until in-flight calls complete, then mark closed.

        Destruction runs after this returns, with every construction path
        already refused.

        Returns:
            False if closing had already begun, True otherwise.
        """
        with self._condition:
            if self._closing or self.closed:
                return False
            self._closing = True
            while self._in_flight > 0:
                self._condition.wait()
            self.phase = ContainerPhase.CLOSED
        return True

    def mark_closed(self) -> None:
        with self._condition:
            self._closing = True
            self.phase = ContainerPhase.CLOSED
