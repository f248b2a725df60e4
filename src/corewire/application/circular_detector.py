"""Application layer - In-progress construction tracking."""

import threading
from typing import List

from corewire.domain import CyclicConstructionError


class ConstructionTracker:
    """Tracks component names currently under construction.

    Uses thread-local storage so independent constructions on different
    threads never see each other's stacks. A name that is pushed while it
    is already on the stack is a cycle the reference cache could not break.

    Attributes:
        _local: Thread-local storage for construction stacks.
        _max_depth: Nesting limit before construction is aborted.
    """

    def __init__(self, max_depth: int = 256) -> None:
        """Initialize the tracker with thread-local storage.

        Args:
            max_depth: Maximum number of nested constructions.
        """
        self._local = threading.local()
        self._max_depth = max_depth

    def _get_stack(self) -> List[str]:
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    def push(self, name: str) -> None:
        """Mark a component as under construction on the current thread.

        Args:
            name: The component being built.

        Raises:
            CyclicConstructionError: If the name is already under construction
                or the nesting limit is reached.

        Example:
            >>> tracker = ConstructionTracker()
            >>> tracker.push("service_a")
            >>> tracker.push("service_b")
            >>> tracker.push("service_a")  # Raises CyclicConstructionError
        """
        stack = self._get_stack()

        if name in stack:
            cycle_start_index = stack.index(name)
            raise CyclicConstructionError(stack[cycle_start_index:] + [name])

        if len(stack) >= self._max_depth:
            raise CyclicConstructionError(
                stack[-3:] + [name],
                f"Construction depth limit of {self._max_depth} reached",
            )

        stack.append(name)

    def pop(self) -> None:
        """Remove the most recent name once its construction ends."""
        stack = self._get_stack()
        if stack:
            stack.pop()

    def is_in_progress(self, name: str) -> bool:
        return name in self._get_stack()

    def chain(self) -> List[str]:
        """Return a copy of the current thread's construction stack."""
        return list(self._get_stack())

    def clear(self) -> None:
        """Clear the current thread's stack."""
        if hasattr(self._local, "stack"):
            self._local.stack.clear()
