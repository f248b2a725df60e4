"""Application layer - Deferred handles and providers."""

import threading
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

_HANDLE_SLOTS = ("_target_factory", "_description", "_instance", "_resolved", "_lock")


class DeferredHandle:
    """Proxy that defers construction of its target until first use.

    Attribute access, attribute assignment and calls are forwarded to the
    target. ``target_factory`` runs without the handle lock held; when
    threads race on first use, the first published target wins. Creating
    or holding the handle never builds anything.

    Example:
        >>> handle = DeferredHandle(lambda: ExpensiveService(), "ExpensiveService")
        >>> is_resolved(handle)
        False
        >>> handle.run()  # builds ExpensiveService, then calls run()
        >>> is_resolved(handle)
        True
    """

    __slots__ = _HANDLE_SLOTS

    def __init__(self, target_factory: Callable[[], Any], description: str) -> None:
        object.__setattr__(self, "_target_factory", target_factory)
        object.__setattr__(self, "_description", description)
        object.__setattr__(self, "_instance", None)
        object.__setattr__(self, "_resolved", False)
        object.__setattr__(self, "_lock", threading.Lock())

    def _resolve(self) -> Any:
        if not self._resolved:
            instance = self._target_factory()
            with self._lock:
                if not self._resolved:
                    object.__setattr__(self, "_instance", instance)
                    object.__setattr__(self, "_resolved", True)
        return self._instance

    def __getattr__(self, name: str) -> Any:
        return getattr(self._resolve(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _HANDLE_SLOTS:
            object.__setattr__(self, name, value)
        else:
            setattr(self._resolve(), name, value)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._resolve()(*args, **kwargs)

    def __repr__(self) -> str:
        state = "resolved" if self._resolved else "pending"
        return f"DeferredHandle[{self._description}, {state}]"


def is_deferred(value: Any) -> bool:
    return isinstance(value, DeferredHandle)


def is_resolved(handle: DeferredHandle) -> bool:
    """Check whether a handle has already built its target."""
    return object.__getattribute__(handle, "_resolved")


def resolve_deferred(handle: DeferredHandle) -> Any:
    """Force a handle to build its target and return the target itself."""
    return DeferredHandle._resolve(handle)


class Provider(Generic[T]):
    """Callable that returns an instance of a named component on every call.

    Each call goes back through scope-aware resolution, so a transient
    component consumed by a singleton through a provider is fresh per call.

    Attributes:
        name: The component the provider serves.
    """

    def __init__(self, name: str, source: Callable[[str], T]) -> None:
        self.name = name
        self._source = source

    def get(self) -> T:
        return self._source(self.name)

    def __call__(self) -> T:
        return self.get()

    def __repr__(self) -> str:
        return f"Provider[{self.name}]"
