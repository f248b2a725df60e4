from typing import Any, Iterable, List, Optional, Sequence


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", repr(value))


class DIException(Exception):
    """Base exception for container errors."""


class DuplicateNameError(DIException):
    """Raised when a component name is registered twice without overwrite.

    Attributes:
        name: The component name that already exists.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Component '{name}' is already registered")


class NotFoundError(DIException):
    """Raised when no component record exists under a name.

    Attributes:
        name: The name that was looked up.
    """

    def __init__(self, name: str, reason: Optional[str] = None) -> None:
        self.name = name
        self.reason = reason
        message = f"No component registered under name '{name}'"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class CannotInstantiateTemplateError(DIException):
    """Raised when an abstract template record is asked to build an instance."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Component '{name}' is an abstract template and cannot be instantiated")


class UnresolvedDependencyError(DIException):
    """Raised when a required dependency has no matching candidate.

    This occurs when:
    - No eligible record is assignable to the required type.
    - A qualifier filter matched none of the candidates.

    Attributes:
        required_type: The type that could not be satisfied.
        reason: Optional reason for the failure.
    """

    def __init__(self, required_type: Any, reason: Optional[str] = None) -> None:
        self.required_type = required_type
        self.reason = reason
        message = f"No component satisfies dependency of type {_type_name(required_type)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class AmbiguousDependencyError(DIException):
    """Raised when several candidates remain after every tie-break.

    Attributes:
        required_type: The requested type.
        candidates: Names of the candidates that could not be told apart.
    """

    def __init__(self, required_type: Any, candidates: Sequence[str]) -> None:
        self.required_type = required_type
        self.candidates = list(candidates)
        super().__init__(
            f"Expected a single component of type {_type_name(required_type)} "
            f"but found {len(self.candidates)}: {', '.join(self.candidates)}"
        )


class AmbiguousPrimaryError(DIException):
    """Raised when more than one candidate is marked primary.

    Attributes:
        required_type: The requested type.
        candidates: Names of the primary candidates.
    """

    def __init__(self, required_type: Any, candidates: Sequence[str]) -> None:
        self.required_type = required_type
        self.candidates = list(candidates)
        super().__init__(
            f"More than one primary component of type {_type_name(required_type)}: " f"{', '.join(self.candidates)}"
        )


class CyclicConstructionError(DIException):
    """Raised when a reference cycle cannot be broken.

    Attributes:
        chain: Names involved in the cycle, in construction order.
    """

    def __init__(self, chain: Iterable[str], reason: Optional[str] = None) -> None:
        self.chain: List[str] = list(chain)
        self.reason = reason
        message = f"Cyclic construction detected: {' -> '.join(self.chain)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class AmbiguousConstructionRecipeError(DIException):
    """Raised when no construction recipe can be chosen for a component."""

    def __init__(self, name: str, reason: Optional[str] = None) -> None:
        self.name = name
        self.reason = reason
        message = f"Cannot choose a construction recipe for component '{name}'"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class ContainerClosedError(DIException):
    """Raised when a closed container is asked to construct or serve instances."""


class AlreadyActiveError(DIException):
    """Raised when refresh() is called on a container that is already active."""


class ContainerNotActiveError(DIException):
    """Raised when instances are requested before refresh()."""


class RegistryFrozenError(DIException):
    """Raised when the registry is modified after it has been frozen.

    This occurs when:
    - Registering a non-deferred record on an active container.
    - Merging templates after freeze().
    """


class InvalidComponentRecordError(DIException):
    """Raised for records that can never produce an instance.

    This occurs when:
    - A concrete record declares no type and none can be inferred.
    - Template inheritance forms a cycle.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid component record '{name}': {reason}")


class ComponentCreationError(DIException):
    """Raised when a factory or lifecycle hook fails with a foreign exception.

    Attributes:
        name: The component being built.
        reason: Description of the underlying failure.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to create component '{name}': {reason}")


class LifecycleHookError(DIException):
    """Raised when a declared init or destroy hook is not a callable method."""

    def __init__(self, name: str, hook_name: str) -> None:
        self.name = name
        self.hook_name = hook_name
        super().__init__(f"Component '{name}' has no callable lifecycle hook '{hook_name}'")
