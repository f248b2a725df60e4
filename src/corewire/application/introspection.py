"""Application layer - Construction recipes derived from type hints."""

import inspect
from types import UnionType
from typing import Any, Callable, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from corewire.domain import (
    Cardinality,
    ConstructionRecipe,
    DependencyRequirement,
    InvalidComponentRecordError,
)

_UNION_TYPES = (Union, UnionType)


def _unwrap_optional(hint: Any) -> Tuple[Any, bool]:
    """Split ``Optional[T]`` into ``(T, True)``; other hints come back unchanged."""
    if get_origin(hint) in _UNION_TYPES:
        members = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(members) == 1 and len(get_args(hint)) == 2:
            return members[0], True
    return hint, False


def requirement_from_hint(slot_name: str, hint: Any, owner: str) -> DependencyRequirement:
    """Build the requirement a single annotated slot expresses.

    ``List[T]`` and ``Sequence[T]`` map to a collection of every ``T``,
    ``Dict[str, T]`` to a name-keyed map, ``Optional[T]`` to an optional
    single candidate.

    Args:
        slot_name: Parameter or attribute name, used as the name hint.
        hint: The resolved type hint.
        owner: Name of the component or callable, for error messages.

    Raises:
        InvalidComponentRecordError: If the hint is not a class or a supported generic.
    """
    hint, optional = _unwrap_optional(hint)
    cardinality = Cardinality.OPTIONAL_ONE if optional else Cardinality.ONE

    origin = get_origin(hint)
    args = get_args(hint)
    origin_name = getattr(origin, "__name__", "")
    if origin in (list, tuple) or origin_name == "Sequence":
        cardinality = Cardinality.ALL_AS_COLLECTION
        hint = args[0] if args else object
    elif origin is dict or origin_name == "Mapping":
        cardinality = Cardinality.ALL_AS_NAMED_MAP
        hint = args[1] if len(args) == 2 else object

    if not inspect.isclass(hint):
        raise InvalidComponentRecordError(owner, f"Type hint of '{slot_name}' is not a class: {hint!r}")

    return DependencyRequirement(
        required_type=hint,
        by_name_hint=slot_name,
        cardinality=cardinality,
        required=not optional,
    )


def recipe_from_callable(factory: Callable[..., Any], name: Optional[str] = None) -> ConstructionRecipe:
    """Derive a construction recipe from a class constructor or factory function.

    Parameters with default values and ``*args``/``**kwargs`` are skipped so
    their defaults apply.

    Args:
        factory: A class or a callable returning the instance.
        name: Component name, for error messages.

    Returns:
        Recipe whose requirements follow the positional parameter order.

    Raises:
        InvalidComponentRecordError: If a parameter lacks a type hint, is
            keyword-only without a default, or hints cannot be evaluated.

    Example:
        >>> class UserService:
        ...     def __init__(self, db: DatabaseConnection, cache: Optional[Cache] = None):
        ...         self.db = db
        >>>
        >>> recipe = recipe_from_callable(UserService)
        >>> [r.required_type for r in recipe.requirements]
        [<class 'DatabaseConnection'>]
    """
    owner = name or getattr(factory, "__qualname__", repr(factory))
    target = factory.__init__ if inspect.isclass(factory) else factory
    try:
        signature = inspect.signature(target)
        type_hints = get_type_hints(target)
    except (NameError, TypeError, ValueError) as e:
        raise InvalidComponentRecordError(owner, f"Cannot inspect constructor: {e}") from e

    requirements = []
    for param_name, param in signature.parameters.items():
        if param_name == "self":
            continue

        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        if param.default is not inspect.Parameter.empty:
            continue

        if param.kind == inspect.Parameter.KEYWORD_ONLY:
            raise InvalidComponentRecordError(owner, f"Keyword-only parameter '{param_name}' has no default value")

        if param_name not in type_hints:
            raise InvalidComponentRecordError(owner, f"Parameter '{param_name}' lacks type hint and has no default value")

        requirements.append(requirement_from_hint(param_name, type_hints[param_name], owner))

    return ConstructionRecipe(factory=factory, requirements=tuple(requirements))


def infer_declared_type(recipe: ConstructionRecipe) -> Optional[type]:
    """Return the type a recipe produces, from the class itself or a return annotation."""
    factory = recipe.factory
    if inspect.isclass(factory):
        return factory
    try:
        returned = get_type_hints(factory).get("return")
    except (NameError, TypeError):
        return None
    return returned if inspect.isclass(returned) else None
