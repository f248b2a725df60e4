from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, model_validator

from corewire.domain.enums import Cardinality, ReferenceKind, Scope


class DependencyRequirement(BaseModel):
    """Value object describing what a construction slot or field needs.

    Attributes:
        required_type: Type every candidate must be assignable to.
        qualifier_filter: Key/value tags a candidate's qualifiers must contain.
        by_name_hint: The slot's own name, used as the last-resort tie-break.
        cardinality: How many candidates the slot consumes.
        required: Whether absence of a candidate is an error.
        lazy: Inject a deferred handle instead of a built instance.
        provider: Inject a provider that resolves anew on every call.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    required_type: Type = Field(..., description="Type every candidate must be assignable to.")
    qualifier_filter: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Qualifier key/value pairs that must all match exactly.",
    )
    by_name_hint: Optional[str] = Field(default=None, description="Slot name used for name fallback.")
    cardinality: Cardinality = Field(default=Cardinality.ONE, description="How many candidates are consumed.")
    required: bool = Field(default=True, description="Whether a missing candidate is an error.")
    lazy: bool = Field(default=False, description="Inject a deferred handle instead of an instance.")
    provider: bool = Field(default=False, description="Inject a provider resolving on every call.")

    @model_validator(mode="after")
    def _check_flags(self) -> "DependencyRequirement":
        if self.lazy and self.provider:
            raise ValueError("A requirement cannot be both lazy and a provider")
        if (self.lazy or self.provider) and self.cardinality.is_multiple:
            raise ValueError("Lazy and provider requirements must target a single candidate")
        return self

    @property
    def is_optional(self) -> bool:
        return self.cardinality == Cardinality.OPTIONAL_ONE or not self.required


class ConstructionRecipe(BaseModel):
    """Factory reference plus the ordered requirements of its arguments.

    Resolved arguments are passed to the factory positionally, in the
    order of ``requirements``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    factory: Callable[..., Any] = Field(..., description="Callable producing the raw instance.")
    requirements: Tuple[DependencyRequirement, ...] = Field(
        default=(),
        description="Ordered requirements for the factory arguments.",
    )

    @property
    def arity(self) -> int:
        return len(self.requirements)


class ComponentRecord(BaseModel):
    """Metadata record for one named component.

    Records are immutable. Fields left unset on a record that names a
    ``parent_template`` are filled from the template when the registry is
    frozen; ``model_fields_set`` tells unset fields from explicit defaults.

    Attributes:
        name: Unique component name.
        declared_type: Type used for candidate matching.
        scope: Lifetime policy.
        construction_recipe: Primary construction recipe.
        alternative_recipes: Further construction signatures to choose from.
        field_injections: Attribute name to dependency requirement.
        field_values: Attribute name to literal value.
        qualifiers: Tags compared by the candidate resolver.
        is_primary: Soft default among same-type candidates.
        is_abstract_template: Never instantiated, only inherited from.
        parent_template: Name of a record whose unset fields are inherited.
        init_hook_names: Methods invoked after population, in order.
        destroy_hook_names: Methods invoked on container close, in order.
        eligible_for_resolution: Whether type-based matching may pick it.
        order: Explicit position in collection results.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique component name.")
    declared_type: Optional[Type] = Field(default=None, description="Type used for candidate matching.")
    scope: Scope = Field(default=Scope.SINGLETON, description="Lifetime policy of the component.")
    construction_recipe: Optional[ConstructionRecipe] = Field(default=None, description="Primary recipe.")
    alternative_recipes: Tuple[ConstructionRecipe, ...] = Field(default=(), description="Other recipes.")
    field_injections: Dict[str, DependencyRequirement] = Field(default_factory=dict)
    field_values: Dict[str, Any] = Field(default_factory=dict)
    qualifiers: Dict[str, Any] = Field(default_factory=dict)
    is_primary: bool = False
    is_abstract_template: bool = False
    parent_template: Optional[str] = None
    init_hook_names: Tuple[str, ...] = ()
    destroy_hook_names: Tuple[str, ...] = ()
    eligible_for_resolution: bool = True
    order: Optional[int] = None

    @property
    def recipes(self) -> List[ConstructionRecipe]:
        """All construction recipes, the primary one first."""
        recipes = [self.construction_recipe] if self.construction_recipe is not None else []
        return recipes + list(self.alternative_recipes)

    def matches_qualifiers(self, qualifier_filter: Dict[str, Any]) -> bool:
        """Check that every filter key is present with an equal value."""
        return all(key in self.qualifiers and self.qualifiers[key] == value for key, value in qualifier_filter.items())


class ResolvedReference(BaseModel):
    """Outcome of resolving a dependency requirement.

    Attributes:
        kind: Whether a concrete instance, a deferred handle, or nothing was produced.
        value: The instance or handle; ``None`` when absent.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ReferenceKind
    value: Any = None

    @classmethod
    def of_instance(cls, value: Any) -> "ResolvedReference":
        return cls(kind=ReferenceKind.INSTANCE, value=value)

    @classmethod
    def of_deferred(cls, handle: Any) -> "ResolvedReference":
        return cls(kind=ReferenceKind.DEFERRED, value=handle)

    @classmethod
    def absent(cls) -> "ResolvedReference":
        return cls(kind=ReferenceKind.ABSENT)

    @property
    def is_absent(self) -> bool:
        return self.kind == ReferenceKind.ABSENT


class ContainerConfig(BaseModel):
    """Container-wide settings.

    Attributes:
        allow_circular_references: Expose early references so field-injection
            cycles between singletons resolve. When False every cycle fails.
        max_construction_depth: Nesting limit for nested constructions.
        eager_init: Build every non-deferred singleton during refresh().
    """

    model_config = ConfigDict(frozen=True)

    allow_circular_references: bool = True
    max_construction_depth: int = Field(default=256, ge=1)
    eager_init: bool = True
