"""Application layer - Construction of component instances."""

import logging
from typing import Any, Dict, List, Tuple

from corewire.application.candidate_resolver import CandidateResolver
from corewire.application.circular_detector import ConstructionTracker
from corewire.application.introspection import recipe_from_callable
from corewire.application.lifecycle import LifecycleOrchestrator
from corewire.application.reference_cache import ReferenceCache
from corewire.domain import (
    AmbiguousConstructionRecipeError,
    CannotInstantiateTemplateError,
    ComponentCreationError,
    ComponentRecord,
    ConstructionRecipe,
    ContainerConfig,
    CyclicConstructionError,
    DIException,
    IComponentRegistry,
    Scope,
)

logger = logging.getLogger(__name__)


class ObjectBuilder:
    """Builds component instances from their records.

    Constructor arguments are resolved without early references: no
    half-built instance of a dependency can exist while its own constructor
    still waits for this one, so a constructor cycle fails fast. Singleton
    and deferred-scope components register an early-reference thunk right
    after raw instantiation so that field injection cycles resolve.

    Attributes:
        _registry: Source of effective records.
        _resolver: Resolves constructor arguments.
        _cache: Receives early-reference thunks of singletons.
        _lifecycle: Populates and initializes raw instances.
        _tracker: Per-thread construction stack.
        _config: Container settings.
        _derived_recipes: Recipes introspected from declared types, per name.
    """

    def __init__(
        self,
        registry: IComponentRegistry,
        resolver: CandidateResolver,
        cache: ReferenceCache,
        lifecycle: LifecycleOrchestrator,
        tracker: ConstructionTracker,
        config: ContainerConfig,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._cache = cache
        self._lifecycle = lifecycle
        self._tracker = tracker
        self._config = config
        self._derived_recipes: Dict[str, ConstructionRecipe] = {}

    def build(self, name: str) -> Tuple[Any, Any]:
        """Construct, populate and initialize a component.

        Args:
            name: The component to build.

        Returns:
            ``(instance, raw_instance)``: the canonical reference and the
            object the factory produced, which receives destroy hooks.

        Raises:
            CannotInstantiateTemplateError: If the record is an abstract template.
            CyclicConstructionError: If the component is already under construction
                on this thread, or a wrapped instance conflicts with an early reference.
            AmbiguousConstructionRecipeError: If no recipe can be chosen.
            ComponentCreationError: If the factory or an init hook fails.
        """
        record = self._registry.lookup(name)
        if record.is_abstract_template:
            raise CannotInstantiateTemplateError(name)

        self._tracker.push(name)
        try:
            return self._build_record(record)
        finally:
            self._tracker.pop()

    def _build_record(self, record: ComponentRecord) -> Tuple[Any, Any]:
        name = record.name
        cacheable = record.scope in (Scope.SINGLETON, Scope.DEFERRED)
        allow_early = self._config.allow_circular_references

        recipe = self.select_recipe(record)
        arguments = []
        for requirement in recipe.requirements:
            reference = self._resolver.resolve(requirement, allow_early=False)
            arguments.append(reference.value)

        try:
            raw_instance = recipe.factory(*arguments)
        except DIException:
            raise
        except Exception as e:
            raise ComponentCreationError(name, f"Factory raised {type(e).__name__}: {e}") from e
        if raw_instance is None:
            raise ComponentCreationError(name, "Factory returned None")

        if cacheable and allow_early:
            self._cache.add_early_factory(name, lambda: self._lifecycle.early_reference(raw_instance, name))

        self._lifecycle.populate(raw_instance, record, allow_early=allow_early)
        instance = self._lifecycle.initialize(raw_instance, record)

        if cacheable:
            early = self._cache.early_reference_if_exposed(name)
            if early is not None:
                if instance is raw_instance:
                    instance = early
                elif instance is not early:
                    raise CyclicConstructionError(
                        self._tracker.chain(),
                        f"Component '{name}' was injected into others as an early reference "
                        "but post-initialization replaced it with a different object",
                    )

        logger.debug("Built component '%s' (%s)", name, record.scope)
        return instance, raw_instance

    def select_recipe(self, record: ComponentRecord) -> ConstructionRecipe:
        """Choose the construction recipe for a record.

        A record without recipes is autowired from its declared type. With
        several recipes, the satisfiable one with the most requirements
        wins; without a unique winner a zero-argument recipe is used.

        Raises:
            AmbiguousConstructionRecipeError: If no recipe can be chosen.
        """
        recipes = record.recipes
        if not recipes:
            if record.name not in self._derived_recipes:
                self._derived_recipes[record.name] = recipe_from_callable(record.declared_type, record.name)
            return self._derived_recipes[record.name]

        if len(recipes) == 1:
            return recipes[0]

        satisfiable = [recipe for recipe in recipes if self._is_satisfiable(recipe)]
        if satisfiable:
            most = max(recipe.arity for recipe in satisfiable)
            best = [recipe for recipe in satisfiable if recipe.arity == most]
            if len(best) == 1:
                return best[0]

        zero_argument: List[ConstructionRecipe] = [recipe for recipe in recipes if recipe.arity == 0]
        if zero_argument:
            return zero_argument[0]

        reason = (
            f"{len(satisfiable)} of {len(recipes)} recipes are satisfiable and none is uniquely most specific"
            if satisfiable
            else f"None of {len(recipes)} recipes is satisfiable"
        )
        raise AmbiguousConstructionRecipeError(record.name, reason)

    def _is_satisfiable(self, recipe: ConstructionRecipe) -> bool:
        return all(self._resolver.can_satisfy(requirement) for requirement in recipe.requirements)
