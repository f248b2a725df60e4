"""Application layer - Population, initialization and destruction of instances."""

import logging
from typing import Any, List

from corewire.application.reference_cache import ReferenceCache
from corewire.domain import (
    ComponentCreationError,
    ComponentRecord,
    DIException,
    ICandidateResolver,
    IComponentPostProcessor,
    IContainer,
    IContainerAware,
    INameAware,
    InstanceState,
    LifecycleHookError,
)

logger = logging.getLogger(__name__)


class LifecycleOrchestrator:
    """Drives an instance from raw construction to ready, and on to destruction.

    ``populate`` injects fields, ``initialize`` runs post-processors, aware
    callbacks and init hooks and returns the canonical reference (possibly
    a wrapper produced by a post-processor), ``destroy`` runs destroy hooks
    and never raises.

    Attributes:
        _resolver: Resolves field injection requirements.
        _cache: Receives lifecycle transitions of singletons.
        _container: Handle passed to container-aware instances.
        _post_processors: Extension hooks, in registration order.
    """

    def __init__(self, resolver: ICandidateResolver, cache: ReferenceCache, container: IContainer) -> None:
        self._resolver = resolver
        self._cache = cache
        self._container = container
        self._post_processors: List[IComponentPostProcessor] = []

    def add_post_processor(self, post_processor: IComponentPostProcessor) -> None:
        self._post_processors.append(post_processor)

    @property
    def post_processors(self) -> List[IComponentPostProcessor]:
        return list(self._post_processors)

    def populate(self, instance: Any, record: ComponentRecord, allow_early: bool = True) -> None:
        """Assign literal field values and injected dependencies.

        Any post-processor returning False from ``after_instantiation``
        skips population entirely. Absent optional dependencies leave the
        attribute untouched.

        Args:
            instance: The raw instance.
            record: The effective record of the component.
            allow_early: Whether early references of in-progress singletons may be injected.
        """
        for post_processor in self._post_processors:
            if not post_processor.after_instantiation(instance, record.name):
                logger.debug("Population of '%s' skipped by %s", record.name, type(post_processor).__name__)
                return

        for attribute, value in record.field_values.items():
            setattr(instance, attribute, value)

        for attribute, requirement in record.field_injections.items():
            reference = self._resolver.resolve(requirement, allow_early=allow_early)
            if reference.is_absent:
                continue
            setattr(instance, attribute, reference.value)

        self._cache.mark(record.name, InstanceState.POPULATED)

    def initialize(self, instance: Any, record: ComponentRecord) -> Any:
        """Run pre-init hooks, aware callbacks, init hooks and post-init hooks.

        Args:
            instance: The populated instance.
            record: The effective record of the component.

        Returns:
            The canonical reference, which a post-processor may have replaced.
        """
        name = record.name
        current = instance

        for post_processor in self._post_processors:
            result = post_processor.before_initialization(current, name)
            if result is not None:
                current = result

        if isinstance(current, IContainerAware):
            current.set_container(self._container)
        if isinstance(current, INameAware):
            current.set_component_name(name)

        for hook_name in record.init_hook_names:
            self._invoke_hook(current, name, hook_name)

        for post_processor in self._post_processors:
            result = post_processor.after_initialization(current, name)
            if result is not None:
                current = result

        self._cache.mark(name, InstanceState.INITIALIZED)
        return current

    def early_reference(self, instance: Any, name: str) -> Any:
        """Produce the single reference exposed for a half-built singleton."""
        exposed = instance
        for post_processor in self._post_processors:
            result = post_processor.get_early_reference(exposed, name)
            if result is not None:
                exposed = result
        return exposed

    def destroy(self, instance: Any, record: ComponentRecord) -> None:
        """Invoke destroy hooks in declaration order, logging every failure."""
        for hook_name in record.destroy_hook_names:
            try:
                self._invoke_hook(instance, record.name, hook_name)
            except Exception:
                logger.exception("Destroy hook '%s' of component '%s' failed", hook_name, record.name)

    @staticmethod
    def _invoke_hook(instance: Any, name: str, hook_name: str) -> None:
        hook = getattr(instance, hook_name, None)
        if not callable(hook):
            raise LifecycleHookError(name, hook_name)
        try:
            hook()
        except DIException:
            raise
        except Exception as e:
            raise ComponentCreationError(name, f"Lifecycle hook '{hook_name}' failed: {e}") from e
