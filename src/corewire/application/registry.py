"""Application layer - Component record storage and template merging."""

import logging
import threading
from typing import Dict, List, Optional, Type

from corewire.application.introspection import infer_declared_type
from corewire.domain import (
    ComponentRecord,
    DIException,
    DuplicateNameError,
    IComponentRegistry,
    InvalidComponentRecordError,
    NotFoundError,
    RegistryFrozenError,
    Scope,
)

logger = logging.getLogger(__name__)

# Dict fields are merged key-wise with the child's entries winning.
_MERGED_DICT_FIELDS = ("field_injections", "field_values", "qualifiers")
_NEVER_INHERITED = ("name", "parent_template", "is_abstract_template")


def _is_assignable(declared_type: Optional[type], required_type: Type) -> bool:
    if declared_type is None:
        return False
    try:
        return issubclass(declared_type, required_type)
    except TypeError:
        return False


class ComponentRegistry(IComponentRegistry):
    """Single mutable owner of component records.

    Records are registered while the container is unstarted. ``freeze()``
    resolves template inheritance into effective records and closes the
    registry for further changes; only deferred-scope records may arrive
    afterwards through ``register_late()``.

    Attributes:
        _records: Records as registered, keyed by name, in registration order.
        _effective: Merged records, populated by freeze().
        _order: Registration index per name.
        _frozen: Whether freeze() has run.
    """

    def __init__(self) -> None:
        self._records: Dict[str, ComponentRecord] = {}
        self._effective: Dict[str, ComponentRecord] = {}
        self._order: Dict[str, int] = {}
        self._frozen = False
        self._lock = threading.RLock()

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def register(self, record: ComponentRecord, overwrite: bool = False) -> None:
        """Store a record under its name.

        Args:
            record: The record to store.
            overwrite: Replace an existing record, keeping its registration position.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            DuplicateNameError: If the name exists and overwrite is False.
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot register '{record.name}': registry is frozen")
            self._store(record, overwrite)
        logger.debug("Registered component '%s' (%s)", record.name, record.scope)

    def register_late(self, record: ComponentRecord) -> ComponentRecord:
        """Register a deferred-scope record after freeze() and return its effective form.

        Raises:
            RegistryFrozenError: If the registry is not frozen yet or the record is not deferred.
            DuplicateNameError: If the name already exists.
        """
        with self._lock:
            if not self._frozen:
                raise RegistryFrozenError("Late registration is only possible on a frozen registry")
            if record.scope != Scope.DEFERRED:
                raise RegistryFrozenError(
                    f"Cannot register '{record.name}' after freeze: only {Scope.DEFERRED} records may arrive late"
                )
            self._store(record, overwrite=False)
            try:
                effective = self._finalize(record.name, self._resolve(record.name, []))
            except DIException:
                del self._records[record.name]
                del self._order[record.name]
                raise
            self._effective[record.name] = effective
        logger.debug("Late-registered deferred component '%s'", record.name)
        return effective

    def _store(self, record: ComponentRecord, overwrite: bool) -> None:
        if record.name in self._records and not overwrite:
            raise DuplicateNameError(record.name)
        if record.name not in self._order:
            self._order[record.name] = len(self._order)
        self._records[record.name] = record

    def unregister(self, name: str) -> None:
        """Remove a record before freeze().

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            NotFoundError: If no record is registered under the name.
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot remove '{name}': registry is frozen")
            self._raw(name)
            del self._records[name]

    def merge(self, child_name: str, parent_name: str) -> ComponentRecord:
        """Produce the effective record of a child filled from a parent template.

        Every field the child did not set explicitly comes from the parent,
        except ``is_abstract_template``, which is never inherited. Dict
        fields are merged, child entries winning.

        Args:
            child_name: Name of the inheriting record.
            parent_name: Name of the template.

        Returns:
            A new record; the stored records are left untouched.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            NotFoundError: If either name is unknown.
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Cannot merge records: registry is frozen")
            child = self._raw(child_name)
            parent = self._resolve(parent_name, [child_name])
            return self._merge_records(child, parent)

    def freeze(self) -> None:
        """Resolve template inheritance for every record and forbid further changes.

        Raises:
            NotFoundError: If a record names a parent template that does not exist.
            InvalidComponentRecordError: If inheritance is cyclic or a concrete
                record has no type.
        """
        with self._lock:
            if self._frozen:
                return
            effective: Dict[str, ComponentRecord] = {}
            for name in self._records:
                effective[name] = self._finalize(name, self._resolve(name, []))
            self._effective = effective
            self._frozen = True
        logger.debug("Registry frozen with %d records", len(self._effective))

    def _finalize(self, name: str, record: ComponentRecord) -> ComponentRecord:
        if record.is_abstract_template or record.declared_type is not None:
            return record
        for recipe in record.recipes:
            inferred = infer_declared_type(recipe)
            if inferred is not None:
                return record.model_copy(update={"declared_type": inferred})
        raise InvalidComponentRecordError(name, "Concrete record declares no type and none can be inferred")

    def _raw(self, name: str) -> ComponentRecord:
        if name not in self._records:
            raise NotFoundError(name)
        return self._records[name]

    def _resolve(self, name: str, chain: List[str]) -> ComponentRecord:
        if name in chain:
            raise InvalidComponentRecordError(name, f"Template inheritance cycle: {' -> '.join(chain + [name])}")
        record = self._raw(name)
        if record.parent_template is None:
            return record
        if record.parent_template not in self._records:
            raise NotFoundError(record.parent_template, f"Parent template of '{name}' is not registered")
        parent = self._resolve(record.parent_template, chain + [name])
        return self._merge_records(record, parent)

    @staticmethod
    def _merge_records(child: ComponentRecord, parent: ComponentRecord) -> ComponentRecord:
        updates = {}
        for field_name in ComponentRecord.model_fields:
            if field_name in _NEVER_INHERITED:
                continue
            if field_name in _MERGED_DICT_FIELDS:
                updates[field_name] = {**getattr(parent, field_name), **getattr(child, field_name)}
            elif field_name not in child.model_fields_set:
                updates[field_name] = getattr(parent, field_name)
        return child.model_copy(update=updates)

    def _view(self) -> Dict[str, ComponentRecord]:
        return self._effective if self._frozen else self._records

    def lookup(self, name: str) -> ComponentRecord:
        """Return the effective record for a name (the raw one before freeze).

        Raises:
            NotFoundError: If no record is registered under the name.
        """
        view = self._view()
        if name not in view:
            raise NotFoundError(name)
        return view[name]

    def contains(self, name: str) -> bool:
        return name in self._records

    def names(self) -> List[str]:
        return list(self._view())

    def records(self) -> List[ComponentRecord]:
        """Return the records as registered, before template merging."""
        with self._lock:
            return list(self._records.values())

    def registration_index(self, name: str) -> int:
        if name not in self._order:
            raise NotFoundError(name)
        return self._order[name]

    def all_eligible_for_type(self, required_type: Type) -> List[ComponentRecord]:
        """Return concrete, eligible records whose declared type is assignable to a type.

        Args:
            required_type: The type candidates must be assignable to.

        Returns:
            Matching records in registration order.
        """
        with self._lock:
            view = list(self._view().values())
        return [
            record
            for record in view
            if not record.is_abstract_template
            and record.eligible_for_resolution
            and _is_assignable(record.declared_type, required_type)
        ]
