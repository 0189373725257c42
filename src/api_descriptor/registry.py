"""Shared definition tables and the reference registry built on them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from .exceptions import ApiValidationError, RegistryConflictError, UnknownReferenceError
from .models import Error, Reference, Resource, Schema

logger = logging.getLogger(__name__)

_V = TypeVar("_V")


class NamedTable(Generic[_V]):
    """Append-only name-to-value table.

    Values are inserted once and never replaced. Registering an equal value
    under an existing name is a no-op; a different value is a conflict.
    """

    kind = "entry"

    def __init__(self) -> None:
        self._entries: dict[str, _V] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __contains__(self, name: Any) -> bool:
        return name in self._entries

    def get(self, name: str) -> Optional[_V]:
        """Return the value stored under ``name``."""
        return self._entries.get(name)

    def names(self) -> list[str]:
        """Return entry names in insertion order."""
        return list(self._entries)

    def items(self) -> list[tuple[str, _V]]:
        """Return ``(name, value)`` pairs in insertion order."""
        return list(self._entries.items())

    def check(self, name: str, value: _V) -> bool:
        """Check that ``value`` may be stored under ``name``.

        Returns:
            bool: Whether the name is already bound to an equal value.
        """
        if not isinstance(name, str) or not name.strip():
            raise ApiValidationError(f"A {self.kind} name must be a non-empty string")
        existing = self._entries.get(name)
        if existing is None:
            return False
        if existing != value:
            raise RegistryConflictError(
                f"{self.kind.capitalize()} {name!r} is already registered with different content"
            )
        return True

    def _insert(self, name: str, value: _V) -> None:
        if self.check(name, value):
            logger.debug("Reusing %s %r", self.kind, name)
            return
        self._entries[name] = value
        logger.debug("Registered %s %r", self.kind, name)


class Definitions(NamedTable[Schema]):
    """Shared schema definitions, referenced as ``#/definitions/<name>``."""

    kind = "definition"

    def register(self, name: str, schema: Schema) -> Schema:
        """Store ``schema`` under ``name`` if absent and return a reference to it."""
        if schema.is_reference:
            raise ApiValidationError(f"Definition {name!r} must be an inline schema")
        self._insert(name, schema)
        return Schema.builder().reference(Reference.to_definition(name)).build()

    def resolve(self, reference: Reference) -> Schema:
        """Look up the schema a reference points at."""
        value = self.get(reference.name)
        if value is None or reference != Reference.to_definition(reference.name):
            raise UnknownReferenceError(reference.value)
        return value


class Errors(NamedTable[Error]):
    """Shared errors, referenced as ``#/errors/<name>``."""

    kind = "error"

    def register(self, name: str, error: Error) -> Error:
        """Store ``error`` under ``name`` if absent and return a reference to it."""
        if error.is_reference:
            raise ApiValidationError(f"Error {name!r} must be an inline error")
        self._insert(name, error)
        return Error.builder().reference(Reference.to_error(name)).build()

    def resolve(self, reference: Reference) -> Error:
        """Look up the error a reference points at."""
        value = self.get(reference.name)
        if value is None or reference != Reference.to_error(reference.name):
            raise UnknownReferenceError(reference.value)
        return value


class Services(NamedTable[Resource]):
    """Resources published by an API description, by service name."""

    kind = "service"

    def register(self, name: str, resource: Resource) -> Resource:
        """Store ``resource`` under ``name`` if absent."""
        self._insert(name, resource)
        return resource


@dataclass(frozen=True)
class _StagedEntry:
    table: NamedTable
    name: str
    value: Union[Schema, Error]
    commit: Callable[[], Any]


class ReferenceStage:
    """Registrations collected during one scan, written on :meth:`commit`.

    Conflicts are detected immediately against both the live tables and the
    entries staged so far; the live tables only change when the caller
    commits.
    """

    def __init__(self, definitions: Definitions, errors: Errors) -> None:
        self._definitions = definitions
        self._errors = errors
        self._staged: list[_StagedEntry] = []

    def register_schema(self, name: str, schema: Schema) -> Schema:
        """Stage a shared schema and return a reference schema."""
        if schema.is_reference:
            raise ApiValidationError(f"Definition {name!r} must be an inline schema")
        self._stage(self._definitions, name, schema, lambda: self._definitions.register(name, schema))
        return Schema.builder().reference(Reference.to_definition(name)).build()

    def register_error(self, name: str, error: Error) -> Error:
        """Stage a shared error and return a reference error."""
        if error.is_reference:
            raise ApiValidationError(f"Error {name!r} must be an inline error")
        self._stage(self._errors, name, error, lambda: self._errors.register(name, error))
        return Error.builder().reference(Reference.to_error(name)).build()

    def commit(self) -> None:
        """Write every staged registration to the live tables."""
        for entry in self._staged:
            entry.commit()
        self._staged.clear()

    def _stage(
        self,
        table: NamedTable,
        name: str,
        value: Union[Schema, Error],
        commit: Callable[[], Any],
    ) -> None:
        if table.check(name, value):
            return
        for entry in self._staged:
            if entry.table is not table or entry.name != name:
                continue
            if entry.value != value:
                raise RegistryConflictError(
                    f"{table.kind.capitalize()} {name!r} is declared twice with different content"
                )
            return
        self._staged.append(_StagedEntry(table=table, name=name, value=value, commit=commit))
