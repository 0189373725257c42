"""Tests for the shared definition tables."""

from __future__ import annotations

import logging

import pytest

from api_descriptor.description import ApiDescription
from api_descriptor.exceptions import (
    ApiValidationError,
    RegistryConflictError,
    UnknownReferenceError,
)
from api_descriptor.models import Error, Read, Reference, Resource, schema_of
from api_descriptor.registry import Definitions, Errors, ReferenceStage, Services

_USER = schema_of({"type": "object", "properties": {"id": {"type": "string"}}})
_GROUP = schema_of({"type": "object", "properties": {"members": {"type": "array"}}})


def _error(description: str) -> Error:
    return Error.builder().code(500).description(description).build()


def test_register_returns_reference() -> None:
    """Registering a schema stores it and hands back a reference."""
    definitions = Definitions()

    reference = definitions.register("frapi:user", _USER)

    assert reference.reference == Reference("#/definitions/frapi:user")
    assert definitions.get("frapi:user") == _USER
    assert "frapi:user" in definitions
    assert definitions.resolve(reference.reference) == _USER


def test_register_is_idempotent() -> None:
    """Equal registrations under one name keep a single entry."""
    definitions = Definitions()

    results = [definitions.register("frapi:user", _USER) for _ in range(3)]

    assert len(definitions) == 1
    assert results[0] == results[1] == results[2]


def test_register_conflict() -> None:
    """A different value under a used name is a conflict."""
    definitions = Definitions()
    definitions.register("frapi:user", _USER)

    with pytest.raises(RegistryConflictError):
        definitions.register("frapi:user", _GROUP)
    assert definitions.get("frapi:user") == _USER


def test_register_rejects_references_and_blank_names() -> None:
    """Only inline values under non-empty names can be stored."""
    definitions = Definitions()
    reference = definitions.register("frapi:user", _USER)

    with pytest.raises(ApiValidationError):
        definitions.register("frapi:alias", reference)
    with pytest.raises(ApiValidationError):
        definitions.register(" ", _USER)


def test_iteration_keeps_insertion_order() -> None:
    """Tables iterate in registration order."""
    errors = Errors()
    errors.register("b", _error("B"))
    errors.register("a", _error("A"))

    assert list(errors) == ["b", "a"]
    assert [name for name, _ in errors.items()] == ["b", "a"]


def test_unknown_reference() -> None:
    """Resolving a missing name raises a key error."""
    errors = Errors()

    with pytest.raises(UnknownReferenceError):
        errors.resolve(Reference.to_error("missing"))
    with pytest.raises(KeyError):
        errors.resolve(Reference.to_definition("missing"))


def test_services_table() -> None:
    """Services follow the same insert-if-absent rule."""
    services = Services()
    resource = Resource.builder().read(Read.builder().build()).build()

    assert services.register("users", resource) is resource
    services.register("users", Resource.builder().read(Read.builder().build()).build())
    assert len(services) == 1
    with pytest.raises(RegistryConflictError):
        services.register("users", Resource.builder().description("Other").build())


def test_stage_commits_on_request() -> None:
    """Staged entries reach the tables only on commit."""
    definitions = Definitions()
    errors = Errors()
    stage = ReferenceStage(definitions, errors)

    schema_reference = stage.register_schema("frapi:user", _USER)
    error_reference = stage.register_error("frapi:oops", _error("Oops"))

    assert len(definitions) == 0
    assert len(errors) == 0
    assert schema_reference.reference == Reference.to_definition("frapi:user")
    assert error_reference.reference == Reference.to_error("frapi:oops")

    stage.commit()

    assert definitions.names() == ["frapi:user"]
    assert errors.names() == ["frapi:oops"]


def test_stage_detects_conflicts() -> None:
    """Conflicts are found against live and staged entries."""
    descriptor = ApiDescription.builder().id("frapi:test").build()
    descriptor.definitions.register("frapi:user", _USER)
    stage = descriptor.stage()

    with pytest.raises(RegistryConflictError):
        stage.register_schema("frapi:user", _GROUP)

    stage.register_error("frapi:oops", _error("Oops"))
    stage.register_error("frapi:oops", _error("Oops"))
    with pytest.raises(RegistryConflictError):
        stage.register_error("frapi:oops", _error("Different"))

    stage.commit()
    assert len(descriptor.errors) == 1


def test_registry_logs_inserts(caplog: pytest.LogCaptureFixture) -> None:
    """Inserts and reuses are logged at debug level."""
    definitions = Definitions()

    with caplog.at_level(logging.DEBUG, logger="api_descriptor.registry"):
        definitions.register("frapi:user", _USER)
        definitions.register("frapi:user", _USER)

    messages = [record.getMessage() for record in caplog.records]
    assert "Registered definition 'frapi:user'" in messages
    assert "Reusing definition 'frapi:user'" in messages


def test_description_resolves_references() -> None:
    """The description looks references up in the matching table."""
    descriptor = ApiDescription.builder().id("frapi:test").version("1.0").build()
    schema_reference = descriptor.definitions.register("frapi:user", _USER)
    error_reference = descriptor.errors.register("frapi:oops", _error("Oops"))

    assert descriptor.resolve_reference(schema_reference.reference) == _USER
    assert descriptor.resolve_reference(error_reference.reference) == _error("Oops")
    assert descriptor.resolve_schema(_USER) is _USER


def test_description_requires_id() -> None:
    """An API description needs an id."""
    with pytest.raises(ApiValidationError):
        ApiDescription.builder().build()
