"""Tests for handler metadata read from YAML data tables."""

from __future__ import annotations

from pathlib import Path

import pytest

from api_descriptor.annotations import ReadAnnotation
from api_descriptor.description import ApiDescription
from api_descriptor.enums import ParameterSource, QueryType, Stability
from api_descriptor.exceptions import ApiConfigurationError, MetadataLoadError
from api_descriptor.metadata import HandlerMetadata, MethodMetadata, load_handler_metadata
from api_descriptor.models import Reference
from api_descriptor.scanner import resource_from_metadata
from api_descriptor.translation import KeyedText

HANDLER_DIR = Path(__file__).resolve().parent / "fixtures" / "handlers"


def test_load_handler_metadata() -> None:
    """YAML tables load into validated markers."""
    metadata = load_handler_metadata(HANDLER_DIR / "users.yaml")

    assert metadata.name == "users"
    assert [method.name for method in metadata.methods] == ["read", "search", "reset"]
    assert metadata.handler.resource_schema is not None
    assert metadata.handler.resource_schema.resource == HANDLER_DIR / "schemas" / "user.yaml"
    assert isinstance(metadata.methods[0].operations[0], ReadAnnotation)


def test_scan_yaml_metadata() -> None:
    """Metadata from YAML scans like metadata from decorators."""
    descriptor = ApiDescription.builder().id("frapi:test").build()
    resource = resource_from_metadata(load_handler_metadata(HANDLER_DIR / "users.yaml"), descriptor)

    assert resource.resource_schema is not None
    assert resource.resource_schema.reference == Reference.to_definition("frapi:user")
    assert descriptor.resolve_schema(resource.resource_schema).schema == {
        "type": "object",
        "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
    }

    assert resource.read is not None
    assert resource.read.description == KeyedText("i18n:api-dictionary#description")
    assert resource.read.errors[0].reference == Reference.to_error("frapi:not-found")

    query = resource.queries[0]
    assert query.type is QueryType.FILTER
    assert query.query_id is None
    assert query.parameters[0].source is ParameterSource.ADDITIONAL
    assert query.parameters[0].required is False

    action = resource.actions[0]
    assert action.name == "reset"
    assert action.stability is Stability.EVOLVING
    assert action.supported_locales == ("en", "fr")
    assert action.request is not None
    assert action.request.schema is not None


def test_unknown_operation_kind_rejected() -> None:
    """Markers with an unknown kind fail validation."""
    with pytest.raises(MetadataLoadError, match="validation failed"):
        load_handler_metadata(HANDLER_DIR / "broken.yaml")


def test_missing_file_rejected(tmp_path: Path) -> None:
    """Unreadable files raise a load error."""
    with pytest.raises(MetadataLoadError, match="Failed to read"):
        load_handler_metadata(tmp_path / "missing.yaml")


def test_non_mapping_rejected(tmp_path: Path) -> None:
    """The table must be a mapping."""
    path = tmp_path / "list.yaml"
    path.write_text("- read\n", encoding="utf-8")

    with pytest.raises(MetadataLoadError, match="mapping"):
        load_handler_metadata(path)


def test_schema_needs_one_source(tmp_path: Path) -> None:
    """A schema marker names exactly one source."""
    path = tmp_path / "table.yaml"
    path.write_text(
        "handler:\n"
        "  resource_schema:\n"
        "    inline: {type: object}\n"
        "    resource: other.yaml\n",
        encoding="utf-8",
    )

    with pytest.raises(MetadataLoadError):
        load_handler_metadata(path)


def test_resource_schema_required_for_query() -> None:
    """Queries need a resource schema."""
    metadata = HandlerMetadata.model_validate(
        {
            "name": "things",
            "methods": [{"name": "find", "operations": [{"kind": "query", "type": "FILTER"}]}],
        }
    )

    with pytest.raises(ApiConfigurationError, match="resource schema required"):
        resource_from_metadata(metadata, ApiDescription.builder().id("frapi:test").build())


def test_id_query_defaults_to_method_name() -> None:
    """ID queries without an id take the method name."""
    metadata = HandlerMetadata(
        name="things",
        handler={"resource_schema": {"inline": {"type": "object"}}},
        methods=(
            MethodMetadata.model_validate(
                {"name": "by_name", "operations": [{"kind": "query", "type": "ID"}]}
            ),
        ),
    )

    resource = resource_from_metadata(metadata, ApiDescription.builder().id("frapi:test").build())

    assert resource.queries[0].query_id == "by_name"
