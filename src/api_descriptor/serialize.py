"""Render API descriptions as JSON documents."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .description import ApiDescription
from .json_types import Document, JSONValue
from .models import (
    Action,
    Create,
    Delete,
    Error,
    Operation,
    Parameter,
    Patch,
    Query,
    Reference,
    Resource,
    Schema,
    Update,
)
from .translation import KeyedText, LiteralText, Translator

_RESOURCE_SLOTS = ("create", "read", "update", "delete", "patch")


@dataclass(frozen=True)
class _RenderContext:
    translator: Translator
    locale: str

    def text(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        return self.translator.translate(value, self.locale)


def to_document(
    node: Any,
    *,
    locale: str,
    translator: Optional[Translator] = None,
) -> JSONValue:
    """Render a descriptor node for ``locale``.

    Absent optional fields and empty collections are omitted, references
    become ``{"$ref": ...}`` objects and translatable text is resolved.

    Args:
        node (Any): Resource, operation, schema, error, parameter or
            reference.
        locale (str): Locale to resolve translatable text for.
        translator (Optional[Translator]): Dictionary and default locale.

    Returns:
        JSONValue: JSON-compatible document.
    """
    context = _RenderContext(translator=translator or Translator(), locale=locale)
    return _render(node, context)


def describe_api(
    descriptor: ApiDescription,
    *,
    locale: str,
    translator: Optional[Translator] = None,
) -> Document:
    """Render a whole API description with its shared tables."""
    context = _RenderContext(translator=translator or Translator(), locale=locale)
    document: Document = {"id": descriptor.id}
    _put(document, "version", descriptor.version)
    _put(document, "description", context.text(descriptor.description))
    _put(
        document,
        "definitions",
        {name: _render(schema, context) for name, schema in descriptor.definitions.items()},
    )
    _put(
        document,
        "errors",
        {name: _render(error, context) for name, error in descriptor.errors.items()},
    )
    _put(
        document,
        "services",
        {name: _render(resource, context) for name, resource in descriptor.services.items()},
    )
    return document


def dumps(document: JSONValue) -> str:
    """Serialize a rendered document as indented JSON text."""
    return json.dumps(document, indent=2, ensure_ascii=False)


def _render(node: Any, context: _RenderContext) -> JSONValue:
    if isinstance(node, Resource):
        return _render_resource(node, context)
    if isinstance(node, Operation):
        return _render_operation(node, context)
    if isinstance(node, Schema):
        return _render_schema(node)
    if isinstance(node, Error):
        return _render_error(node, context)
    if isinstance(node, Parameter):
        return _render_parameter(node, context)
    if isinstance(node, Reference):
        return _render_reference(node)
    if isinstance(node, (LiteralText, KeyedText)):
        return context.text(node)
    raise TypeError(f"Cannot render {type(node)!r}")


def _render_resource(resource: Resource, context: _RenderContext) -> Document:
    document: Document = {}
    _put(document, "description", context.text(resource.description))
    if resource.resource_schema is not None:
        document["resourceSchema"] = _render_schema(resource.resource_schema)
    for slot in _RESOURCE_SLOTS:
        operation = getattr(resource, slot)
        if operation is not None:
            document[slot] = _render_operation(operation, context)
    _put(document, "actions", [_render_operation(action, context) for action in resource.actions])
    _put(document, "queries", [_render_operation(query, context) for query in resource.queries])
    return document


def _render_operation(operation: Operation, context: _RenderContext) -> Document:
    document: Document = {}
    if isinstance(operation, Action):
        document["name"] = operation.name
    _put(document, "description", context.text(operation.description))
    if isinstance(operation, Create):
        document["mode"] = _enum_name(operation.mode)
    if isinstance(operation, (Create, Update, Delete, Patch)):
        document["mvccSupported"] = operation.mvcc_supported
    if isinstance(operation, Patch):
        document["operations"] = [_enum_name(kind) for kind in operation.operations]
    if isinstance(operation, Action):
        if operation.request is not None:
            document["request"] = _render_schema(operation.request)
        if operation.response is not None:
            document["response"] = _render_schema(operation.response)
    if isinstance(operation, Query):
        _render_query_fields(document, operation)
    _put(
        document,
        "parameters",
        [_render_parameter(parameter, context) for parameter in operation.parameters],
    )
    _put(document, "errors", [_render_error(error, context) for error in operation.errors])
    _put(document, "supportedLocales", list(operation.supported_locales))
    _put(document, "supportedContexts", list(operation.supported_contexts))
    document["stability"] = _enum_name(operation.stability)
    return document


def _render_query_fields(document: Document, query: Query) -> None:
    document["type"] = _enum_name(query.type)
    _put(document, "queryId", query.query_id)
    _put(document, "countPolicies", [_enum_name(policy) for policy in query.count_policies])
    _put(document, "pagingModes", [_enum_name(mode) for mode in query.paging_modes])
    _put(document, "queryableFields", list(query.queryable_fields))
    _put(document, "supportedSortKeys", list(query.supported_sort_keys))


def _render_schema(schema: Schema) -> Document:
    if schema.reference is not None:
        return _render_reference(schema.reference)
    return deepcopy(dict(schema.schema or {}))


def _render_error(error: Error, context: _RenderContext) -> Document:
    if error.reference is not None:
        return _render_reference(error.reference)
    document: Document = {"code": error.code}
    _put(document, "description", context.text(error.description))
    if error.schema is not None:
        document["schema"] = _render_schema(error.schema)
    return document


def _render_parameter(parameter: Parameter, context: _RenderContext) -> Document:
    document: Document = {"name": parameter.name, "type": parameter.type}
    _put(document, "description", context.text(parameter.description))
    _put(document, "defaultValue", parameter.default_value)
    document["source"] = _enum_name(parameter.source)
    document["required"] = parameter.required
    _put(document, "enumValues", list(parameter.enum_values))
    _put(document, "enumTitles", list(parameter.enum_titles))
    return document


def _render_reference(reference: Reference) -> Document:
    return {"$ref": reference.value}


def _put(document: Document, key: str, value: JSONValue) -> None:
    if value is None:
        return
    if isinstance(value, (list, dict)) and not value:
        return
    document[key] = value


def _enum_name(value: Enum) -> str:
    return value.name
