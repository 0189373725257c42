"""Derive schema documents from schema markers."""

from __future__ import annotations

import types
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Optional, Union, get_args, get_origin, get_type_hints

import yaml
from pydantic import BaseModel

from .annotations import SCHEMA_ID_ATTRIBUTE, SchemaAnnotation
from .exceptions import MetadataLoadError
from .json_types import Document

_PRIMITIVE_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}
_ARRAY_TYPES = (list, tuple, set, frozenset, Sequence)


def schema_document(annotation: SchemaAnnotation) -> Document:
    """Build the schema document a marker describes.

    Args:
        annotation (SchemaAnnotation): Marker naming a data type, an inline
            document or a schema file.

    Returns:
        Document: Schema document, with the marker's title and
            description filled in where the source gives none.
    """
    if annotation.from_type is not None:
        document = schema_from_type(annotation.from_type)
    elif annotation.inline is not None:
        document = dict(annotation.inline)
    elif annotation.resource is not None:
        document = load_schema_resource(annotation.resource)
    else:
        raise MetadataLoadError("Schema marker declares no source")

    for key in ("title", "description"):
        value = getattr(annotation, key)
        if value is not None and key not in document:
            document[key] = value
    return document


def schema_id(annotation: SchemaAnnotation) -> Optional[str]:
    """Return the shared definition name of a marker, if it declares one.

    The marker's own ``id`` wins over the one declared on ``from_type``.
    """
    if annotation.id:
        return annotation.id
    if annotation.from_type is None:
        return None
    declared = vars(annotation.from_type).get(SCHEMA_ID_ATTRIBUTE)
    return declared if isinstance(declared, str) and declared else None


def schema_from_type(data_type: type) -> Document:
    """Describe a data type as an object schema.

    Pydantic models describe themselves. Other types are described from
    their annotated public fields.
    """
    if issubclass(data_type, BaseModel):
        return data_type.model_json_schema()

    properties: Document = {}
    for name, hint in get_type_hints(data_type).items():
        if name.startswith("_") or get_origin(hint) is ClassVar:
            continue
        properties[name] = _json_type(hint)
    return {"type": "object", "properties": properties}


def load_schema_resource(path: Path) -> Document:
    """Read a JSON or YAML schema file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise MetadataLoadError(f"Failed to read schema resource {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise MetadataLoadError(f"Failed to parse schema resource {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise MetadataLoadError(f"Schema resource {path} must contain a mapping, got {type(payload)!r}")
    return payload


def _json_type(hint: Any) -> Document:
    origin = get_origin(hint)
    if origin in (Union, types.UnionType):
        options = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(options) == 1:
            return _json_type(options[0])
        return {"anyOf": [_json_type(option) for option in options]}

    primitive = _PRIMITIVE_TYPES.get(hint)
    if primitive is not None:
        return {"type": primitive}

    if isinstance(hint, type) and issubclass(hint, Enum):
        return {"type": "string", "enum": [str(member.value) for member in hint]}

    if hint in _ARRAY_TYPES or origin in _ARRAY_TYPES:
        args = [arg for arg in get_args(hint) if arg is not Ellipsis]
        if args:
            return {"type": "array", "items": _json_type(args[0])}
        return {"type": "array"}

    return {"type": "object"}
