"""Handler metadata tables, read from decorated classes or YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .annotations import HANDLER_ATTRIBUTE, HandlerAnnotation, OperationMarker, operation_markers
from .exceptions import ApiConfigurationError, MetadataLoadError


class MethodMetadata(BaseModel):
    """Operation markers declared on one handler method, in declared order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    operations: tuple[OperationMarker, ...]


class HandlerMetadata(BaseModel):
    """Everything the scanner needs to know about one handler type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    handler: HandlerAnnotation = HandlerAnnotation()
    methods: tuple[MethodMetadata, ...] = ()


def collect_handler_metadata(handler: type) -> HandlerMetadata:
    """Read the markers declared on a handler type.

    Members are visited base classes first and, within a class, in
    declaration order. A member overridden in a subclass keeps the position
    of its first declaration.

    Args:
        handler (type): Class decorated with ``@request_handler``.

    Returns:
        HandlerMetadata: Markers of the handler and of its methods.
    """
    annotation = vars(handler).get(HANDLER_ATTRIBUTE)
    if not isinstance(annotation, HandlerAnnotation):
        raise ApiConfigurationError(f"{handler.__qualname__} is not marked as a request handler")

    methods: list[MethodMetadata] = []
    for name, member in _iter_members(handler).items():
        markers = operation_markers(member)
        if markers:
            methods.append(MethodMetadata(name=name, operations=markers))

    return HandlerMetadata(
        name=handler.__qualname__,
        handler=annotation,
        methods=tuple(methods),
    )


def load_handler_metadata(path: Path) -> HandlerMetadata:
    """Load handler metadata from a YAML data table.

    Relative schema ``resource`` paths are taken relative to the YAML file.

    Args:
        path (Path): YAML file describing one handler.

    Returns:
        HandlerMetadata: Validated handler metadata.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise MetadataLoadError(f"Failed to read handler metadata {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise MetadataLoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise MetadataLoadError(
            f"Handler metadata must deserialize to a mapping, got {type(payload)!r}"
        )
    payload.setdefault("name", path.stem)

    try:
        return HandlerMetadata.model_validate(payload, context={"base_dir": path.parent})
    except ValidationError as exc:
        raise MetadataLoadError(f"Handler metadata validation failed for {path}: {exc}") from exc


def _iter_members(handler: type) -> dict[str, Any]:
    members: dict[str, Any] = {}
    for klass in reversed(handler.__mro__):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            members[name] = member
    return members
