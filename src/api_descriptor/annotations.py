"""Capability markers declared on request handlers and their operations.

Markers are frozen pydantic models, so the same structure can be attached to
Python classes with the decorators below or loaded from a YAML data table
(see :mod:`api_descriptor.metadata`).
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .enums import (
    CountPolicy,
    CreateMode,
    PagingMode,
    ParameterSource,
    PatchOperation,
    QueryType,
    Stability,
)

HANDLER_ATTRIBUTE = "__api_handler__"
OPERATIONS_ATTRIBUTE = "__api_operations__"
SCHEMA_ID_ATTRIBUTE = "__api_schema_id__"

_T = TypeVar("_T")


class _Marker(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class SchemaAnnotation(_Marker):
    """Source of a schema: a data type, an inline document or a file."""

    id: Optional[str] = None
    from_type: Optional[type[Any]] = None
    inline: Optional[dict[str, Any]] = None
    resource: Optional[Path] = None
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("resource")
    @classmethod
    def resolve_resource(cls, value: Optional[Path], info: ValidationInfo) -> Optional[Path]:
        if value is None or value.is_absolute():
            return value
        base_dir = info.context.get("base_dir") if isinstance(info.context, dict) else None
        if isinstance(base_dir, Path):
            return base_dir / value
        return value

    @model_validator(mode="after")
    def check_single_source(self) -> SchemaAnnotation:
        sources = [self.from_type, self.inline, self.resource]
        if sum(source is not None for source in sources) != 1:
            raise ValueError("Schema marker requires exactly one of from_type, inline or resource")
        return self


class ErrorAnnotation(_Marker):
    """Error an operation declares; errors with an ``id`` are shared."""

    id: Optional[str] = None
    code: int
    description: str
    detail_schema: Optional[SchemaAnnotation] = Field(default=None, alias="schema")


class ParameterAnnotation(_Marker):
    """Operation parameter."""

    name: str
    type: str
    description: Optional[str] = None
    default_value: Optional[str] = None
    source: ParameterSource = ParameterSource.PATH
    required: bool = True
    enum_values: tuple[str, ...] = ()
    enum_titles: tuple[str, ...] = ()


class OperationAnnotation(_Marker):
    """Attributes common to every operation kind."""

    description: Optional[str] = None
    errors: tuple[ErrorAnnotation, ...] = ()
    parameters: tuple[ParameterAnnotation, ...] = ()
    locales: tuple[str, ...] = ()
    contexts: tuple[str, ...] = ()
    stability: Stability = Stability.STABLE

    @field_validator("contexts", mode="before")
    @classmethod
    def context_names(cls, value: Any) -> Any:
        if isinstance(value, (str, type)):
            value = (value,)
        if isinstance(value, (list, tuple)):
            return tuple(item.__name__ if isinstance(item, type) else item for item in value)
        return value


class CreateAnnotation(_Marker):
    """Marks a create operation."""

    kind: Literal["create"] = "create"
    operation: OperationAnnotation = OperationAnnotation()
    mvcc_supported: bool = False
    mode: CreateMode = CreateMode.ID_FROM_SERVER


class ReadAnnotation(_Marker):
    """Marks a read operation."""

    kind: Literal["read"] = "read"
    operation: OperationAnnotation = OperationAnnotation()


class UpdateAnnotation(_Marker):
    """Marks an update operation."""

    kind: Literal["update"] = "update"
    operation: OperationAnnotation = OperationAnnotation()
    mvcc_supported: bool = False


class DeleteAnnotation(_Marker):
    """Marks a delete operation."""

    kind: Literal["delete"] = "delete"
    operation: OperationAnnotation = OperationAnnotation()
    mvcc_supported: bool = False


class PatchAnnotation(_Marker):
    """Marks a patch operation."""

    kind: Literal["patch"] = "patch"
    operation: OperationAnnotation = OperationAnnotation()
    mvcc_supported: bool = False
    operations: tuple[PatchOperation, ...] = ()


class ActionAnnotation(_Marker):
    """Marks an action; ``name`` defaults to the method name."""

    kind: Literal["action"] = "action"
    operation: OperationAnnotation = OperationAnnotation()
    name: Optional[str] = None
    request: Optional[SchemaAnnotation] = None
    response: Optional[SchemaAnnotation] = None


class QueryAnnotation(_Marker):
    """Marks a query; an ID query's ``id`` defaults to the method name."""

    kind: Literal["query"] = "query"
    operation: OperationAnnotation = OperationAnnotation()
    type: QueryType
    id: Optional[str] = None
    count_policies: tuple[CountPolicy, ...] = ()
    paging_modes: tuple[PagingMode, ...] = ()
    queryable_fields: tuple[str, ...] = ()
    sort_keys: tuple[str, ...] = ()


OperationMarker = Annotated[
    Union[
        CreateAnnotation,
        ReadAnnotation,
        UpdateAnnotation,
        DeleteAnnotation,
        PatchAnnotation,
        ActionAnnotation,
        QueryAnnotation,
    ],
    Field(discriminator="kind"),
]


class HandlerAnnotation(_Marker):
    """Marks a request handler type."""

    resource_schema: Optional[SchemaAnnotation] = None


def request_handler(
    resource_schema: Optional[SchemaAnnotation] = None,
) -> Callable[[type[_T]], type[_T]]:
    """Mark a class as a request handler.

    Args:
        resource_schema (Optional[SchemaAnnotation]): Schema of the resource
            the handler serves.

    Returns:
        Callable[[type[_T]], type[_T]]: Class decorator.
    """
    annotation = HandlerAnnotation(resource_schema=resource_schema)

    def _decorator(handler: type[_T]) -> type[_T]:
        setattr(handler, HANDLER_ATTRIBUTE, annotation)
        return handler

    return _decorator


def identified_schema(schema_id: str) -> Callable[[type[_T]], type[_T]]:
    """Give the schema derived from a data type a shared definition name."""

    def _decorator(data_type: type[_T]) -> type[_T]:
        setattr(data_type, SCHEMA_ID_ATTRIBUTE, schema_id)
        return data_type

    return _decorator


def create(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as the create operation."""
    return _operation_decorator(CreateAnnotation.model_validate(attributes))


def read(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as the read operation."""
    return _operation_decorator(ReadAnnotation.model_validate(attributes))


def update(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as the update operation."""
    return _operation_decorator(UpdateAnnotation.model_validate(attributes))


def delete(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as the delete operation."""
    return _operation_decorator(DeleteAnnotation.model_validate(attributes))


def patch(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as the patch operation."""
    return _operation_decorator(PatchAnnotation.model_validate(attributes))


def action(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as an action."""
    return _operation_decorator(ActionAnnotation.model_validate(attributes))


def query(**attributes: Any) -> Callable[[_T], _T]:
    """Mark a method as a query."""
    return _operation_decorator(QueryAnnotation.model_validate(attributes))


def actions(*annotations: ActionAnnotation) -> Callable[[_T], _T]:
    """Declare several actions on one method, in the given order."""
    return _operation_decorator(*annotations)


def queries(*annotations: QueryAnnotation) -> Callable[[_T], _T]:
    """Declare several queries on one method, in the given order."""
    return _operation_decorator(*annotations)


def operation_markers(member: Any) -> tuple[BaseModel, ...]:
    """Return the operation markers attached to a class member."""
    target = getattr(member, "__func__", member)
    markers = getattr(target, OPERATIONS_ATTRIBUTE, ())
    return tuple(markers)


def _operation_decorator(*markers: BaseModel) -> Callable[[_T], _T]:
    def _decorator(func: _T) -> _T:
        target = getattr(func, "__func__", func)
        existing = getattr(target, OPERATIONS_ATTRIBUTE, ())
        # Decorators apply bottom-up; keep the markers in reading order.
        setattr(target, OPERATIONS_ATTRIBUTE, (*markers, *existing))
        return func

    return _decorator
