"""Turn handler metadata into resources of an API description."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional, Union

from .annotations import (
    ActionAnnotation,
    CreateAnnotation,
    DeleteAnnotation,
    ErrorAnnotation,
    OperationAnnotation,
    ParameterAnnotation,
    PatchAnnotation,
    QueryAnnotation,
    ReadAnnotation,
    SchemaAnnotation,
    UpdateAnnotation,
)
from .description import ApiDescription
from .enums import QueryType
from .exceptions import ApiConfigurationError, ApiValidationError
from .metadata import HandlerMetadata, collect_handler_metadata
from .models import (
    Action,
    Create,
    Delete,
    Error,
    Operation,
    OperationBuilder,
    Parameter,
    Patch,
    Query,
    Read,
    Resource,
    Schema,
    Update,
)
from .registry import ReferenceStage
from .schemas import schema_document, schema_id

logger = logging.getLogger(__name__)

RESOURCE_SCHEMA_REQUIRED_KINDS = frozenset({"create", "update", "delete", "patch", "query"})


def resource_from_handler(handler: type, descriptor: ApiDescription) -> Resource:
    """Scan a decorated handler type into a resource.

    Args:
        handler (type): Class marked with ``@request_handler``.
        descriptor (ApiDescription): Description receiving shared schemas
            and errors.

    Returns:
        Resource: Fully built resource.
    """
    return resource_from_metadata(collect_handler_metadata(handler), descriptor)


def resource_from_metadata(metadata: HandlerMetadata, descriptor: ApiDescription) -> Resource:
    """Build a resource from handler metadata.

    Schemas and errors that declare an ``id`` are promoted into the
    descriptor's tables and replaced by references; the rest stay inline.
    Promotions are only written once the resource has been built, so a
    failed scan leaves the descriptor unchanged.

    Args:
        metadata (HandlerMetadata): Markers of one handler.
        descriptor (ApiDescription): Description receiving shared schemas
            and errors.

    Returns:
        Resource: Fully built resource.
    """
    resource, stage = _scan(metadata, descriptor)
    stage.commit()
    return resource


def register_service(
    descriptor: ApiDescription,
    name: str,
    source: Union[type, HandlerMetadata],
) -> Resource:
    """Scan a handler and publish the resource under ``name``.

    Nothing is written to the descriptor when the service name is already
    bound to a different resource.
    """
    if not isinstance(source, HandlerMetadata):
        source = collect_handler_metadata(source)
    resource, stage = _scan(source, descriptor)
    descriptor.services.check(name, resource)
    stage.commit()
    return descriptor.services.register(name, resource)


def _scan(metadata: HandlerMetadata, descriptor: ApiDescription) -> tuple[Resource, ReferenceStage]:
    stage = descriptor.stage()
    builder = Resource.builder()

    resource_schema = None
    if metadata.handler.resource_schema is not None:
        resource_schema = _build_schema(metadata.handler.resource_schema, stage)
        builder.resource_schema(resource_schema)

    query_ids: dict[str, str] = {}
    for method in metadata.methods:
        for marker in method.operations:
            if marker.kind in RESOURCE_SCHEMA_REQUIRED_KINDS and resource_schema is None:
                raise ApiConfigurationError(
                    f"{metadata.name}.{method.name}: resource schema required "
                    f"for {marker.kind} operations"
                )
            operation = _OPERATION_FACTORIES[marker.kind](marker, method.name, stage)
            if isinstance(operation, Query) and operation.type is QueryType.ID:
                _claim_query_id(query_ids, operation, metadata.name, method.name, marker.id)
            builder.operations(operation)
            logger.debug("Scanned %s operation on %s.%s", marker.kind, metadata.name, method.name)

    return builder.build(), stage


def _claim_query_id(
    query_ids: dict[str, str],
    query: Query,
    handler_name: str,
    method_name: str,
    declared_id: Optional[str],
) -> None:
    query_id = query.query_id or ""
    previous = query_ids.get(query_id)
    if previous is None:
        query_ids[query_id] = method_name
        return
    hint = "" if declared_id else "; ID queries without an id take the method name, declare one"
    raise ApiValidationError(
        f"{handler_name}.{method_name}: duplicate query id {query_id!r}, "
        f"already used by {previous}{hint}"
    )


def _build_schema(annotation: SchemaAnnotation, stage: ReferenceStage) -> Schema:
    schema = Schema.builder().schema(schema_document(annotation)).build()
    name = schema_id(annotation)
    if name is None:
        return schema
    return stage.register_schema(name, schema)


def _build_error(annotation: ErrorAnnotation, stage: ReferenceStage) -> Error:
    builder = Error.builder().code(annotation.code).description(annotation.description)
    if annotation.detail_schema is not None:
        builder.schema(_build_schema(annotation.detail_schema, stage))
    error = builder.build()
    if not annotation.id:
        return error
    return stage.register_error(annotation.id, error)


def _build_parameter(annotation: ParameterAnnotation) -> Parameter:
    builder = (
        Parameter.builder()
        .name(annotation.name)
        .type(annotation.type)
        .source(annotation.source)
        .required(annotation.required)
        .enum_values(*annotation.enum_values)
        .enum_titles(*annotation.enum_titles)
    )
    if annotation.description is not None:
        builder.description(annotation.description)
    if annotation.default_value is not None:
        builder.default_value(annotation.default_value)
    return builder.build()


def _apply_common(
    builder: OperationBuilder,
    annotation: OperationAnnotation,
    stage: ReferenceStage,
) -> None:
    if annotation.description is not None:
        builder.description(annotation.description)
    builder.parameters(_build_parameter(parameter) for parameter in annotation.parameters)
    builder.errors(_build_error(error, stage) for error in annotation.errors)
    builder.supported_locales(annotation.locales)
    builder.supported_contexts(annotation.contexts)
    builder.stability(annotation.stability)


def _create(marker: CreateAnnotation, method_name: str, stage: ReferenceStage) -> Create:
    builder = Create.builder().mvcc_supported(marker.mvcc_supported).mode(marker.mode)
    _apply_common(builder, marker.operation, stage)
    return builder.build()


def _read(marker: ReadAnnotation, method_name: str, stage: ReferenceStage) -> Read:
    builder = Read.builder()
    _apply_common(builder, marker.operation, stage)
    return builder.build()


def _update(marker: UpdateAnnotation, method_name: str, stage: ReferenceStage) -> Update:
    builder = Update.builder().mvcc_supported(marker.mvcc_supported)
    _apply_common(builder, marker.operation, stage)
    return builder.build()


def _delete(marker: DeleteAnnotation, method_name: str, stage: ReferenceStage) -> Delete:
    builder = Delete.builder().mvcc_supported(marker.mvcc_supported)
    _apply_common(builder, marker.operation, stage)
    return builder.build()


def _patch(marker: PatchAnnotation, method_name: str, stage: ReferenceStage) -> Patch:
    builder = Patch.builder().mvcc_supported(marker.mvcc_supported).operations(*marker.operations)
    _apply_common(builder, marker.operation, stage)
    return builder.build()


def _action(marker: ActionAnnotation, method_name: str, stage: ReferenceStage) -> Action:
    builder = Action.builder().name(marker.name or method_name)
    if marker.request is not None:
        builder.request(_build_schema(marker.request, stage))
    if marker.response is not None:
        builder.response(_build_schema(marker.response, stage))
    _apply_common(builder, marker.operation, stage)
    return builder.build()


def _query(marker: QueryAnnotation, method_name: str, stage: ReferenceStage) -> Query:
    builder = (
        Query.builder()
        .type(marker.type)
        .count_policies(*marker.count_policies)
        .paging_modes(*marker.paging_modes)
        .queryable_fields(*marker.queryable_fields)
        .supported_sort_keys(*marker.sort_keys)
    )
    if marker.id:
        builder.query_id(marker.id)
    elif marker.type is QueryType.ID:
        builder.query_id(method_name)
    _apply_common(builder, marker.operation, stage)
    return builder.build()


_OPERATION_FACTORIES: dict[str, Callable[[Any, str, ReferenceStage], Operation]] = {
    "create": _create,
    "read": _read,
    "update": _update,
    "delete": _delete,
    "patch": _patch,
    "action": _action,
    "query": _query,
}
