"""Self-describing API metadata scanned from annotated request handlers."""

from __future__ import annotations

from .annotations import (
    ActionAnnotation,
    ErrorAnnotation,
    OperationAnnotation,
    ParameterAnnotation,
    QueryAnnotation,
    SchemaAnnotation,
    action,
    actions,
    create,
    delete,
    identified_schema,
    patch,
    queries,
    query,
    read,
    request_handler,
    update,
)
from .cli import main
from .description import ApiDescription
from .exceptions import (
    ApiConfigurationError,
    ApiValidationError,
    MetadataLoadError,
    RegistryConflictError,
    UnknownReferenceError,
)
from .models import (
    Action,
    Create,
    Delete,
    Error,
    Parameter,
    Patch,
    Query,
    Read,
    Reference,
    Resource,
    Schema,
    Update,
)
from .scanner import register_service, resource_from_handler, resource_from_metadata
from .serialize import describe_api, dumps, to_document
from .translation import KeyedText, LiteralText, Translator, resolve, wrap

__all__ = [
    "Action",
    "ActionAnnotation",
    "ApiConfigurationError",
    "ApiDescription",
    "ApiValidationError",
    "Create",
    "Delete",
    "Error",
    "ErrorAnnotation",
    "KeyedText",
    "LiteralText",
    "MetadataLoadError",
    "OperationAnnotation",
    "Parameter",
    "ParameterAnnotation",
    "Patch",
    "Query",
    "QueryAnnotation",
    "Read",
    "Reference",
    "RegistryConflictError",
    "Resource",
    "Schema",
    "SchemaAnnotation",
    "Translator",
    "UnknownReferenceError",
    "Update",
    "action",
    "actions",
    "create",
    "delete",
    "describe_api",
    "dumps",
    "identified_schema",
    "main",
    "patch",
    "queries",
    "query",
    "read",
    "register_service",
    "request_handler",
    "resolve",
    "resource_from_handler",
    "resource_from_metadata",
    "to_document",
    "update",
    "wrap",
]
