"""Annotated handler types shared by the scanner tests."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from api_descriptor.annotations import (
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
from api_descriptor.enums import CountPolicy, PagingMode, PatchOperation, QueryType, Stability


class SecurityContext:
    """Request context type named by operations."""


class Response:
    """Plain data type without a shared name."""

    id: str
    name: Optional[str]
    tags: list[str]


@identified_schema("frapi:response")
class IdentifiedResponse:
    """Plain data type whose schema is shared as ``frapi:response``."""

    id: str
    count: int


class Profile(BaseModel):
    """Pydantic model used as a resource schema."""

    id: str
    active: bool = True


def common_operation(description: str, noun: str) -> OperationAnnotation:
    return OperationAnnotation(
        contexts=(SecurityContext,),
        description=description,
        errors=(
            ErrorAnnotation(code=403, description=f"{noun} forbidden"),
            ErrorAnnotation(code=400, description=f"Malformed {noun.lower()} request"),
        ),
        parameters=(ParameterAnnotation(name="id", type="string", description="Identifier"),),
        locales=("en-GB", "en-US"),
        stability=Stability.EVOLVING,
    )


ACTION_OPERATION = common_operation("An action resource operation.", "Action")
QUERY_OPERATION = common_operation("A query resource operation.", "Query")
RESPONSE_SCHEMA = SchemaAnnotation(from_type=Response)
QUERY_FIELDS = {
    "count_policies": (CountPolicy.ESTIMATE,),
    "paging_modes": (PagingMode.COOKIE, PagingMode.OFFSET),
    "queryable_fields": ("field1", "field2"),
    "sort_keys": ("key1", "key2", "key3"),
}


@request_handler()
class SimpleAnnotatedHandler:
    @action(operation=OperationAnnotation())
    def my_action(self) -> None:
        pass


@request_handler(resource_schema=SchemaAnnotation(from_type=IdentifiedResponse))
class ReferencedSchemaHandler:
    @read(operation=OperationAnnotation(description="A read resource operation."))
    def read(self) -> None:
        pass


@request_handler(resource_schema=SchemaAnnotation(from_type=IdentifiedResponse))
class ReferencedErrorHandler:
    @read(
        operation=OperationAnnotation(
            description="A read resource operation.",
            errors=(ErrorAnnotation(id="frapi:myerror", code=500, description="Our bad."),),
        )
    )
    def read(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class CreateAnnotatedHandler:
    @create(
        operation=OperationAnnotation(
            contexts=(SecurityContext,),
            description="A create resource operation.",
            errors=(
                ErrorAnnotation(code=403, description="You're forbidden from creating these resources"),
                ErrorAnnotation(code=400, description="You can't create these resources using too much jam"),
            ),
            parameters=(
                ParameterAnnotation(name="id", type="string", description="Identifier for the created"),
            ),
            locales=("en-GB", "en-US"),
            stability=Stability.EVOLVING,
        ),
        mvcc_supported=True,
    )
    def create(self) -> None:
        pass


@request_handler()
class ResourceSchemaRequiredHandler:
    @create(
        operation=OperationAnnotation(description="A create resource operation."),
        mvcc_supported=True,
    )
    def create(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class ResourceSchemaGivenHandler:
    @create(
        operation=OperationAnnotation(description="A create resource operation."),
        mvcc_supported=True,
    )
    def create(self) -> None:
        pass


@request_handler()
class BareHandler:
    def read(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class ReadAnnotatedHandler:
    @read(operation=common_operation("A read resource operation.", "Read"))
    def read(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class UpdateAnnotatedHandler:
    @update(operation=common_operation("An update resource operation.", "Update"), mvcc_supported=True)
    def update(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class DeleteAnnotatedHandler:
    @delete(operation=common_operation("A delete resource operation.", "Delete"), mvcc_supported=True)
    def delete(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class PatchAnnotatedHandler:
    @patch(
        operation=common_operation("A patch resource operation.", "Patch"),
        mvcc_supported=True,
        operations=(PatchOperation.INCREMENT, PatchOperation.TRANSFORM),
    )
    def patch(self) -> None:
        pass


@request_handler()
class ActionAnnotatedHandler:
    @action(
        operation=ACTION_OPERATION,
        name="action1",
        request=RESPONSE_SCHEMA,
        response=RESPONSE_SCHEMA,
    )
    def action1(self) -> None:
        pass

    @action(
        operation=ACTION_OPERATION,
        name="action2",
        request=RESPONSE_SCHEMA,
        response=RESPONSE_SCHEMA,
    )
    def action2(self) -> None:
        pass


@request_handler()
class ActionsAnnotatedHandler:
    @actions(
        ActionAnnotation(
            operation=ACTION_OPERATION,
            name="action1",
            request=RESPONSE_SCHEMA,
            response=RESPONSE_SCHEMA,
        ),
        ActionAnnotation(
            operation=ACTION_OPERATION,
            name="action2",
            request=RESPONSE_SCHEMA,
            response=RESPONSE_SCHEMA,
        ),
    )
    def actions(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class QueryAnnotatedHandler:
    @query(operation=QUERY_OPERATION, type=QueryType.ID, id="query1", **QUERY_FIELDS)
    def query1(self) -> None:
        pass

    @query(operation=QUERY_OPERATION, type=QueryType.ID, **QUERY_FIELDS)
    def query2(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class QueriesAnnotatedHandler:
    @queries(
        QueryAnnotation(operation=QUERY_OPERATION, type=QueryType.ID, id="query1", **QUERY_FIELDS),
        QueryAnnotation(operation=QUERY_OPERATION, type=QueryType.ID, id="query2", **QUERY_FIELDS),
    )
    def queries(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class StackedHandler:
    @action(name="first")
    @action(name="second")
    def both(self) -> None:
        pass

    @read()
    def read(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class BaseHandler:
    @read()
    def read(self) -> None:
        pass

    @action(name="base")
    def base_action(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class DerivedHandler(BaseHandler):
    @action(name="derived")
    def derived_action(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class DuplicateReadHandler:
    @read()
    def read_one(self) -> None:
        pass

    @read()
    def read_two(self) -> None:
        pass


@request_handler(resource_schema=SchemaAnnotation(from_type=IdentifiedResponse))
class ConflictingErrorHandler:
    @read(
        operation=OperationAnnotation(
            errors=(
                ErrorAnnotation(id="frapi:clash", code=500, description="First"),
                ErrorAnnotation(id="frapi:clash", code=500, description="Second"),
            ),
        )
    )
    def read(self) -> None:
        pass


@request_handler(resource_schema=SchemaAnnotation(from_type=Profile, id="frapi:profile"))
class ProfileHandler:
    @read()
    def read(self) -> None:
        pass


@request_handler(resource_schema=RESPONSE_SCHEMA)
class DefaultedQueryIdsHandler:
    @queries(
        QueryAnnotation(type=QueryType.ID),
        QueryAnnotation(type=QueryType.ID, paging_modes=(PagingMode.OFFSET,)),
    )
    def lookup(self) -> None:
        pass


class UnmarkedHandler:
    @read()
    def read(self) -> None:
        pass
