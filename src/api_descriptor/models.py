"""Immutable API descriptor values and the builders that assemble them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Optional, Self, Union

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from typing_extensions import TypeAliasType

from .enums import (
    CountPolicy,
    CreateMode,
    PagingMode,
    ParameterSource,
    PatchOperation,
    QueryType,
    Stability,
)
from .exceptions import ApiConfigurationError, ApiValidationError
from .json_types import SchemaDocument
from .translation import TranslatableText, wrap_optional

DEFINITIONS_PREFIX = "#/definitions/"
ERRORS_PREFIX = "#/errors/"

Text = TypeAliasType("Text", Union[str, TranslatableText])


class _Model:
    """Value semantics shared by all descriptor objects.

    Fields listed in ``_UNORDERED_FIELDS`` hold sets: they iterate in
    insertion order but compare without regard to it.
    """

    _UNORDERED_FIELDS: ClassVar[frozenset[str]] = frozenset()

    __hash__ = None  # type: ignore[assignment]

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        for item in fields(self):  # type: ignore[arg-type]
            mine = getattr(self, item.name)
            theirs = getattr(other, item.name)
            if item.name in self._UNORDERED_FIELDS:
                if not _same_items(mine, theirs):
                    return False
            elif mine != theirs:
                return False
        return True


def _same_items(left: tuple[Any, ...], right: tuple[Any, ...]) -> bool:
    if len(left) != len(right):
        return False
    remaining = list(right)
    for item in left:
        for index, candidate in enumerate(remaining):
            if candidate == item:
                del remaining[index]
                break
        else:
            return False
    return True


def _append_unique(target: list[Any], values: Iterable[Any]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


@dataclass(frozen=True, eq=False)
class Reference(_Model):
    """Symbolic pointer into a table owned by the API description."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ApiValidationError("Reference value must be a non-empty string")

    @classmethod
    def to_definition(cls, name: str) -> Reference:
        """Return a reference to a shared schema definition."""
        return cls(f"{DEFINITIONS_PREFIX}{name}")

    @classmethod
    def to_error(cls, name: str) -> Reference:
        """Return a reference to a shared error."""
        return cls(f"{ERRORS_PREFIX}{name}")

    @property
    def name(self) -> str:
        """Entry name within the referenced table."""
        for prefix in (DEFINITIONS_PREFIX, ERRORS_PREFIX):
            if self.value.startswith(prefix):
                return self.value[len(prefix) :]
        return self.value


@dataclass(frozen=True, eq=False)
class Schema(_Model):
    """Inline JSON schema or a reference to a shared definition."""

    schema: Optional[SchemaDocument] = None
    reference: Optional[Reference] = None

    @classmethod
    def builder(cls) -> SchemaBuilder:
        """Start building a schema."""
        return SchemaBuilder()

    @property
    def is_reference(self) -> bool:
        """Whether this schema only points at a shared definition."""
        return self.reference is not None


class SchemaBuilder:
    """Builder for :class:`Schema`."""

    def __init__(self) -> None:
        self._schema: Optional[SchemaDocument] = None
        self._reference: Optional[Reference] = None

    def schema(self, schema: SchemaDocument) -> SchemaBuilder:
        """Set the inline schema document."""
        self._schema = schema
        return self

    def reference(self, reference: Reference) -> SchemaBuilder:
        """Point at a shared definition instead of an inline document."""
        self._reference = reference
        return self

    def build(self) -> Schema:
        """Validate and build the schema."""
        if (self._schema is None) == (self._reference is None):
            raise ApiValidationError("Schema requires exactly one of an inline schema or a reference")
        if self._reference is not None:
            return Schema(reference=self._reference)
        if not isinstance(self._schema, Mapping):
            raise ApiValidationError(f"Inline schema must be a mapping, got {type(self._schema)!r}")
        inline = deepcopy(dict(self._schema))
        try:
            validator_for(inline).check_schema(inline)
        except SchemaError as exc:
            raise ApiValidationError(f"Invalid inline schema: {exc.message}") from exc
        return Schema(schema=inline)


@dataclass(frozen=True, eq=False)
class Error(_Model):
    """Error an operation may return, inline or by reference."""

    code: Optional[int] = None
    description: Optional[TranslatableText] = None
    schema: Optional[Schema] = None
    reference: Optional[Reference] = None

    @classmethod
    def builder(cls) -> ErrorBuilder:
        """Start building an error."""
        return ErrorBuilder()

    @property
    def is_reference(self) -> bool:
        """Whether this error only points at a shared error."""
        return self.reference is not None


class ErrorBuilder:
    """Builder for :class:`Error`."""

    def __init__(self) -> None:
        self._code: Optional[int] = None
        self._description: Optional[TranslatableText] = None
        self._schema: Optional[Schema] = None
        self._reference: Optional[Reference] = None

    def code(self, code: int) -> ErrorBuilder:
        """Set the error code."""
        self._code = code
        return self

    def description(self, description: Text) -> ErrorBuilder:
        """Set the error description."""
        self._description = wrap_optional(description)
        return self

    def schema(self, schema: Schema) -> ErrorBuilder:
        """Set the structured detail schema."""
        self._schema = schema
        return self

    def reference(self, reference: Reference) -> ErrorBuilder:
        """Point at a shared error instead of an inline one."""
        self._reference = reference
        return self

    def build(self) -> Error:
        """Validate and build the error."""
        if self._reference is not None:
            if self._code is not None or self._description is not None or self._schema is not None:
                raise ApiValidationError("A referenced error cannot declare inline fields")
            return Error(reference=self._reference)
        if self._code is None or isinstance(self._code, bool) or not isinstance(self._code, int):
            raise ApiValidationError("Error code is required and must be an integer")
        if self._description is None:
            raise ApiValidationError("Error description is required")
        return Error(code=self._code, description=self._description, schema=self._schema)


@dataclass(frozen=True, eq=False)
class Parameter(_Model):
    """Operation parameter."""

    name: str
    type: str
    description: Optional[TranslatableText] = None
    default_value: Optional[str] = None
    source: ParameterSource = ParameterSource.PATH
    required: bool = True
    enum_values: tuple[str, ...] = ()
    enum_titles: tuple[str, ...] = ()

    @classmethod
    def builder(cls) -> ParameterBuilder:
        """Start building a parameter."""
        return ParameterBuilder()


class ParameterBuilder:
    """Builder for :class:`Parameter`."""

    def __init__(self) -> None:
        self._name: Optional[str] = None
        self._type: Optional[str] = None
        self._description: Optional[TranslatableText] = None
        self._default_value: Optional[str] = None
        self._source = ParameterSource.PATH
        self._required = True
        self._enum_values: list[str] = []
        self._enum_titles: list[str] = []

    def name(self, name: str) -> ParameterBuilder:
        self._name = name
        return self

    def type(self, type_name: str) -> ParameterBuilder:
        self._type = type_name
        return self

    def description(self, description: Text) -> ParameterBuilder:
        self._description = wrap_optional(description)
        return self

    def default_value(self, default_value: str) -> ParameterBuilder:
        self._default_value = default_value
        return self

    def source(self, source: ParameterSource) -> ParameterBuilder:
        self._source = source
        return self

    def required(self, required: bool) -> ParameterBuilder:
        self._required = required
        return self

    def enum_values(self, *values: str) -> ParameterBuilder:
        self._enum_values.extend(values)
        return self

    def enum_titles(self, *titles: str) -> ParameterBuilder:
        self._enum_titles.extend(titles)
        return self

    def build(self) -> Parameter:
        """Validate and build the parameter."""
        if not self._name:
            raise ApiValidationError("Parameter name is required")
        if not self._type:
            raise ApiValidationError(f"Parameter {self._name!r} requires a type")
        if self._enum_titles and len(self._enum_titles) != len(self._enum_values):
            raise ApiValidationError(
                f"Parameter {self._name!r} must give one enum title per enum value"
            )
        return Parameter(
            name=self._name,
            type=self._type,
            description=self._description,
            default_value=self._default_value,
            source=self._source,
            required=self._required,
            enum_values=tuple(self._enum_values),
            enum_titles=tuple(self._enum_titles),
        )


@dataclass(frozen=True, eq=False, kw_only=True)
class Operation(_Model):
    """Fields shared by every operation variant."""

    _UNORDERED_FIELDS = frozenset(
        {"parameters", "errors", "supported_locales", "supported_contexts"}
    )

    description: Optional[TranslatableText] = None
    parameters: tuple[Parameter, ...] = ()
    errors: tuple[Error, ...] = ()
    supported_locales: tuple[str, ...] = ()
    supported_contexts: tuple[str, ...] = ()
    stability: Stability = Stability.STABLE


class OperationBuilder:
    """Builder state shared by every operation variant."""

    def __init__(self) -> None:
        self._description: Optional[TranslatableText] = None
        self._parameters: list[Parameter] = []
        self._errors: list[Error] = []
        self._supported_locales: list[str] = []
        self._supported_contexts: list[str] = []
        self._stability = Stability.STABLE

    def description(self, description: Text) -> Self:
        """Set the operation description."""
        self._description = wrap_optional(description)
        return self

    def parameter(self, parameter: Parameter) -> Self:
        """Add one parameter."""
        _append_unique(self._parameters, [parameter])
        return self

    def parameters(self, parameters: Iterable[Parameter]) -> Self:
        """Add several parameters."""
        _append_unique(self._parameters, parameters)
        return self

    def error(self, error: Error) -> Self:
        """Add one error."""
        _append_unique(self._errors, [error])
        return self

    def errors(self, errors: Iterable[Error]) -> Self:
        """Add several errors."""
        _append_unique(self._errors, errors)
        return self

    def supported_locale(self, locale: str) -> Self:
        """Add one supported locale tag."""
        _append_unique(self._supported_locales, [locale])
        return self

    def supported_locales(self, locales: Iterable[str]) -> Self:
        """Add several supported locale tags."""
        _append_unique(self._supported_locales, locales)
        return self

    def supported_context(self, context: str) -> Self:
        """Add one supported request context name."""
        _append_unique(self._supported_contexts, [context])
        return self

    def supported_contexts(self, contexts: Iterable[str]) -> Self:
        """Add several supported request context names."""
        _append_unique(self._supported_contexts, contexts)
        return self

    def stability(self, stability: Stability) -> Self:
        """Set the stability level."""
        self._stability = stability
        return self

    def _common(self) -> dict[str, Any]:
        return {
            "description": self._description,
            "parameters": tuple(self._parameters),
            "errors": tuple(self._errors),
            "supported_locales": tuple(self._supported_locales),
            "supported_contexts": tuple(self._supported_contexts),
            "stability": self._stability,
        }


class _MvccBuilder(OperationBuilder):
    def __init__(self) -> None:
        super().__init__()
        self._mvcc_supported = False

    def mvcc_supported(self, supported: bool) -> Self:
        """Set whether revision tokens are honoured."""
        self._mvcc_supported = supported
        return self


@dataclass(frozen=True, eq=False, kw_only=True)
class Create(Operation):
    """Create operation."""

    mvcc_supported: bool = False
    mode: CreateMode

    @classmethod
    def builder(cls) -> CreateBuilder:
        return CreateBuilder()


class CreateBuilder(_MvccBuilder):
    """Builder for :class:`Create`."""

    def __init__(self) -> None:
        super().__init__()
        self._mode: Optional[CreateMode] = None

    def mode(self, mode: CreateMode) -> CreateBuilder:
        self._mode = mode
        return self

    def build(self) -> Create:
        if self._mode is None:
            raise ApiValidationError("Create operation requires a mode")
        return Create(mvcc_supported=self._mvcc_supported, mode=self._mode, **self._common())


@dataclass(frozen=True, eq=False, kw_only=True)
class Read(Operation):
    """Read operation."""

    @classmethod
    def builder(cls) -> ReadBuilder:
        return ReadBuilder()


class ReadBuilder(OperationBuilder):
    """Builder for :class:`Read`."""

    def build(self) -> Read:
        return Read(**self._common())


@dataclass(frozen=True, eq=False, kw_only=True)
class Update(Operation):
    """Update operation."""

    mvcc_supported: bool = False

    @classmethod
    def builder(cls) -> UpdateBuilder:
        return UpdateBuilder()


class UpdateBuilder(_MvccBuilder):
    """Builder for :class:`Update`."""

    def build(self) -> Update:
        return Update(mvcc_supported=self._mvcc_supported, **self._common())


@dataclass(frozen=True, eq=False, kw_only=True)
class Delete(Operation):
    """Delete operation."""

    mvcc_supported: bool = False

    @classmethod
    def builder(cls) -> DeleteBuilder:
        return DeleteBuilder()


class DeleteBuilder(_MvccBuilder):
    """Builder for :class:`Delete`."""

    def build(self) -> Delete:
        return Delete(mvcc_supported=self._mvcc_supported, **self._common())


@dataclass(frozen=True, eq=False, kw_only=True)
class Patch(Operation):
    """Patch operation."""

    _UNORDERED_FIELDS = Operation._UNORDERED_FIELDS | {"operations"}

    mvcc_supported: bool = False
    operations: tuple[PatchOperation, ...]

    @classmethod
    def builder(cls) -> PatchBuilder:
        return PatchBuilder()


class PatchBuilder(_MvccBuilder):
    """Builder for :class:`Patch`."""

    def __init__(self) -> None:
        super().__init__()
        self._operations: list[PatchOperation] = []

    def operations(self, *operations: PatchOperation) -> PatchBuilder:
        """Add allowed patch operation kinds."""
        _append_unique(self._operations, operations)
        return self

    def build(self) -> Patch:
        if not self._operations:
            raise ApiValidationError("Patch operation requires at least one patch operation kind")
        return Patch(
            mvcc_supported=self._mvcc_supported,
            operations=tuple(self._operations),
            **self._common(),
        )


@dataclass(frozen=True, eq=False, kw_only=True)
class Action(Operation):
    """Named action operation."""

    name: str
    request: Optional[Schema] = None
    response: Optional[Schema] = None

    @classmethod
    def builder(cls) -> ActionBuilder:
        return ActionBuilder()


class ActionBuilder(OperationBuilder):
    """Builder for :class:`Action`."""

    def __init__(self) -> None:
        super().__init__()
        self._name: Optional[str] = None
        self._request: Optional[Schema] = None
        self._response: Optional[Schema] = None

    def name(self, name: str) -> ActionBuilder:
        self._name = name
        return self

    def request(self, schema: Schema) -> ActionBuilder:
        self._request = schema
        return self

    def response(self, schema: Schema) -> ActionBuilder:
        self._response = schema
        return self

    def build(self) -> Action:
        if not self._name or not self._name.strip():
            raise ApiValidationError("Action operation requires a name")
        return Action(
            name=self._name,
            request=self._request,
            response=self._response,
            **self._common(),
        )


@dataclass(frozen=True, eq=False, kw_only=True)
class Query(Operation):
    """Query operation."""

    type: QueryType
    query_id: Optional[str] = None
    count_policies: tuple[CountPolicy, ...] = ()
    paging_modes: tuple[PagingMode, ...] = ()
    queryable_fields: tuple[str, ...] = ()
    supported_sort_keys: tuple[str, ...] = ()

    @classmethod
    def builder(cls) -> QueryBuilder:
        return QueryBuilder()


class QueryBuilder(OperationBuilder):
    """Builder for :class:`Query`."""

    def __init__(self) -> None:
        super().__init__()
        self._type: Optional[QueryType] = None
        self._query_id: Optional[str] = None
        self._count_policies: list[CountPolicy] = []
        self._paging_modes: list[PagingMode] = []
        self._queryable_fields: list[str] = []
        self._supported_sort_keys: list[str] = []

    def type(self, query_type: QueryType) -> QueryBuilder:
        self._type = query_type
        return self

    def query_id(self, query_id: str) -> QueryBuilder:
        self._query_id = query_id
        return self

    def count_policies(self, *policies: CountPolicy) -> QueryBuilder:
        _append_unique(self._count_policies, policies)
        return self

    def paging_modes(self, *modes: PagingMode) -> QueryBuilder:
        _append_unique(self._paging_modes, modes)
        return self

    def queryable_fields(self, *names: str) -> QueryBuilder:
        _append_unique(self._queryable_fields, names)
        return self

    def supported_sort_keys(self, *keys: str) -> QueryBuilder:
        _append_unique(self._supported_sort_keys, keys)
        return self

    def build(self) -> Query:
        if self._type is None:
            raise ApiValidationError("Query operation requires a type")
        if self._type is QueryType.ID and not self._query_id:
            raise ApiConfigurationError("Query operation of type ID requires a query id")
        return Query(
            type=self._type,
            query_id=self._query_id,
            count_policies=tuple(self._count_policies),
            paging_modes=tuple(self._paging_modes),
            queryable_fields=tuple(self._queryable_fields),
            supported_sort_keys=tuple(self._supported_sort_keys),
            **self._common(),
        )


_SINGLE_OPERATION_SLOTS: tuple[tuple[type[Operation], str], ...] = (
    (Create, "create"),
    (Read, "read"),
    (Update, "update"),
    (Delete, "delete"),
    (Patch, "patch"),
)


@dataclass(frozen=True, eq=False)
class Resource(_Model):
    """One addressable resource type and the operations it supports."""

    _UNORDERED_FIELDS = frozenset({"actions", "queries"})

    description: Optional[TranslatableText] = None
    resource_schema: Optional[Schema] = None
    create: Optional[Create] = None
    read: Optional[Read] = None
    update: Optional[Update] = None
    delete: Optional[Delete] = None
    patch: Optional[Patch] = None
    actions: tuple[Action, ...] = ()
    queries: tuple[Query, ...] = ()

    @classmethod
    def builder(cls) -> ResourceBuilder:
        """Start building a resource."""
        return ResourceBuilder()

    def operations(self) -> list[Operation]:
        """Return every declared operation, single-valued kinds first."""
        single = [getattr(self, slot) for _, slot in _SINGLE_OPERATION_SLOTS]
        return [
            *(operation for operation in single if operation is not None),
            *self.actions,
            *self.queries,
        ]


class ResourceBuilder:
    """Builder for :class:`Resource`."""

    def __init__(self) -> None:
        self._description: Optional[TranslatableText] = None
        self._resource_schema: Optional[Schema] = None
        self._single: dict[str, Operation] = {}
        self._duplicates: list[str] = []
        self._actions: list[Action] = []
        self._queries: list[Query] = []

    def description(self, description: Text) -> ResourceBuilder:
        self._description = wrap_optional(description)
        return self

    def resource_schema(self, schema: Schema) -> ResourceBuilder:
        self._resource_schema = schema
        return self

    def create(self, operation: Create) -> ResourceBuilder:
        return self._set_single("create", operation)

    def read(self, operation: Read) -> ResourceBuilder:
        return self._set_single("read", operation)

    def update(self, operation: Update) -> ResourceBuilder:
        return self._set_single("update", operation)

    def delete(self, operation: Delete) -> ResourceBuilder:
        return self._set_single("delete", operation)

    def patch(self, operation: Patch) -> ResourceBuilder:
        return self._set_single("patch", operation)

    def action(self, operation: Action) -> ResourceBuilder:
        self._actions.append(operation)
        return self

    def actions(self, operations: Iterable[Action]) -> ResourceBuilder:
        self._actions.extend(operations)
        return self

    def query(self, operation: Query) -> ResourceBuilder:
        self._queries.append(operation)
        return self

    def queries(self, operations: Iterable[Query]) -> ResourceBuilder:
        self._queries.extend(operations)
        return self

    def operations(self, *operations: Operation) -> ResourceBuilder:
        """Add operations of any kind, each to its own slot."""
        for operation in operations:
            if isinstance(operation, Action):
                self.action(operation)
                continue
            if isinstance(operation, Query):
                self.query(operation)
                continue
            for operation_type, slot in _SINGLE_OPERATION_SLOTS:
                if isinstance(operation, operation_type):
                    self._set_single(slot, operation)
                    break
            else:
                raise ApiValidationError(f"Unsupported operation type: {type(operation)!r}")
        return self

    def _set_single(self, slot: str, operation: Operation) -> ResourceBuilder:
        if slot in self._single:
            self._duplicates.append(slot)
        else:
            self._single[slot] = operation
        return self

    def build(self) -> Resource:
        """Validate and build the resource."""
        if self._duplicates:
            joined = ", ".join(sorted(set(self._duplicates)))
            raise ApiValidationError(f"Resource declares more than one operation of kind: {joined}")
        if (
            not self._single
            and not self._actions
            and not self._queries
            and self._resource_schema is None
            and self._description is None
        ):
            raise ApiValidationError("Empty resource: declare an operation, a schema or a description")
        _check_unique(
            [action.name for action in self._actions],
            what="action name",
        )
        _check_unique(
            [query.query_id for query in self._queries if query.type is QueryType.ID],
            what="query id",
        )
        return Resource(
            description=self._description,
            resource_schema=self._resource_schema,
            create=self._single.get("create"),  # type: ignore[arg-type]
            read=self._single.get("read"),  # type: ignore[arg-type]
            update=self._single.get("update"),  # type: ignore[arg-type]
            delete=self._single.get("delete"),  # type: ignore[arg-type]
            patch=self._single.get("patch"),  # type: ignore[arg-type]
            actions=tuple(self._actions),
            queries=tuple(self._queries),
        )


def _check_unique(values: list[Optional[str]], *, what: str) -> None:
    seen: set[str] = set()
    for value in values:
        if value is None:
            continue
        if value in seen:
            raise ApiValidationError(f"Duplicate {what}: {value!r}")
        seen.add(value)


def schema_of(document: SchemaDocument) -> Schema:
    """Shorthand for an inline schema."""
    return Schema.builder().schema(document).build()
