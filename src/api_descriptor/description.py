"""Root of an API description."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .exceptions import ApiValidationError
from .models import Error, Reference, Schema
from .registry import Definitions, Errors, ReferenceStage, Services
from .translation import TranslatableText, wrap_optional


@dataclass(frozen=True)
class ApiDescription:
    """API description owning its shared definitions, errors and services.

    The identifying fields are fixed at construction. The three tables are
    append-only and change only through their ``register`` operations.
    """

    id: str
    version: Optional[str] = None
    description: Optional[TranslatableText] = None
    definitions: Definitions = field(default_factory=Definitions, compare=False)
    errors: Errors = field(default_factory=Errors, compare=False)
    services: Services = field(default_factory=Services, compare=False)

    @classmethod
    def builder(cls) -> ApiDescriptionBuilder:
        """Start building an API description."""
        return ApiDescriptionBuilder()

    def stage(self) -> ReferenceStage:
        """Return a staging view over the definitions and errors tables."""
        return ReferenceStage(self.definitions, self.errors)

    def resolve_schema(self, schema: Schema) -> Schema:
        """Return the inline schema, following a reference if needed."""
        if schema.reference is None:
            return schema
        return self.definitions.resolve(schema.reference)

    def resolve_error(self, error: Error) -> Error:
        """Return the inline error, following a reference if needed."""
        if error.reference is None:
            return error
        return self.errors.resolve(error.reference)

    def resolve_reference(self, reference: Reference) -> Union[Schema, Error]:
        """Look a reference up in whichever table it points into."""
        if reference == Reference.to_definition(reference.name):
            return self.definitions.resolve(reference)
        return self.errors.resolve(reference)


class ApiDescriptionBuilder:
    """Builder for :class:`ApiDescription`."""

    def __init__(self) -> None:
        self._id: Optional[str] = None
        self._version: Optional[str] = None
        self._description: Optional[TranslatableText] = None

    def id(self, identifier: str) -> ApiDescriptionBuilder:
        self._id = identifier
        return self

    def version(self, version: str) -> ApiDescriptionBuilder:
        self._version = version
        return self

    def description(self, description: Union[str, TranslatableText]) -> ApiDescriptionBuilder:
        self._description = wrap_optional(description)
        return self

    def build(self) -> ApiDescription:
        """Validate and build the description with empty tables."""
        if not self._id or not self._id.strip():
            raise ApiValidationError("API description requires an id")
        return ApiDescription(id=self._id, version=self._version, description=self._description)
