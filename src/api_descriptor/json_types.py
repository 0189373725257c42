"""Type aliases for schema documents and rendered descriptions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from typing_extensions import TypeAliasType

JSONScalar = TypeAliasType("JSONScalar", Union[str, int, float, bool, None])
JSONValue = TypeAliasType("JSONValue", Union[JSONScalar, list["JSONValue"], dict[str, "JSONValue"]])
# Inline schemas are arbitrary JSON Schema documents.
SchemaDocument = TypeAliasType("SchemaDocument", Mapping[str, Any])
Document = TypeAliasType("Document", dict[str, JSONValue])
