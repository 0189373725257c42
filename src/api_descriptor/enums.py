"""Enumerations used by the API descriptor model."""

from __future__ import annotations

from enum import Enum


class Stability(Enum):
    """Declared maturity level of an operation."""

    STABLE = "STABLE"
    EVOLVING = "EVOLVING"
    INTERNAL = "INTERNAL"
    DEPRECATED = "DEPRECATED"
    REMOVED = "REMOVED"


class CreateMode(Enum):
    """Who chooses the identifier of a created resource."""

    ID_FROM_CLIENT = "ID_FROM_CLIENT"
    ID_FROM_SERVER = "ID_FROM_SERVER"


class QueryType(Enum):
    """How a query selects resources."""

    ID = "ID"
    FILTER = "FILTER"
    EXPRESSION = "EXPRESSION"


class CountPolicy(Enum):
    """Result-count policy a query supports."""

    NONE = "NONE"
    ESTIMATE = "ESTIMATE"
    EXACT = "EXACT"


class PagingMode(Enum):
    """Paging style a query supports."""

    COOKIE = "COOKIE"
    OFFSET = "OFFSET"


class PatchOperation(Enum):
    """Patch operation kinds."""

    ADD = "ADD"
    REMOVE = "REMOVE"
    REPLACE = "REPLACE"
    INCREMENT = "INCREMENT"
    MOVE = "MOVE"
    COPY = "COPY"
    TRANSFORM = "TRANSFORM"


class ParameterSource(Enum):
    """Where a parameter is taken from."""

    PATH = "PATH"
    ADDITIONAL = "ADDITIONAL"
