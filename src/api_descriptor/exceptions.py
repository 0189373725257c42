"""Exceptions raised while building and scanning API descriptions."""

from __future__ import annotations


class ApiValidationError(RuntimeError):
    """Raised when a builder's required invariant is not met."""


class ApiConfigurationError(ValueError):
    """Raised when a cross-field rule of the description is violated."""


class RegistryConflictError(ApiValidationError):
    """Raised when a shared name is already bound to a different value."""


class UnknownReferenceError(KeyError):
    """Raised when a reference does not name an entry of its table."""


class MetadataLoadError(RuntimeError):
    """Raised when handler metadata or a dictionary file cannot be loaded."""
