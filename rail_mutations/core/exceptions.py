"""
Exceptions raised by the mutation pipeline.

Every failure a caller can observe is a ``MutationError`` subclass carrying a
machine-readable ``code`` and, where one applies, the offending ``field``.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from graphql import GraphQLError


class MutationError(Exception):
    """Base exception for mutation operations."""

    code = "MUTATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        type_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.type_name = type_name
        if code:
            self.code = code

    def __str__(self) -> str:
        return self.message


class SchemaError(MutationError):
    """Raised when a declared type references a type that does not exist."""

    code = "SCHEMA_ERROR"


class InvalidIdentifier(MutationError):
    """Raised when an id is malformed or names a different type."""

    code = "INVALID_ID"

    def __init__(self, message: str, type_name: Optional[str] = None, field: str = "id"):
        super().__init__(message, field=field, type_name=type_name)


class NotFound(MutationError):
    """Raised when a decoded id has no backing record."""

    code = "NOT_FOUND"

    def __init__(self, type_name: str, display_id: str, field: str = "id"):
        super().__init__(
            f"Can not find {type_name} object with given ID: {display_id}",
            field=field,
            type_name=type_name,
        )
        self.display_id = display_id


class PermissionDenied(MutationError):
    """Raised when the permission gate rejects a candidate change."""

    code = "PERMISSION_DENIED"

    def __init__(self, type_name: str, operation: str, reason: str = ""):
        message = f"Permission denied for {operation} on {type_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, type_name=type_name)
        self.operation = operation
        self.reason = reason


@dataclass(frozen=True)
class FieldViolation:
    """A single field-level constraint violation."""

    field: Optional[str]
    message: str
    code: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {"field": self.field, "message": self.message, "code": self.code}


class ValidationError(MutationError):
    """Raised when the candidate object violates one or more field constraints."""

    code = "VALIDATION_ERROR"

    def __init__(self, violations: Iterable[FieldViolation], type_name: Optional[str] = None):
        self.violations: List[FieldViolation] = list(violations)
        if not self.violations:
            raise ValueError("ValidationError requires at least one violation")
        first = self.violations[0]
        message = "; ".join(
            f"{v.field}: {v.message}" if v.field else v.message for v in self.violations
        )
        super().__init__(message, field=first.field, type_name=type_name)


class PersistenceError(MutationError):
    """Raised when the store fails to apply a write."""

    code = "PERSISTENCE_ERROR"


class ConflictError(PersistenceError):
    """Raised when an optimistic version check fails at write time."""

    code = "CONFLICT"


class HookError(MutationError):
    """Raised inside hook delivery; logged and never propagated to callers."""

    code = "HOOK_ERROR"


def to_graphql_error(error: MutationError) -> GraphQLError:
    """Convert a MutationError into a GraphQLError with structured extensions."""
    extensions: dict[str, Any] = {"code": error.code}
    if error.field:
        extensions["field"] = error.field
    if error.type_name:
        extensions["type"] = error.type_name
    if isinstance(error, ValidationError):
        extensions["violations"] = [v.as_dict() for v in error.violations]
    return GraphQLError(error.message, extensions=extensions, original_error=error)
