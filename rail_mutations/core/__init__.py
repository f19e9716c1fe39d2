"""
Core building blocks: descriptors, identifiers, exceptions and settings.
"""

from .descriptors import FieldSpec, TypeDescriptor, TypeRegistry
from .exceptions import (
    ConflictError,
    FieldViolation,
    HookError,
    InvalidIdentifier,
    MutationError,
    NotFound,
    PermissionDenied,
    PersistenceError,
    SchemaError,
    ValidationError,
    to_graphql_error,
)
from .identifiers import Identifier, decode_id, decode_id_for_type, encode_id
from .settings import HookSettings, MutationSettings

__all__ = [
    "FieldSpec",
    "TypeDescriptor",
    "TypeRegistry",
    "ConflictError",
    "FieldViolation",
    "HookError",
    "InvalidIdentifier",
    "MutationError",
    "NotFound",
    "PermissionDenied",
    "PersistenceError",
    "SchemaError",
    "ValidationError",
    "to_graphql_error",
    "Identifier",
    "decode_id",
    "decode_id_for_type",
    "encode_id",
    "HookSettings",
    "MutationSettings",
]
