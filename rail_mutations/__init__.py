"""
rail-mutations: schema-driven mutation resolution for graphene.

Declared object types get create, update, replace and delete operations
whose inputs are validated, authorized, persisted and hook-notified by a
fixed pipeline.
"""

from .core import (
    FieldSpec,
    HookSettings,
    Identifier,
    MutationSettings,
    TypeDescriptor,
    TypeRegistry,
    decode_id,
    encode_id,
)
from .defaults import LIBRARY_VERSION as __version__

__all__ = [
    "FieldSpec",
    "HookSettings",
    "Identifier",
    "MutationSettings",
    "TypeDescriptor",
    "TypeRegistry",
    "decode_id",
    "encode_id",
    "__version__",
]
