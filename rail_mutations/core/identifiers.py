"""
Opaque per-type identifiers.

Identifiers are relay-style global IDs: base64 of ``"<TypeName>:<key>"``.
"""

from dataclasses import dataclass
from typing import Any

from graphql_relay import from_global_id, to_global_id

from .exceptions import InvalidIdentifier


@dataclass(frozen=True)
class Identifier:
    """Decoded identifier: the type name plus the storage key."""

    type_name: str
    key: str

    def encode(self) -> str:
        return encode_id(self.type_name, self.key)

    def __str__(self) -> str:
        return to_display_id(self)


def encode_id(type_name: str, key: Any) -> str:
    return to_global_id(type_name, str(key))


def decode_id(raw: Any) -> Identifier:
    """
    Decode an opaque identifier.

    Raises:
        InvalidIdentifier: if the value is not a well-formed global ID
    """
    if isinstance(raw, Identifier):
        return raw
    if not isinstance(raw, str) or not raw:
        raise InvalidIdentifier(f"Invalid ID: {raw!r}")
    try:
        type_name, key = from_global_id(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidIdentifier(f"Invalid ID: {raw!r}") from exc
    if not type_name or not key:
        raise InvalidIdentifier(f"Invalid ID: {raw!r}")
    return Identifier(type_name=type_name, key=key)


def decode_id_for_type(raw: Any, type_name: str) -> Identifier:
    """Decode an identifier and check it names ``type_name``."""
    try:
        identifier = decode_id(raw)
    except InvalidIdentifier as exc:
        raise InvalidIdentifier(f"Invalid ID for type {type_name}", type_name=type_name) from exc
    if identifier.type_name != type_name:
        raise InvalidIdentifier(f"Invalid ID for type {type_name}", type_name=type_name)
    return identifier


def is_valid_id(type_name: str, raw: Any) -> bool:
    try:
        decode_id_for_type(raw, type_name)
    except InvalidIdentifier:
        return False
    return True


def to_display_id(identifier: Identifier) -> str:
    return f"{identifier.type_name}:{identifier.key}"
