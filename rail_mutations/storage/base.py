"""
Store protocol consumed by the mutation pipeline.

The pipeline calls each write method at most once per invocation and treats
the returned record as the authoritative post-write state.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..core.identifiers import Identifier, is_valid_id

Record = dict[str, Any]


class BaseStore(ABC):
    """
    Asynchronous record store keyed by type name and identifier.

    Subclasses implement the read/write primitives; ``is_valid_id`` defaults
    to the global ID codec.
    """

    def is_valid_id(self, type_name: str, raw: Any) -> bool:
        return is_valid_id(type_name, raw)

    @abstractmethod
    async def get_by_id(self, type_name: str, identifier: Identifier) -> Optional[Record]:
        """Return the stored record or None when absent."""

    @abstractmethod
    async def create(
        self, type_name: str, fields: Record, version_field: Optional[str] = None
    ) -> Record:
        """Insert a record and return its stored shape."""

    @abstractmethod
    async def update(
        self,
        type_name: str,
        identifier: Identifier,
        patch: Record,
        expected_version: Any = None,
        version_field: Optional[str] = None,
    ) -> Record:
        """Merge ``patch`` into the stored record and return the result."""

    @abstractmethod
    async def replace(
        self,
        type_name: str,
        identifier: Identifier,
        fields: Record,
        expected_version: Any = None,
        version_field: Optional[str] = None,
    ) -> Record:
        """Replace every domain field of the stored record."""

    @abstractmethod
    async def delete(self, type_name: str, identifier: Identifier) -> Record:
        """Remove the record and return its last stored shape."""

    @abstractmethod
    async def find_by_field(self, type_name: str, field_name: str, value: Any) -> list[Record]:
        """Return records whose ``field_name`` equals ``value``."""
