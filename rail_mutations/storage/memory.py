"""
In-process store used for tests and single-process deployments.
"""

import copy
import logging
import uuid
from typing import Any, Optional

from django.utils import timezone

from ..core.exceptions import ConflictError, PersistenceError
from ..core.identifiers import Identifier, encode_id
from .base import BaseStore, Record

logger = logging.getLogger(__name__)

SYSTEM_FIELDS = ("id", "created_at", "updated_at")


class InMemoryStore(BaseStore):
    """
    Dict-backed store.

    Assigns keys, stamps ``created_at``/``updated_at`` and, when a version
    field is given, enforces compare-and-swap on writes. Every returned
    record is a copy.
    """

    def __init__(self):
        self._tables: dict[str, dict[str, Record]] = {}

    def _table(self, type_name: str) -> dict[str, Record]:
        return self._tables.setdefault(type_name, {})

    def _get_existing(self, type_name: str, identifier: Identifier) -> Record:
        record = self._table(type_name).get(identifier.key)
        if record is None:
            raise PersistenceError(
                f"{type_name} {identifier.key} does not exist", type_name=type_name
            )
        return record

    @staticmethod
    def _check_version(
        type_name: str, current: Record, expected_version: Any, version_field: Optional[str]
    ) -> None:
        if not version_field or expected_version is None:
            return
        if current.get(version_field) != expected_version:
            raise ConflictError(
                f"{type_name} was modified concurrently "
                f"(expected {version_field}={expected_version}, "
                f"found {current.get(version_field)})",
                type_name=type_name,
            )

    @staticmethod
    def _bump_version(record: Record, version_field: Optional[str]) -> None:
        if version_field:
            record[version_field] = int(record.get(version_field) or 0) + 1

    async def get_by_id(self, type_name: str, identifier: Identifier) -> Optional[Record]:
        record = self._table(type_name).get(identifier.key)
        return copy.deepcopy(record) if record is not None else None

    async def create(
        self, type_name: str, fields: Record, version_field: Optional[str] = None
    ) -> Record:
        key = uuid.uuid4().hex
        now = timezone.now()
        record = {k: v for k, v in copy.deepcopy(fields).items() if k not in SYSTEM_FIELDS}
        record.update(id=encode_id(type_name, key), created_at=now, updated_at=now)
        if version_field:
            record[version_field] = 1
        self._table(type_name)[key] = record
        logger.debug("Created %s %s", type_name, key)
        return copy.deepcopy(record)

    async def update(
        self,
        type_name: str,
        identifier: Identifier,
        patch: Record,
        expected_version: Any = None,
        version_field: Optional[str] = None,
    ) -> Record:
        current = self._get_existing(type_name, identifier)
        self._check_version(type_name, current, expected_version, version_field)
        updated = dict(current)
        updated.update(
            {k: v for k, v in copy.deepcopy(patch).items() if k not in SYSTEM_FIELDS}
        )
        updated["updated_at"] = timezone.now()
        self._bump_version(updated, version_field)
        self._table(type_name)[identifier.key] = updated
        logger.debug("Updated %s %s fields=%s", type_name, identifier.key, sorted(patch))
        return copy.deepcopy(updated)

    async def replace(
        self,
        type_name: str,
        identifier: Identifier,
        fields: Record,
        expected_version: Any = None,
        version_field: Optional[str] = None,
    ) -> Record:
        current = self._get_existing(type_name, identifier)
        self._check_version(type_name, current, expected_version, version_field)
        replaced = {
            k: v for k, v in copy.deepcopy(fields).items() if k not in SYSTEM_FIELDS
        }
        replaced.update(
            id=current["id"],
            created_at=current.get("created_at"),
            updated_at=timezone.now(),
        )
        if version_field:
            replaced[version_field] = current.get(version_field)
            self._bump_version(replaced, version_field)
        self._table(type_name)[identifier.key] = replaced
        logger.debug("Replaced %s %s", type_name, identifier.key)
        return copy.deepcopy(replaced)

    async def delete(self, type_name: str, identifier: Identifier) -> Record:
        self._get_existing(type_name, identifier)
        removed = self._table(type_name).pop(identifier.key)
        logger.debug("Deleted %s %s", type_name, identifier.key)
        return copy.deepcopy(removed)

    async def find_by_field(self, type_name: str, field_name: str, value: Any) -> list[Record]:
        return [
            copy.deepcopy(record)
            for record in self._table(type_name).values()
            if record.get(field_name) == value
        ]
