"""
Candidate validation.

The validator sees both the candidate (post-mutation shape) and the existing
record, so it can enforce immutability and uniqueness as well as per-field
kind and presence rules. All violations are collected before raising.
"""

import datetime
import decimal
import logging
from typing import Any, Callable, Iterable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils.module_loading import import_string

from ..core.descriptors import NODE_INTERFACE, FieldSpec, TypeDescriptor
from ..core.exceptions import FieldViolation, InvalidIdentifier, ValidationError
from ..core.identifiers import decode_id_for_type
from ..core.settings import MutationSettings
from ..core.utils import maybe_await

logger = logging.getLogger(__name__)

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})

CustomValidator = Callable[..., Any]


def _normalize_field_path(field: Any, prefix: Optional[str] = None) -> Optional[str]:
    """Normalize dotted, double-underscore or indexed field names to dot paths."""
    if field is None:
        return prefix
    segment = str(field).replace("__", ".").replace("[", ".").replace("]", "")
    segment = segment.replace("..", ".").strip(".")
    if prefix:
        return f"{prefix}.{segment}".strip(".")
    return segment or None


def flatten_django_validation_error(
    detail: Any, path: Optional[str] = None
) -> list[FieldViolation]:
    """Flatten a Django ValidationError (or dict/list payload) into violations."""
    collected: list[FieldViolation] = []

    def _walk(item: Any, current: Optional[str]) -> None:
        if isinstance(item, DjangoValidationError):
            if hasattr(item, "error_dict"):
                for field_name, errors in item.error_dict.items():
                    _walk(errors, _normalize_field_path(field_name, current))
                return
            for error in item.error_list:
                message = error.message
                if error.params:
                    message = message % error.params
                collected.append(FieldViolation(current, str(message), error.code))
            return
        if isinstance(item, dict):
            for field_name, errors in item.items():
                _walk(errors, _normalize_field_path(field_name, current))
            return
        if isinstance(item, (list, tuple)):
            for entry in item:
                _walk(entry, current)
            return
        collected.append(FieldViolation(current, str(item)))

    _walk(detail, path)
    return collected


def _matches_kind(spec: FieldSpec, value: Any) -> bool:
    kind = spec.kind
    if kind == "JSON":
        return True
    if kind == "Boolean":
        return isinstance(value, bool)
    if kind == "Int":
        return isinstance(value, int) and not isinstance(value, bool)
    if kind == "Float":
        return isinstance(value, (int, float, decimal.Decimal)) and not isinstance(value, bool)
    if kind == "DateTime":
        return isinstance(value, (datetime.datetime, datetime.date, str))
    # String, ID and references are all submitted as strings.
    return isinstance(value, str)


class Validator:
    """
    Default candidate validator.

    Checks, in order: unknown fields, required fields, value kinds, identity
    of Node ids, immutable fields, references, uniqueness, then custom
    validators registered per type.
    Undeclared fields already present on the existing record are tolerated;
    only the caller can introduce unknown ones.
    Kinds are only checked on values that differ from the existing record.
    """

    def __init__(self):
        self._custom: dict[str, list[CustomValidator]] = {}

    @classmethod
    def from_settings(cls, settings: Optional[MutationSettings] = None) -> "Validator":
        settings = settings or MutationSettings.from_settings()
        if settings.validator_path:
            return import_string(settings.validator_path)()
        return cls()

    def register(self, type_name: str, validator: CustomValidator) -> "Validator":
        """Register ``validator(store, context, candidate, existing)`` for a type."""
        self._custom.setdefault(type_name, []).append(validator)
        return self

    async def validate(
        self,
        store: Any,
        context: Any,
        descriptor: TypeDescriptor,
        candidate: dict[str, Any],
        existing: dict[str, Any],
        interfaces: Iterable[str] = (),
    ) -> None:
        violations: list[FieldViolation] = []
        fields = descriptor.field_map()
        interfaces = frozenset(interfaces) | descriptor.interfaces
        allowed = SYSTEM_FIELDS | set(fields)
        if descriptor.version_field:
            allowed = allowed | {descriptor.version_field}

        for name in candidate:
            if name not in allowed and name not in (existing or {}):
                violations.append(FieldViolation(name, "Unknown field.", "unknown"))

        for name, spec in fields.items():
            value = candidate.get(name)
            if value is None:
                if spec.required:
                    violations.append(
                        FieldViolation(name, "This field is required.", "required")
                    )
                continue
            unchanged = bool(existing) and name in existing and existing[name] == value
            if not unchanged:
                violations.extend(self._check_kind(spec, value))
            if existing and spec.immutable and name in existing and existing[name] != value:
                violations.append(
                    FieldViolation(name, "This field can not be changed.", "immutable")
                )

        if (
            NODE_INTERFACE in interfaces
            and existing
            and "id" in candidate
            and candidate["id"] != existing.get("id")
        ):
            violations.append(FieldViolation("id", "This field can not be changed.", "immutable"))

        if not violations:
            violations.extend(await self._check_references(store, descriptor, candidate))
            violations.extend(await self._check_unique(store, descriptor, candidate, existing))

        if not violations:
            violations.extend(
                await self._run_custom(store, context, descriptor, candidate, existing)
            )

        if violations:
            logger.info(
                "Validation failed for %s: %s",
                descriptor.name,
                [v.as_dict() for v in violations],
            )
            raise ValidationError(violations, type_name=descriptor.name)

    def _check_kind(self, spec: FieldSpec, value: Any) -> list[FieldViolation]:
        if spec.many:
            if not isinstance(value, (list, tuple)):
                return [FieldViolation(spec.name, "Expected a list.", "invalid")]
            items = list(value)
        else:
            items = [value]
        for index, item in enumerate(items):
            if item is not None and not _matches_kind(spec, item):
                path = f"{spec.name}.{index}" if spec.many else spec.name
                return [FieldViolation(path, f"Expected a value of type {spec.kind}.", "invalid")]
        return []

    async def _check_references(
        self, store: Any, descriptor: TypeDescriptor, candidate: dict[str, Any]
    ) -> list[FieldViolation]:
        violations: list[FieldViolation] = []
        for spec in descriptor.fields:
            if not spec.is_reference or candidate.get(spec.name) is None:
                continue
            values = candidate[spec.name] if spec.many else [candidate[spec.name]]
            for value in values:
                try:
                    identifier = decode_id_for_type(value, spec.kind)
                except InvalidIdentifier as exc:
                    violations.append(FieldViolation(spec.name, str(exc), "invalid_reference"))
                    continue
                if await store.get_by_id(spec.kind, identifier) is None:
                    violations.append(
                        FieldViolation(
                            spec.name,
                            f"{spec.kind} object {identifier} does not exist.",
                            "invalid_reference",
                        )
                    )
        return violations

    async def _check_unique(
        self,
        store: Any,
        descriptor: TypeDescriptor,
        candidate: dict[str, Any],
        existing: dict[str, Any],
    ) -> list[FieldViolation]:
        violations: list[FieldViolation] = []
        own_id = (existing or {}).get("id")
        for spec in descriptor.fields:
            if not spec.unique or candidate.get(spec.name) is None:
                continue
            if existing and existing.get(spec.name) == candidate[spec.name]:
                continue
            matches = await store.find_by_field(descriptor.name, spec.name, candidate[spec.name])
            if any(record.get("id") != own_id for record in matches):
                violations.append(
                    FieldViolation(spec.name, "This value must be unique.", "unique")
                )
        return violations

    async def _run_custom(
        self,
        store: Any,
        context: Any,
        descriptor: TypeDescriptor,
        candidate: dict[str, Any],
        existing: dict[str, Any],
    ) -> list[FieldViolation]:
        violations: list[FieldViolation] = []
        for validator in self._custom.get(descriptor.name, []):
            try:
                outcome = await maybe_await(validator(store, context, candidate, existing))
            except DjangoValidationError as exc:
                violations.extend(flatten_django_validation_error(exc))
                continue
            except ValidationError as exc:
                violations.extend(exc.violations)
                continue
            if outcome:
                violations.extend(
                    item if isinstance(item, FieldViolation) else FieldViolation(None, str(item))
                    for item in outcome
                )
        return violations
