"""
Store backed by Django models.

Each declared type name maps to a Django model. ORM calls run in a worker
thread through ``sync_to_async`` so the pipeline never blocks the event loop.
"""

import logging
from typing import Any, Optional, Union

from asgiref.sync import sync_to_async
from django.apps import apps
from django.core.exceptions import FieldDoesNotExist
from django.db import DatabaseError, models, transaction
from django.forms.models import model_to_dict

from ..core.exceptions import ConflictError, InvalidIdentifier, PersistenceError
from ..core.identifiers import Identifier, decode_id, encode_id
from .base import BaseStore, Record

logger = logging.getLogger(__name__)

ModelRef = Union[str, type[models.Model]]


class DjangoModelStore(BaseStore):
    """
    Store adapter over the Django ORM.

    Args:
        model_map: Type name -> model class or ``"app_label.ModelName"``
    """

    def __init__(self, model_map: dict[str, ModelRef]):
        self._model_map = dict(model_map)
        self._resolved: dict[str, type[models.Model]] = {}

    def get_model(self, type_name: str) -> type[models.Model]:
        model = self._resolved.get(type_name)
        if model is not None:
            return model
        ref = self._model_map.get(type_name)
        if ref is None:
            raise PersistenceError(f"No model registered for type {type_name}", type_name=type_name)
        model = apps.get_model(ref) if isinstance(ref, str) else ref
        self._resolved[type_name] = model
        return model

    def _type_name_for_model(self, model: type[models.Model]) -> str:
        for type_name in self._model_map:
            if self.get_model(type_name) is model:
                return type_name
        return model.__name__

    def _to_record(self, type_name: str, instance: models.Model) -> Record:
        data = model_to_dict(instance)
        model = instance.__class__
        for field in model._meta.get_fields():
            if not getattr(field, "concrete", False):
                continue
            if getattr(field, "auto_now", False) or getattr(field, "auto_now_add", False):
                data[field.name] = getattr(instance, field.attname)
            if not field.is_relation or field.name not in data:
                continue
            related_type = self._type_name_for_model(field.related_model)
            value = data[field.name]
            if field.many_to_many:
                data[field.name] = [
                    encode_id(related_type, getattr(item, "pk", item)) for item in value or []
                ]
            elif value is not None:
                data[field.name] = encode_id(related_type, value)
        data["id"] = encode_id(type_name, instance.pk)
        return data

    def _split_fields(
        self, model: type[models.Model], fields: Record
    ) -> tuple[dict[str, Any], dict[str, list[Any]]]:
        """Convert reference ids to keys; return (concrete values, m2m values)."""
        concrete: dict[str, Any] = {}
        many: dict[str, list[Any]] = {}
        for name, value in fields.items():
            if name == "id":
                continue
            try:
                field = model._meta.get_field(name)
            except FieldDoesNotExist:
                concrete[name] = value
                continue
            if field.many_to_many:
                many[name] = [self._reference_key(name, item) for item in value or []]
            elif field.is_relation:
                concrete[field.attname] = (
                    self._reference_key(name, value) if value is not None else None
                )
            else:
                concrete[name] = value
        return concrete, many

    @staticmethod
    def _reference_key(field_name: str, value: Any) -> Any:
        try:
            return decode_id(value).key
        except InvalidIdentifier:
            return value

    def _fetch(self, type_name: str, identifier: Identifier, lock: bool = False):
        model = self.get_model(type_name)
        queryset = model.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.filter(pk=identifier.key).first()
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _check_version(type_name, instance, expected_version, version_field) -> None:
        if not version_field or expected_version is None:
            return
        current = getattr(instance, version_field, None)
        if current != expected_version:
            raise ConflictError(
                f"{type_name} was modified concurrently "
                f"(expected {version_field}={expected_version}, found {current})",
                type_name=type_name,
            )

    def _write(self, type_name: str, operation: str, func, *args) -> Record:
        try:
            with transaction.atomic():
                instance = func(*args)
        except DatabaseError as exc:
            logger.warning("%s of %s failed: %s", operation, type_name, exc)
            raise PersistenceError(str(exc), type_name=type_name) from exc
        return self._to_record(type_name, instance)

    async def get_by_id(self, type_name: str, identifier: Identifier) -> Optional[Record]:
        def _get():
            instance = self._fetch(type_name, identifier)
            return self._to_record(type_name, instance) if instance is not None else None

        return await sync_to_async(_get)()

    async def create(
        self, type_name: str, fields: Record, version_field: Optional[str] = None
    ) -> Record:
        model = self.get_model(type_name)

        def _create():
            concrete, many = self._split_fields(model, fields)
            if version_field:
                concrete[version_field] = 1
            instance = model.objects.create(**concrete)
            for name, keys in many.items():
                getattr(instance, name).set(keys)
            return instance

        return await sync_to_async(self._write)(type_name, "create", _create)

    def _apply(
        self,
        type_name: str,
        identifier: Identifier,
        fields: Record,
        expected_version: Any,
        version_field: Optional[str],
        replace: bool,
    ):
        model = self.get_model(type_name)
        instance = self._fetch(type_name, identifier, lock=True)
        if instance is None:
            raise PersistenceError(
                f"{type_name} {identifier.key} does not exist", type_name=type_name
            )
        self._check_version(type_name, instance, expected_version, version_field)
        concrete, many = self._split_fields(model, fields)
        if replace:
            for field in model._meta.concrete_fields:
                if field.primary_key or field.attname in concrete or field.name == version_field:
                    continue
                if getattr(field, "auto_now", False) or getattr(field, "auto_now_add", False):
                    continue
                concrete.setdefault(field.attname, field.get_default())
        for attname, value in concrete.items():
            setattr(instance, attname, value)
        if version_field:
            setattr(instance, version_field, int(getattr(instance, version_field) or 0) + 1)
        instance.save()
        for name, keys in many.items():
            getattr(instance, name).set(keys)
        return instance

    async def update(
        self,
        type_name: str,
        identifier: Identifier,
        patch: Record,
        expected_version: Any = None,
        version_field: Optional[str] = None,
    ) -> Record:
        return await sync_to_async(self._write)(
            type_name,
            "update",
            self._apply,
            type_name,
            identifier,
            patch,
            expected_version,
            version_field,
            False,
        )

    async def replace(
        self,
        type_name: str,
        identifier: Identifier,
        fields: Record,
        expected_version: Any = None,
        version_field: Optional[str] = None,
    ) -> Record:
        return await sync_to_async(self._write)(
            type_name,
            "replace",
            self._apply,
            type_name,
            identifier,
            fields,
            expected_version,
            version_field,
            True,
        )

    async def delete(self, type_name: str, identifier: Identifier) -> Record:
        def _delete():
            instance = self._fetch(type_name, identifier, lock=True)
            if instance is None:
                raise PersistenceError(
                    f"{type_name} {identifier.key} does not exist", type_name=type_name
                )
            record = self._to_record(type_name, instance)
            instance.delete()
            return record

        def _run():
            try:
                with transaction.atomic():
                    return _delete()
            except DatabaseError as exc:
                logger.warning("delete of %s failed: %s", type_name, exc)
                raise PersistenceError(str(exc), type_name=type_name) from exc

        return await sync_to_async(_run)()

    async def find_by_field(self, type_name: str, field_name: str, value: Any) -> list[Record]:
        model = self.get_model(type_name)

        def _find():
            concrete, _ = self._split_fields(model, {field_name: value})
            return [
                self._to_record(type_name, instance)
                for instance in model.objects.filter(**concrete)
            ]

        return await sync_to_async(_find)()
