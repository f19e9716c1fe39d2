"""
Schema builder.

Turns a registry of type descriptors into a runnable ``graphene.Schema``:
one object type per descriptor, ``get<Type>`` lookups on the query root and
every enabled mutation operation on the mutation root.
"""

import logging
from typing import Any, Optional

import graphene
from graphene.types.generic import GenericScalar

from ..core.descriptors import FieldSpec, TypeDescriptor, TypeRegistry
from ..core.exceptions import InvalidIdentifier
from ..core.identifiers import decode_id, decode_id_for_type
from ..core.settings import MutationSettings
from ..core.utils import context_lookup
from ..generators.inputs import InputTypeFactory
from ..generators.pipeline.builder import OPERATIONS, PipelineBuilder
from ..generators.pipeline.factories import MutationOperation, build_mutation_operation

logger = logging.getLogger(__name__)

SCALAR_OUTPUT_TYPES = {
    "String": graphene.String,
    "Int": graphene.Int,
    "Float": graphene.Float,
    "Boolean": graphene.Boolean,
    "ID": graphene.ID,
    "JSON": GenericScalar,
    "DateTime": graphene.DateTime,
}


class MutationSchemaBuilder:
    """
    Builds the GraphQL schema for a set of declared types.

    Example:
        builder = MutationSchemaBuilder(registry, pipeline_builder=PipelineBuilder(store=store))
        schema = builder.build()
        result = await schema.execute_async(query, context_value={"user": user})
    """

    def __init__(
        self,
        registry: TypeRegistry,
        settings: Optional[MutationSettings] = None,
        pipeline_builder: Optional[PipelineBuilder] = None,
    ):
        self.registry = registry
        self.settings = settings or (
            pipeline_builder.settings if pipeline_builder else MutationSettings.from_settings()
        )
        self.pipeline_builder = pipeline_builder or PipelineBuilder(self.settings)
        self.input_types = InputTypeFactory(registry, self.settings)
        self.object_types: dict[str, type[graphene.ObjectType]] = {}
        self.operations: dict[str, MutationOperation] = {}

    def _store(self, info) -> Any:
        return context_lookup(info.context, "store") or self.pipeline_builder.store

    def _reference_resolver(self, spec: FieldSpec):
        async def resolve(root, info):
            value = root.get(spec.name) if isinstance(root, dict) else getattr(root, spec.name, None)
            if value is None:
                return None
            store = self._store(info)
            values = value if spec.many else [value]
            resolved = []
            for raw in values:
                try:
                    identifier = decode_id(raw)
                except InvalidIdentifier:
                    resolved.append(None)
                    continue
                resolved.append(await store.get_by_id(spec.kind, identifier))
            return resolved if spec.many else resolved[0]

        return resolve

    def _output_field(self, spec: FieldSpec):
        if spec.is_reference:
            kind = spec.kind
            base = lambda: self.object_types[kind]  # noqa: E731
            field_type = graphene.List(base) if spec.many else base
            return graphene.Field(
                field_type, description=spec.description, resolver=self._reference_resolver(spec)
            )
        base = SCALAR_OUTPUT_TYPES[spec.kind]
        field_type = graphene.List(base) if spec.many else base
        if spec.required:
            field_type = graphene.NonNull(field_type)
        return graphene.Field(field_type, description=spec.description)

    def get_object_type(self, descriptor: TypeDescriptor) -> type[graphene.ObjectType]:
        if descriptor.name in self.object_types:
            return self.object_types[descriptor.name]
        attrs: dict[str, Any] = {
            "__doc__": f"Stored {descriptor.name} object.",
            "id": graphene.ID(required=descriptor.addressable),
            "created_at": graphene.DateTime(),
            "updated_at": graphene.DateTime(),
        }
        if descriptor.version_field:
            attrs[descriptor.version_field] = graphene.Int()
        for spec in descriptor.fields:
            if spec.name == "id":
                continue
            attrs[spec.name] = self._output_field(spec)
        object_type = type(descriptor.name, (graphene.ObjectType,), attrs)
        self.object_types[descriptor.name] = object_type
        return object_type

    def get_operations(self, descriptor: TypeDescriptor) -> list[MutationOperation]:
        kinds = [
            kind
            for kind in OPERATIONS
            if self.settings.is_enabled(kind) and (descriptor.addressable or kind == "create")
        ]
        operations = []
        for kind in kinds:
            operation = build_mutation_operation(
                kind,
                descriptor,
                self.pipeline_builder,
                input_type=self.input_types.get_input_type(descriptor, kind),
                payload_type=self.get_object_type(descriptor),
            )
            self.operations[operation.name] = operation
            operations.append(operation)
        return operations

    def _build_query(self) -> type[graphene.ObjectType]:
        attrs: dict[str, Any] = {"__doc__": "Root query."}
        for descriptor in self.registry:
            if not descriptor.addressable:
                continue
            attrs[f"get{descriptor.name}"] = graphene.Field(
                self.get_object_type(descriptor),
                id=graphene.ID(required=True),
                resolver=self._lookup_resolver(descriptor),
            )
        return type("Query", (graphene.ObjectType,), attrs)

    def _lookup_resolver(self, descriptor: TypeDescriptor):
        async def resolve(root, info, id):
            try:
                identifier = decode_id_for_type(id, descriptor.name)
            except InvalidIdentifier:
                return None
            return await self._store(info).get_by_id(descriptor.name, identifier)

        return resolve

    def _build_mutation(self) -> Optional[type[graphene.ObjectType]]:
        attrs: dict[str, Any] = {"__doc__": "Root mutation."}
        for descriptor in self.registry:
            for operation in self.get_operations(descriptor):
                attrs[operation.name] = operation.mutation_class().Field(
                    description=operation.description
                )
        if len(attrs) == 1:
            return None
        return type("Mutation", (graphene.ObjectType,), attrs)

    def build(self) -> graphene.Schema:
        self.registry.validate_references()
        for descriptor in self.registry:
            self.get_object_type(descriptor)
        query = self._build_query()
        mutation = self._build_mutation()
        logger.info(
            "Built schema with %d types and %d mutations", len(self.registry), len(self.operations)
        )
        return graphene.Schema(query=query, mutation=mutation)
