"""
Input type generation helpers.

Composes the accepted input shape of a mutation from a type's declared
fields. Create inputs keep the declared requirements; update inputs make
every domain field optional (omitted means unchanged) and add the id and
the correlation token.
"""

from collections import OrderedDict
from typing import Any, Callable, Iterable, Optional

import graphene
from graphene.types.generic import GenericScalar

from ..core.descriptors import NODE_INTERFACE, FieldSpec, TypeDescriptor, TypeRegistry
from ..core.exceptions import SchemaError
from ..core.settings import MutationSettings

SCALAR_INPUT_TYPES = {
    "String": graphene.String,
    "Int": graphene.Int,
    "Float": graphene.Float,
    "Boolean": graphene.Boolean,
    "ID": graphene.ID,
    "JSON": GenericScalar,
    "DateTime": graphene.DateTime,
}

INPUT_TYPE_PREFIXES = {
    "create": "_Create",
    "update": "_Update",
    "replace": "_Replace",
}

ID_FIELD = "id"
CORRELATION_FIELD = "client_mutation_id"


def _reference_thunk(
    spec: FieldSpec, resolve_type: Callable[[str], Optional[Any]]
) -> Callable[[], Any]:
    """
    Defer resolution of a referenced type until graphene asks for it.

    References are submitted as the referenced object's id.
    """

    def thunk():
        if resolve_type(spec.kind) is None:
            raise SchemaError(f"Field {spec.name} references unknown type {spec.kind}")
        return graphene.ID

    return thunk


def _input_field_type(spec: FieldSpec, resolve_type: Callable[[str], Optional[Any]]):
    if spec.is_reference:
        base = _reference_thunk(spec, resolve_type)
    else:
        base = SCALAR_INPUT_TYPES.get(spec.kind)
        if base is None:
            raise SchemaError(f"Unsupported field kind {spec.kind} on {spec.name}")
    if spec.many:
        return graphene.List(graphene.NonNull(base))
    return base


def compose_input_fields(
    type_fields: Iterable[FieldSpec],
    is_create: bool,
    resolve_type: Callable[[str], Optional[Any]],
    interfaces: Iterable[str] = (),
    id_field: str = ID_FIELD,
    correlation_field: str = CORRELATION_FIELD,
) -> "OrderedDict[str, graphene.InputField]":
    """
    Build the input fields for a create or update operation.

    Args:
        type_fields: Declared fields of the type, in order
        is_create: True for create inputs, False for update inputs
        resolve_type: Looks up a declared type by name, None when unknown
        interfaces: Capabilities of the type; Node types reserve ``id``
        id_field: Input name of the identifier argument
        correlation_field: Input name of the correlation token

    Returns:
        Ordered mapping of field name to graphene.InputField
    """
    interfaces = frozenset(interfaces)
    fields: "OrderedDict[str, graphene.InputField]" = OrderedDict()

    for spec in type_fields:
        if spec.name == ID_FIELD and NODE_INTERFACE in interfaces:
            continue
        field_type = _input_field_type(spec, resolve_type)
        required = is_create and spec.required
        if required:
            field_type = graphene.NonNull(field_type)
        fields[spec.name] = graphene.InputField(field_type, description=spec.description)

    if not is_create:
        fields[id_field] = graphene.InputField(
            graphene.NonNull(graphene.ID), description="The ID of the updated object."
        )
        fields[correlation_field] = graphene.InputField(graphene.String)

    return fields


def compose_replace_fields(
    type_fields: Iterable[FieldSpec],
    resolve_type: Callable[[str], Optional[Any]],
    interfaces: Iterable[str] = (),
    id_field: str = ID_FIELD,
    correlation_field: str = CORRELATION_FIELD,
) -> "OrderedDict[str, graphene.InputField]":
    """Replace inputs carry the full create shape plus the id and the correlation token."""
    fields = compose_input_fields(type_fields, True, resolve_type, interfaces)
    fields[id_field] = graphene.InputField(
        graphene.NonNull(graphene.ID), description="The ID of the replaced object."
    )
    fields[correlation_field] = graphene.InputField(graphene.String)
    return fields


class InputTypeFactory:
    """
    Builds and caches named input object types per registry.

    The identifier and correlation token input names come from
    ``MutationSettings`` so they match what the mutation handles unpack.
    """

    def __init__(self, registry: TypeRegistry, settings: Optional[MutationSettings] = None):
        self.registry = registry
        self.settings = settings or MutationSettings()
        self._input_type_registry: dict[tuple[str, str], type[graphene.InputObjectType]] = {}

    def get_input_type(
        self, descriptor: TypeDescriptor, operation: str
    ) -> type[graphene.InputObjectType]:
        cache_key = (descriptor.name, operation)
        if cache_key in self._input_type_registry:
            return self._input_type_registry[cache_key]

        id_field = self.settings.id_field_name
        correlation_field = self.settings.correlation_field_name
        names = {"id_field": id_field, "correlation_field": correlation_field}

        if operation == "create":
            fields = compose_input_fields(
                descriptor.fields, True, self.registry.get, descriptor.interfaces, **names
            )
            fields[correlation_field] = graphene.InputField(graphene.String)
        elif operation == "update":
            fields = compose_input_fields(
                descriptor.fields, False, self.registry.get, descriptor.interfaces, **names
            )
        elif operation == "replace":
            fields = compose_replace_fields(
                descriptor.fields, self.registry.get, descriptor.interfaces, **names
            )
        elif operation == "delete":
            fields = OrderedDict(
                [
                    (id_field, graphene.InputField(graphene.NonNull(graphene.ID))),
                    (correlation_field, graphene.InputField(graphene.String)),
                ]
            )
        else:
            raise SchemaError(f"Unknown mutation operation: {operation}")

        input_type = type(
            f"{INPUT_TYPE_PREFIXES.get(operation, '_Delete')}{descriptor.name}Input",
            (graphene.InputObjectType,),
            {
                "__doc__": f"Input for {operation} of {descriptor.name} objects.",
                **fields,
            },
        )
        self._input_type_registry[cache_key] = input_type
        return input_type
