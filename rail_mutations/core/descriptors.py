"""
Type descriptors for declared object types.

A ``TypeDescriptor`` is a value, not a class: the pipeline is one algorithm
parameterized over descriptors, so new record shapes never need new code.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .exceptions import SchemaError

SCALAR_KINDS = frozenset({"String", "Int", "Float", "Boolean", "ID", "JSON", "DateTime"})

NODE_INTERFACE = "Node"


@dataclass(frozen=True)
class FieldSpec:
    """A declared field of an object type."""

    name: str
    kind: str = "String"
    required: bool = False
    many: bool = False
    immutable: bool = False
    unique: bool = False
    description: Optional[str] = None

    @property
    def is_reference(self) -> bool:
        return self.kind not in SCALAR_KINDS


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Immutable description of a declared object type.

    Attributes:
        name: Type name, unique across the schema
        fields: Ordered declared fields
        addressable: Whether records are addressable by identifier
        interfaces: Capability names implemented by the type (e.g. "Node")
        version_field: Optional field used for optimistic concurrency checks
    """

    name: str
    fields: tuple[FieldSpec, ...] = ()
    addressable: bool = True
    interfaces: frozenset[str] = frozenset({NODE_INTERFACE})
    version_field: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable for convenience, store tuples/frozensets.
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "interfaces", frozenset(self.interfaces))
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise SchemaError(f"Duplicate field names declared on {self.name}")

    def field_map(self) -> "OrderedDict[str, FieldSpec]":
        return OrderedDict((f.name, f) for f in self.fields)

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def domain_field_names(self, id_field_name: str = "id") -> list[str]:
        """Names of fields a caller may submit, excluding the identifier."""
        return [f.name for f in self.fields if f.name != id_field_name]

    def implements(self, interface: str) -> bool:
        return interface in self.interfaces


class TypeRegistry:
    """Ordered, name-unique collection of type descriptors."""

    def __init__(self, descriptors: Iterable[TypeDescriptor] = ()):
        self._types: "OrderedDict[str, TypeDescriptor]" = OrderedDict()
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        if descriptor.name in self._types:
            raise SchemaError(f"Type {descriptor.name} is already declared")
        self._types[descriptor.name] = descriptor
        return descriptor

    def get(self, name: str) -> Optional[TypeDescriptor]:
        return self._types.get(name)

    def resolve(self, name: str) -> TypeDescriptor:
        descriptor = self._types.get(name)
        if descriptor is None:
            raise SchemaError(f"Unknown type referenced: {name}")
        return descriptor

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def names(self) -> list[str]:
        return list(self._types.keys())

    def validate_references(self) -> None:
        """Check every reference field names a declared type."""
        for descriptor in self:
            for spec in descriptor.fields:
                if spec.is_reference and spec.kind not in self._types:
                    raise SchemaError(
                        f"{descriptor.name}.{spec.name} references unknown type {spec.kind}"
                    )
