"""
Mutation factories.

Each factory turns a type descriptor into a ``MutationOperation`` whose
pipeline is built once, at schema-build time.
"""

from typing import Optional

import graphene

from .base import BasePipelineMutation, MutationOperation, as_graphene_mutation
from .create import create_mutation_factory
from .update import update_mutation_factory
from .replace import replace_mutation_factory
from .delete import delete_mutation_factory
from ..builder import PipelineBuilder
from ....core.descriptors import TypeDescriptor

FACTORIES = {
    "create": create_mutation_factory,
    "update": update_mutation_factory,
    "replace": replace_mutation_factory,
    "delete": delete_mutation_factory,
}


def build_mutation_operation(
    kind: str,
    descriptor: TypeDescriptor,
    pipeline_builder: PipelineBuilder,
    input_type: Optional[type[graphene.InputObjectType]] = None,
    payload_type: Optional[type[graphene.ObjectType]] = None,
) -> MutationOperation:
    """Build the operation of the given kind for ``descriptor``."""
    try:
        factory = FACTORIES[kind]
    except KeyError:
        raise ValueError(f"Unknown mutation operation: {kind}") from None
    return factory(
        descriptor,
        pipeline_builder,
        input_type=input_type,
        payload_type=payload_type,
    )


__all__ = [
    "BasePipelineMutation",
    "MutationOperation",
    "as_graphene_mutation",
    "build_mutation_operation",
    "create_mutation_factory",
    "update_mutation_factory",
    "replace_mutation_factory",
    "delete_mutation_factory",
]
