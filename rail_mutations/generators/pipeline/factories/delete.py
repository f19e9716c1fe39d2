"""
Delete mutation factory.
"""

from typing import Optional

import graphene

from .base import MutationOperation
from ..builder import PipelineBuilder
from ....core.descriptors import TypeDescriptor


def delete_mutation_factory(
    descriptor: TypeDescriptor,
    pipeline_builder: PipelineBuilder,
    input_type: Optional[type[graphene.InputObjectType]] = None,
    payload_type: Optional[type[graphene.ObjectType]] = None,
) -> MutationOperation:
    """Build the delete operation. It takes an id and no domain fields."""
    return MutationOperation(
        kind="delete",
        descriptor=descriptor,
        pipeline=pipeline_builder.build_delete_pipeline(),
        pipeline_builder=pipeline_builder,
        input_type=input_type,
        payload_type=payload_type,
        description=f"Deletes the given `{descriptor.name}` object.",
    )
