"""
Create mutation factory.
"""

from typing import Optional

import graphene

from .base import MutationOperation
from ..builder import PipelineBuilder
from ....core.descriptors import TypeDescriptor


def create_mutation_factory(
    descriptor: TypeDescriptor,
    pipeline_builder: PipelineBuilder,
    input_type: Optional[type[graphene.InputObjectType]] = None,
    payload_type: Optional[type[graphene.ObjectType]] = None,
) -> MutationOperation:
    """Build the create operation; creates are never addressed by id."""
    return MutationOperation(
        kind="create",
        descriptor=descriptor,
        pipeline=pipeline_builder.build_create_pipeline(),
        pipeline_builder=pipeline_builder,
        input_type=input_type,
        payload_type=payload_type,
        description=f"Creates a new `{descriptor.name}` object.",
    )
