"""
Update mutation factory.
"""

from typing import Optional

import graphene

from .base import MutationOperation
from ..builder import PipelineBuilder
from ....core.descriptors import TypeDescriptor


def update_mutation_factory(
    descriptor: TypeDescriptor,
    pipeline_builder: PipelineBuilder,
    input_type: Optional[type[graphene.InputObjectType]] = None,
    payload_type: Optional[type[graphene.ObjectType]] = None,
) -> MutationOperation:
    """
    Build the update operation for a declared type.

    Args:
        descriptor: Descriptor of the type
        pipeline_builder: Builder providing the pipeline and default collaborators
        input_type: Input object type for the graphene binding
        payload_type: Object type of the returned record

    Returns:
        MutationOperation named ``update<TypeName>``
    """
    return MutationOperation(
        kind="update",
        descriptor=descriptor,
        pipeline=pipeline_builder.build_update_pipeline(),
        pipeline_builder=pipeline_builder,
        input_type=input_type,
        payload_type=payload_type,
        description=(
            f"Updates the given `{descriptor.name}` object. "
            "The given fields are merged to the existing object."
        ),
    )
