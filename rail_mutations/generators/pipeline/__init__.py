"""
Mutation Pipeline Architecture.

Core Components:
- MutationContext: Carries state through the pipeline
- MutationStep: Abstract base for each pipeline step
- MutationPipeline: Orchestrates step execution
- PipelineBuilder: Builds pipelines with configurable steps

Usage:
    from rail_mutations.generators.pipeline import PipelineBuilder, MutationContext

    builder = PipelineBuilder(settings, store=store)
    pipeline = builder.build_update_pipeline()

    ctx = MutationContext(execution_context=request, descriptor=todo, operation="update", ...)
    result_ctx = await pipeline.execute(ctx)
"""

from .context import MutationContext
from .base import MutationStep, MutationPipeline, ConditionalStep, OperationFilteredStep
from .builder import PipelineBuilder
from .formatting import format_mutation_result

__all__ = [
    "MutationContext",
    "MutationStep",
    "MutationPipeline",
    "ConditionalStep",
    "OperationFilteredStep",
    "PipelineBuilder",
    "format_mutation_result",
]
