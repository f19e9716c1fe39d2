"""
Candidate merge step.

Builds the candidate object: the shape the record will have once the
mutation applies. Permission and validation steps evaluate the candidate,
never the raw input or the existing record alone.
"""

from typing import Any, Optional

from ..base import MutationStep
from ..context import MutationContext


def merge_candidate(existing: Optional[dict[str, Any]], input_data: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``input_data`` on ``existing`` into a new dict; input wins."""
    return {**(existing or {}), **input_data}


class CandidateMergeStep(MutationStep):
    """
    Compute the candidate for each operation.

    - create: the input itself
    - update: existing overlaid with the input
    - replace: the input plus the existing record's id
    - delete: the existing record
    """

    order = 30
    name = "candidate_merge"

    async def execute(self, ctx: MutationContext) -> MutationContext:
        if ctx.operation == "update":
            ctx.candidate = merge_candidate(ctx.existing, ctx.input_data)
        elif ctx.operation == "replace":
            ctx.candidate = {"id": ctx.existing.get("id"), **ctx.input_data}
        elif ctx.operation == "delete":
            ctx.candidate = dict(ctx.existing)
        else:
            ctx.candidate = dict(ctx.input_data)
        return ctx
