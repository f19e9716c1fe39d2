"""Result formatting step."""

from ..base import MutationStep
from ..context import MutationContext
from ..formatting import format_mutation_result


class FormatResultStep(MutationStep):
    """Wrap the persisted record and the correlation token into the result envelope."""

    order = 70
    name = "format_result"

    async def execute(self, ctx: MutationContext) -> MutationContext:
        ctx.result = format_mutation_result(
            ctx.client_mutation_id, ctx.type_name, ctx.record, ctx.correlation_field
        )
        return ctx
