"""
Permission step.

Runs before validation and persistence: a denial leaves the store untouched.
"""

import logging

from ..base import MutationStep
from ..context import MutationContext
from ....core.exceptions import MutationError, PermissionDenied
from ....core.utils import maybe_await

logger = logging.getLogger(__name__)


class PermissionStep(MutationStep):
    """
    Ask the permission gate whether the candidate change is allowed.

    The gate may return None (allowed), a falsy value (denied) or raise.
    Unexpected exceptions from the gate deny the mutation.
    """

    order = 40
    name = "permission"

    async def execute(self, ctx: MutationContext) -> MutationContext:
        gate = ctx.permission_gate
        if gate is None:
            return ctx
        try:
            outcome = await maybe_await(
                gate.check(ctx.type_name, ctx.operation, ctx.candidate, ctx.execution_context)
            )
        except MutationError:
            raise
        except Exception as exc:
            logger.warning(
                "Permission gate failed for %s on %s", ctx.operation, ctx.type_name, exc_info=True
            )
            raise PermissionDenied(ctx.type_name, ctx.operation, str(exc)) from exc
        if outcome is not None and not outcome:
            raise PermissionDenied(
                ctx.type_name, ctx.operation, getattr(outcome, "reason", "") or ""
            )
        return ctx
