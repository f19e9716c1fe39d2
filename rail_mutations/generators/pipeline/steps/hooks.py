"""
Hook notification step.

Runs last, only after a successful write, and sees the formatted result
built from the persisted record. It never fails the mutation.
"""

import logging

from ..base import MutationStep
from ..context import MutationContext
from ....hooks.dispatcher import enqueue_hooks

logger = logging.getLogger(__name__)


class HookNotificationStep(MutationStep):
    """Spawn ``after<Operation>`` hooks as detached tasks."""

    order = 80
    name = "hook_notification"

    def __init__(self, enqueue=None):
        self.enqueue = enqueue

    def should_run(self, ctx: MutationContext) -> bool:
        return ctx.result is not None

    async def execute(self, ctx: MutationContext) -> MutationContext:
        try:
            enqueue = self.enqueue or enqueue_hooks
            ctx.extra["hook_tasks"] = enqueue(
                ctx.store, ctx.hooks, ctx.type_name, ctx.event_name, ctx.result
            )
        except Exception:
            logger.warning(
                "Failed to enqueue %s hooks for %s", ctx.event_name, ctx.type_name, exc_info=True
            )
        return ctx
