"""
Base classes for the mutation pipeline.

Provides MutationStep abstract base class and MutationPipeline orchestrator.
Step ``order`` values are part of the contract: they fix the sequence
decode, fetch, merge, authorize, validate, persist, format, notify.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from .context import MutationContext

logger = logging.getLogger(__name__)


class MutationStep(ABC):
    """
    Base class for mutation pipeline steps.

    Each step performs one stage of the mutation. A failing step raises a
    ``MutationError``; the pipeline does not catch it, so later steps never
    run and no partial result is produced.

    Attributes:
        order: Integer determining step execution order (lower = earlier)
        name: String identifier for debugging and logging

    Example:
        class StampStep(MutationStep):
            order = 55
            name = "stamp"

            async def execute(self, ctx: MutationContext) -> MutationContext:
                ctx.extra["stamped"] = True
                return ctx
    """

    # Step ordering (lower = earlier in pipeline)
    order: int = 100

    # Step identifier for debugging/logging
    name: str = "base"

    @abstractmethod
    async def execute(self, ctx: MutationContext) -> MutationContext:
        """
        Execute this step.

        Args:
            ctx: Current mutation context

        Returns:
            Modified context (can be same instance)
        """

    def should_run(self, ctx: MutationContext) -> bool:
        """
        Check if this step should run.

        Override to conditionally skip steps.

        Args:
            ctx: Current mutation context

        Returns:
            True if step should execute, False to skip
        """
        return True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} order={self.order} name={self.name}>"


class MutationPipeline:
    """
    Executes an ordered sequence of mutation steps.

    The pipeline sorts steps by their order attribute and awaits them one at
    a time. Exceptions raised by a step propagate to the caller unchanged.

    Example:
        pipeline = MutationPipeline([
            IdentifierDecodeStep(),
            InstanceLookupStep(),
            CandidateMergeStep(),
            PermissionStep(),
            ValidationStep(),
            PersistStep(),
            FormatResultStep(),
            HookNotificationStep(),
        ])
        result_ctx = await pipeline.execute(initial_ctx)
    """

    def __init__(self, steps: List[MutationStep]):
        """
        Initialize pipeline with steps.

        Args:
            steps: List of MutationStep instances (will be sorted by order)
        """
        self.steps = sorted(steps, key=lambda s: s.order)

    async def execute(self, ctx: MutationContext) -> MutationContext:
        """
        Execute all steps in order.

        Args:
            ctx: Initial mutation context

        Returns:
            Final mutation context after all steps
        """
        for step in self.steps:
            if not step.should_run(ctx):
                continue
            logger.debug("%s %s: running %s", ctx.operation, ctx.type_name, step.name)
            try:
                ctx = await step.execute(ctx)
            except Exception as exc:
                logger.info(
                    "%s %s aborted at %s: %s", ctx.operation, ctx.type_name, step.name, exc
                )
                raise
            ctx.completed_steps.append(step.name)
        return ctx

    def get_step_names(self) -> List[str]:
        """
        Get ordered list of step names.

        Returns:
            List of step name strings
        """
        return [s.name for s in self.steps]

    def __repr__(self) -> str:
        step_names = self.get_step_names()
        return f"<MutationPipeline steps={step_names}>"


class ConditionalStep(MutationStep):
    """
    Wraps a step with a custom condition function.

    Useful for conditionally including steps without subclassing.

    Example:
        step = ConditionalStep(
            HookNotificationStep(),
            condition=lambda ctx: ctx.hooks is not None,
        )
    """

    def __init__(
        self,
        step: MutationStep,
        condition: Callable[[MutationContext], bool],
    ):
        self._step = step
        self._condition = condition
        self.order = step.order
        self.name = f"conditional:{step.name}"

    def should_run(self, ctx: MutationContext) -> bool:
        """Check both the wrapped step's condition and the custom one."""
        return self._step.should_run(ctx) and self._condition(ctx)

    async def execute(self, ctx: MutationContext) -> MutationContext:
        """Delegate execution to wrapped step."""
        return await self._step.execute(ctx)


class OperationFilteredStep(MutationStep):
    """
    A step that only runs for specific operations.

    Example:
        class CreateOnlyStep(OperationFilteredStep):
            allowed_operations = ("create",)
            name = "create_only"
    """

    # Override in subclass to filter operations
    allowed_operations: tuple = ("create", "update", "replace", "delete")

    def should_run(self, ctx: MutationContext) -> bool:
        """Check operation is in allowed list."""
        return super().should_run(ctx) and ctx.operation in self.allowed_operations
