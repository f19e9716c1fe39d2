"""
Validation step.

Validates the candidate against the type descriptor and the existing record.
"""

from django.core.exceptions import ValidationError as DjangoValidationError

from ..base import OperationFilteredStep
from ..context import MutationContext
from ....core.exceptions import ValidationError
from ....validation.validator import flatten_django_validation_error


class ValidationStep(OperationFilteredStep):
    """
    Run the validator on the candidate.

    Creates validate against an empty existing record. Delete has nothing
    new to validate.
    """

    order = 50
    name = "validation"
    allowed_operations = ("create", "update", "replace")

    async def execute(self, ctx: MutationContext) -> MutationContext:
        if ctx.validator is None:
            return ctx
        try:
            await ctx.validator.validate(
                ctx.store,
                ctx.execution_context,
                ctx.descriptor,
                ctx.candidate,
                ctx.existing or {},
                ctx.descriptor.interfaces,
            )
        except DjangoValidationError as exc:
            raise ValidationError(
                flatten_django_validation_error(exc), type_name=ctx.type_name
            ) from exc
        return ctx
