"""
Identifier decoding and instance lookup steps.

Decoding never touches the store's read path; lookup performs exactly one
read and fails with ``NotFound`` when the record is absent.
"""

from ..base import OperationFilteredStep
from ..context import MutationContext
from ....core.exceptions import InvalidIdentifier, NotFound
from ....core.identifiers import decode_id_for_type, to_display_id

ADDRESSING_OPERATIONS = ("update", "replace", "delete")


class IdentifierDecodeStep(OperationFilteredStep):
    """
    Validate and decode the submitted id.

    The id must decode and must name the mutated type.
    """

    order = 10
    name = "decode_id"
    allowed_operations = ADDRESSING_OPERATIONS

    async def execute(self, ctx: MutationContext) -> MutationContext:
        if ctx.raw_id in (None, ""):
            raise InvalidIdentifier("ID is required", type_name=ctx.type_name)
        if ctx.store is not None and not ctx.store.is_valid_id(ctx.type_name, ctx.raw_id):
            raise InvalidIdentifier(f"Invalid ID for type {ctx.type_name}", type_name=ctx.type_name)
        ctx.identifier = decode_id_for_type(ctx.raw_id, ctx.type_name)
        return ctx


class InstanceLookupStep(OperationFilteredStep):
    """Fetch the existing record for the decoded identifier."""

    order = 20
    name = "instance_lookup"
    allowed_operations = ADDRESSING_OPERATIONS

    async def execute(self, ctx: MutationContext) -> MutationContext:
        existing = await ctx.store.get_by_id(ctx.type_name, ctx.identifier)
        if existing is None:
            raise NotFound(ctx.type_name, to_display_id(ctx.identifier))
        ctx.existing = existing
        return ctx
