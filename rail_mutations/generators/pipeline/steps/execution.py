"""
Persist step.

The single write of the pipeline. Update sends only the input's domain
fields so the store applies its own patch semantics; the record it returns
is authoritative.
"""

import logging

from ..base import MutationStep
from ..context import MutationContext
from ....core.exceptions import MutationError, PersistenceError

logger = logging.getLogger(__name__)


class PersistStep(MutationStep):
    """Call the store write matching the operation."""

    order = 60
    name = "persist"

    async def execute(self, ctx: MutationContext) -> MutationContext:
        store = ctx.store
        type_name = ctx.type_name
        version_field = ctx.descriptor.version_field
        expected_version = (ctx.existing or {}).get(version_field) if version_field else None

        try:
            if ctx.operation == "create":
                record = await store.create(type_name, ctx.input_data, version_field=version_field)
            elif ctx.operation == "update":
                record = await store.update(
                    type_name,
                    ctx.identifier,
                    ctx.input_data,
                    expected_version=expected_version,
                    version_field=version_field,
                )
            elif ctx.operation == "replace":
                record = await store.replace(
                    type_name,
                    ctx.identifier,
                    ctx.input_data,
                    expected_version=expected_version,
                    version_field=version_field,
                )
            elif ctx.operation == "delete":
                record = await store.delete(type_name, ctx.identifier)
            else:
                raise PersistenceError(f"Unsupported operation: {ctx.operation}", type_name=type_name)
        except MutationError as exc:
            logger.warning("%s of %s failed: %s", ctx.operation, type_name, exc)
            raise
        except Exception as exc:
            logger.warning("%s of %s failed: %s", ctx.operation, type_name, exc, exc_info=True)
            raise PersistenceError(str(exc) or exc.__class__.__name__, type_name=type_name) from exc

        ctx.record = record
        return ctx
