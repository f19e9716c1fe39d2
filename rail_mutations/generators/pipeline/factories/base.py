"""
Operation handle and graphene binding for pipeline mutations.

A ``MutationOperation`` is pure configuration until it is called: building
one never touches the store. Calling it runs the operation's pipeline once.
"""

import logging
from typing import Any, Optional

import graphene

from ..builder import PipelineBuilder
from ..context import MutationContext
from ..base import MutationPipeline
from ....core.descriptors import TypeDescriptor
from ....core.exceptions import (
    FieldViolation,
    InvalidIdentifier,
    MutationError,
    ValidationError,
    to_graphql_error,
)
from ....core.utils import context_lookup

logger = logging.getLogger(__name__)

ADDRESSING_KINDS = ("update", "replace", "delete")


class MutationOperation:
    """
    Callable mutation for one operation kind and one declared type.

    Invocation contract::

        await operation(
            {"client_mutation_id": token, "id": global_id, "<TypeName>": {...}},
            execution_context,
        )
        # -> {"client_mutation_id": token, "<TypeName>": record}

    ``id`` is required iff the operation addresses an existing record.
    """

    def __init__(
        self,
        kind: str,
        descriptor: TypeDescriptor,
        pipeline: MutationPipeline,
        pipeline_builder: PipelineBuilder,
        input_type: Optional[type[graphene.InputObjectType]] = None,
        payload_type: Optional[type[graphene.ObjectType]] = None,
        description: Optional[str] = None,
    ):
        self.kind = kind
        self.descriptor = descriptor
        self.pipeline = pipeline
        self.pipeline_builder = pipeline_builder
        self.input_type = input_type
        self.payload_type = payload_type
        self.description = description
        self._mutation_class: Optional[type[graphene.Mutation]] = None

    @property
    def name(self) -> str:
        return f"{self.kind}{self.descriptor.name}"

    @property
    def addresses_existing(self) -> bool:
        return self.kind in ADDRESSING_KINDS

    def _collaborator(self, execution_context: Any, name: str) -> Any:
        value = context_lookup(execution_context, name)
        if value is None:
            value = getattr(self.pipeline_builder, name, None)
        return value

    def build_context(self, args: dict[str, Any], execution_context: Any) -> MutationContext:
        settings = self.pipeline_builder.settings
        type_name = self.descriptor.name
        raw_id = args.get(settings.id_field_name)

        if not self.addresses_existing and raw_id is not None:
            raise InvalidIdentifier(
                f"{self.kind} of {type_name} does not accept an id", type_name=type_name
            )

        submitted = args.get(type_name)
        if submitted is None:
            if self.kind != "delete":
                raise ValidationError(
                    [FieldViolation(type_name, "This field is required.", "required")],
                    type_name=type_name,
                )
            submitted = {}

        reserved = {settings.id_field_name, settings.correlation_field_name}
        input_data = {k: v for k, v in dict(submitted).items() if k not in reserved}

        return MutationContext(
            execution_context=execution_context,
            descriptor=self.descriptor,
            operation=self.kind,
            raw_input=dict(args),
            input_data=input_data,
            client_mutation_id=args.get(settings.correlation_field_name),
            correlation_field=settings.correlation_field_name,
            raw_id=raw_id,
            store=self._collaborator(execution_context, "store"),
            hooks=self._collaborator(execution_context, "hooks"),
            permission_gate=self._collaborator(execution_context, "permission_gate"),
            validator=self._collaborator(execution_context, "validator"),
        )

    async def __call__(self, args: dict[str, Any], execution_context: Any = None) -> dict[str, Any]:
        ctx = self.build_context(args, execution_context)
        if ctx.store is None:
            raise MutationError(f"No store configured for {self.name}", type_name=self.descriptor.name)
        ctx = await self.pipeline.execute(ctx)
        return ctx.result

    def mutation_class(self) -> type[graphene.Mutation]:
        if self._mutation_class is None:
            self._mutation_class = as_graphene_mutation(self)
        return self._mutation_class

    def __repr__(self) -> str:
        return f"<MutationOperation {self.name} steps={self.pipeline.get_step_names()}>"


class BasePipelineMutation(graphene.Mutation):
    """
    Base graphene mutation bound to a ``MutationOperation``.

    Subclasses are generated by ``as_graphene_mutation``. The single
    ``input`` argument carries the domain fields together with ``id`` and
    ``client_mutation_id``; ``mutate`` unpacks it into the operation's
    argument contract.
    """

    operation: MutationOperation = None

    @classmethod
    async def mutate(cls, root, info, input=None):
        operation = cls.operation
        settings = operation.pipeline_builder.settings
        submitted = dict(input or {})
        args = {
            settings.correlation_field_name: submitted.pop(settings.correlation_field_name, None),
            operation.descriptor.name: submitted,
        }
        raw_id = submitted.pop(settings.id_field_name, None)
        if operation.addresses_existing:
            args[settings.id_field_name] = raw_id

        try:
            result = await operation(args, info.context)
        except MutationError as exc:
            raise to_graphql_error(exc) from exc

        return cls(**result)


def as_graphene_mutation(operation: MutationOperation) -> type[graphene.Mutation]:
    """Generate the graphene mutation class for an operation handle."""
    type_name = operation.descriptor.name
    title = operation.kind.title()
    settings = operation.pipeline_builder.settings

    class Arguments:
        input = graphene.NonNull(operation.input_type)

    class Meta:
        name = f"_{title}{type_name}Payload"
        description = operation.description

    attrs = {
        "Meta": Meta,
        "Arguments": Arguments,
        "__doc__": operation.description,
        settings.correlation_field_name: graphene.String(),
        type_name: graphene.Field(operation.payload_type),
    }
    mutation = type(f"{title}{type_name}", (BasePipelineMutation,), attrs)
    mutation.operation = operation
    return mutation
