"""
MutationContext - Carries state through the mutation pipeline.

The context is created at the start of a mutation invocation and passed
through each pipeline step. It is never shared between invocations.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

from ...core.utils import context_lookup
from .formatting import CORRELATION_KEY

if TYPE_CHECKING:
    from ...core.descriptors import TypeDescriptor
    from ...core.identifiers import Identifier

OPERATION_EVENTS = {
    "create": "afterCreate",
    "update": "afterUpdate",
    "replace": "afterReplace",
    "delete": "afterDelete",
}


@dataclass
class MutationContext:
    """
    Carries state through the mutation pipeline.

    Attributes:
        execution_context: Caller context (request, user, store, hooks)
        descriptor: Descriptor of the mutated type
        operation: "create", "update", "replace" or "delete"
        raw_input: Arguments as received (never modified)
        input_data: Domain fields of the input object only
        client_mutation_id: Correlation token, echoed back unchanged
        correlation_field: Result key the correlation token is echoed under
        raw_id: Identifier as submitted
        identifier: Decoded identifier
        existing: Record fetched before the write (update/replace/delete)
        candidate: Post-mutation shape used by permission and validation
        record: Authoritative record returned by the store
        result: Formatted mutation result
        store: Record store
        hooks: Hook registry
        permission_gate: Permission gate
        validator: Candidate validator
        completed_steps: Names of the steps that have run, in order
        extra: Step-specific scratch data
    """

    execution_context: Any
    descriptor: "TypeDescriptor"
    operation: str

    raw_input: dict[str, Any] = field(default_factory=dict)
    input_data: dict[str, Any] = field(default_factory=dict)
    client_mutation_id: Optional[str] = None
    correlation_field: str = CORRELATION_KEY

    raw_id: Any = None
    identifier: Optional["Identifier"] = None

    existing: Optional[dict[str, Any]] = None
    candidate: Optional[dict[str, Any]] = None
    record: Optional[dict[str, Any]] = None
    result: Optional[dict[str, Any]] = None

    store: Any = None
    hooks: Any = None
    permission_gate: Any = None
    validator: Any = None

    completed_steps: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def type_name(self) -> str:
        return self.descriptor.name

    @property
    def event_name(self) -> str:
        return OPERATION_EVENTS[self.operation]

    @property
    def user(self) -> Any:
        """Convenience accessor for the calling user."""
        return context_lookup(self.execution_context, "user")
