"""
Pipeline Builder - Builds mutation pipelines with configurable steps.

Provides a fluent interface for constructing the create, update, replace and
delete pipelines, and for injecting the permission gate, validator, store
and hook registry the steps consult.
"""

from typing import Any, List, Optional

from django.utils.module_loading import import_string

from .base import MutationPipeline, MutationStep
from .steps import (
    CandidateMergeStep,
    FormatResultStep,
    HookNotificationStep,
    IdentifierDecodeStep,
    InstanceLookupStep,
    PermissionStep,
    PersistStep,
    ValidationStep,
)
from ...core.settings import MutationSettings
from ...hooks.registry import HookRegistry
from ...permissions.gate import PermissionGate
from ...validation.validator import Validator

OPERATIONS = ("create", "update", "replace", "delete")


class PipelineBuilder:
    """
    Builds mutation pipelines with configurable steps.

    Collaborators given here are defaults; an execution context that carries
    its own ``store``, ``hooks``, ``permission_gate`` or ``validator`` wins.

    Example:
        builder = PipelineBuilder(settings, store=store)
        builder.add_step(MyCustomStep())

        pipeline = builder.build_update_pipeline()
        ctx = await pipeline.execute(MutationContext(...))
    """

    def __init__(
        self,
        settings: Optional[MutationSettings] = None,
        store: Any = None,
        hooks: Any = None,
        permission_gate: Any = None,
        validator: Any = None,
    ):
        self.settings = settings or MutationSettings.from_settings()
        self.store = store if store is not None else self._load(self.settings.store_path)
        if hooks is None:
            hooks = self._load(self.settings.hook_registry_path) or HookRegistry.from_settings()
        self.hooks = hooks
        self.permission_gate = (
            permission_gate
            if permission_gate is not None
            else PermissionGate.from_settings(self.settings)
        )
        self.validator = validator if validator is not None else Validator.from_settings(self.settings)
        self._custom_steps: List[MutationStep] = []
        self._skip_steps: List[str] = []

    @staticmethod
    def _load(path: Optional[str]) -> Any:
        """Instantiate the collaborator at a dotted path, if one is configured."""
        if not path:
            return None
        return import_string(path)()

    def add_step(self, step: MutationStep) -> "PipelineBuilder":
        """
        Add a custom step to every pipeline built afterwards.

        Args:
            step: MutationStep instance to add

        Returns:
            Self for method chaining
        """
        self._custom_steps.append(step)
        return self

    def skip_step(self, step_name: str) -> "PipelineBuilder":
        """
        Skip a step by name.

        Args:
            step_name: Name of the step to skip

        Returns:
            Self for method chaining
        """
        self._skip_steps.append(step_name)
        return self

    def _filter_steps(self, steps: List[MutationStep]) -> List[MutationStep]:
        if not self._skip_steps:
            return steps
        return [s for s in steps if s.name not in self._skip_steps]

    def _finish(self, steps: List[MutationStep]) -> MutationPipeline:
        return MutationPipeline(self._filter_steps([*steps, *self._custom_steps]))

    def build_create_pipeline(self) -> MutationPipeline:
        """Merge, authorize, validate against {}, insert, format, notify."""
        return self._finish(
            [
                CandidateMergeStep(),
                PermissionStep(),
                ValidationStep(),
                PersistStep(),
                FormatResultStep(),
                HookNotificationStep(),
            ]
        )

    def build_update_pipeline(self) -> MutationPipeline:
        """Decode, fetch, merge, authorize, validate, patch, format, notify."""
        return self._finish(
            [
                IdentifierDecodeStep(),
                InstanceLookupStep(),
                CandidateMergeStep(),
                PermissionStep(),
                ValidationStep(),
                PersistStep(),
                FormatResultStep(),
                HookNotificationStep(),
            ]
        )

    def build_replace_pipeline(self) -> MutationPipeline:
        """Same stages as update; the store replaces instead of patching."""
        return self.build_update_pipeline()

    def build_delete_pipeline(self) -> MutationPipeline:
        """Decode, fetch, authorize, remove, format, notify. No validation."""
        return self._finish(
            [
                IdentifierDecodeStep(),
                InstanceLookupStep(),
                CandidateMergeStep(),
                PermissionStep(),
                PersistStep(),
                FormatResultStep(),
                HookNotificationStep(),
            ]
        )

    def build_pipeline(self, operation: str) -> MutationPipeline:
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown mutation operation: {operation}")
        return getattr(self, f"build_{operation}_pipeline")()

    def build_custom_pipeline(self, steps: List[MutationStep]) -> MutationPipeline:
        return self._finish(list(steps))
