"""
Permission gate.

Rules are registered per type and operation and evaluated against the
candidate object: the shape the record will have once the mutation applies.
"""

import logging
from typing import Any, Callable, Optional

from django.utils.module_loading import import_string

from ..core.exceptions import PermissionDenied
from ..core.settings import MutationSettings
from ..core.utils import context_lookup, maybe_await

logger = logging.getLogger(__name__)

WILDCARD = "*"

PermissionRule = Callable[[Any, dict[str, Any]], Any]


class PermissionResult:
    """Outcome of a permission rule."""

    def __init__(self, allowed: bool, reason: str = ""):
        self.allowed = allowed
        self.reason = reason

    def __bool__(self):
        return self.allowed


class PermissionGate:
    """
    Evaluates permission rules for mutations.

    A rule is ``rule(context, candidate)`` returning a bool, a
    ``PermissionResult`` or an awaitable of either; it may also raise
    ``PermissionDenied`` directly. Rules registered for ``(type, op)``,
    ``(type, "*")`` and ``("*", op)`` all apply and must all allow. When no
    rule applies, ``default_permission`` decides.
    """

    def __init__(self, default_permission: str = "allow"):
        if default_permission not in ("allow", "deny"):
            raise ValueError(f"Unknown default permission: {default_permission}")
        self.default_permission = default_permission
        self._rules: dict[tuple[str, str], list[PermissionRule]] = {}

    @classmethod
    def from_settings(cls, settings: Optional[MutationSettings] = None) -> "PermissionGate":
        settings = settings or MutationSettings.from_settings()
        gate = cls(default_permission=settings.default_permission)
        for key, paths in (settings.permission_rules or {}).items():
            type_name, _, operation = str(key).partition(".")
            if isinstance(paths, str):
                paths = [paths]
            for path in paths:
                gate.register(type_name or WILDCARD, operation or WILDCARD, import_string(path))
        return gate

    def register(self, type_name: str, operation: str, rule: PermissionRule) -> "PermissionGate":
        self._rules.setdefault((type_name, operation), []).append(rule)
        logger.debug("Registered permission rule for %s.%s", type_name, operation)
        return self

    def rule(self, type_name: str = WILDCARD, operation: str = WILDCARD):
        """Decorator form of ``register``."""

        def decorator(func: PermissionRule) -> PermissionRule:
            self.register(type_name, operation, func)
            return func

        return decorator

    def get_rules(self, type_name: str, operation: str) -> list[PermissionRule]:
        keys = [
            (type_name, operation),
            (type_name, WILDCARD),
            (WILDCARD, operation),
            (WILDCARD, WILDCARD),
        ]
        rules: list[PermissionRule] = []
        for key in keys:
            rules.extend(self._rules.get(key, []))
        return rules

    async def check(
        self,
        type_name: str,
        operation: str,
        candidate: dict[str, Any],
        context: Any,
    ) -> None:
        """
        Raise ``PermissionDenied`` unless every applicable rule allows.

        Args:
            type_name: Name of the mutated type
            operation: "create", "update", "replace" or "delete"
            candidate: The post-mutation object shape
            context: Execution context of the caller
        """
        rules = self.get_rules(type_name, operation)
        if not rules:
            if self.default_permission == "deny":
                raise PermissionDenied(type_name, operation, "no rule grants access")
            return

        for rule in rules:
            outcome = await maybe_await(rule(context, candidate))
            if not outcome:
                reason = getattr(outcome, "reason", "") or ""
                user = context_lookup(context, "user")
                logger.info(
                    "Permission denied for %s on %s (user=%s): %s",
                    operation,
                    type_name,
                    getattr(user, "pk", user),
                    reason or getattr(rule, "__name__", repr(rule)),
                )
                raise PermissionDenied(type_name, operation, reason)


def allow_all(context: Any, candidate: dict[str, Any]) -> bool:
    return True


def require_authenticated(context: Any, candidate: dict[str, Any]) -> PermissionResult:
    """Rule allowing only authenticated callers."""
    user = context_lookup(context, "user")
    if user is None or not getattr(user, "is_authenticated", False):
        return PermissionResult(False, "authentication required")
    return PermissionResult(True)
