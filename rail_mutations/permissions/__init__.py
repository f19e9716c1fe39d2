"""Permission gate consulted before any mutation is validated or persisted."""

from .gate import PermissionGate, PermissionResult, allow_all, require_authenticated

__all__ = ["PermissionGate", "PermissionResult", "allow_all", "require_authenticated"]
