"""Post-mutation hooks."""

from .dispatcher import DetachedTask, build_payload, deliver, enqueue_hooks
from .registry import EVENTS, HookEndpoint, HookRegistry

__all__ = [
    "DetachedTask",
    "EVENTS",
    "HookEndpoint",
    "HookRegistry",
    "build_payload",
    "deliver",
    "enqueue_hooks",
]
