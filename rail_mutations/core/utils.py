"""
Small shared helpers.
"""

import inspect
from typing import Any, Mapping


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def context_lookup(context: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from an execution context that is either an object or a mapping."""
    if context is None:
        return default
    if isinstance(context, Mapping):
        return context.get(name, default)
    return getattr(context, name, default)
