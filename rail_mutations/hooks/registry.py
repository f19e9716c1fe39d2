"""Hook registry: which endpoints are notified for which type and event."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from django.utils.module_loading import import_string

from ..core.settings import HookSettings

logger = logging.getLogger(__name__)

EVENTS = ("afterCreate", "afterUpdate", "afterReplace", "afterDelete")

WILDCARD = "*"


@dataclass(frozen=True)
class HookEndpoint:
    """
    A single hook target.

    Either ``url`` (delivered by HTTP POST) or ``handler`` (an in-process
    callable ``handler(store, payload)``) must be set.
    """

    name: str
    url: Optional[str] = None
    handler: Optional[Callable[..., Any]] = None
    headers: dict[str, str] = field(default_factory=dict)
    timeout_seconds: Optional[int] = None
    signing_secret: Optional[str] = None

    def __post_init__(self):
        if not self.url and self.handler is None:
            raise ValueError(f"Hook '{self.name}' needs a url or a handler")


class HookRegistry:
    """Maps ``(type_name, event)`` to hook endpoints; ``"*"`` matches any type."""

    def __init__(self, settings: Optional[HookSettings] = None):
        self.settings = settings or HookSettings()
        self._hooks: dict[tuple[str, str], list[HookEndpoint]] = {}

    @classmethod
    def from_settings(cls, settings: Optional[HookSettings] = None) -> "HookRegistry":
        settings = settings or HookSettings.from_settings()
        registry = cls(settings)
        for type_name, events in (settings.hooks or {}).items():
            if not isinstance(events, dict):
                continue
            for event, entries in events.items():
                for index, entry in enumerate(_as_list(entries), start=1):
                    endpoint = _build_endpoint(type_name, event, index, entry)
                    if endpoint is not None:
                        registry.register(type_name, event, endpoint)
        return registry

    def register(self, type_name: str, event: str, endpoint: HookEndpoint) -> "HookRegistry":
        if event not in EVENTS:
            raise ValueError(f"Unknown hook event: {event}")
        self._hooks.setdefault((type_name, event), []).append(endpoint)
        return self

    def get_hooks(self, type_name: str, event: str) -> list[HookEndpoint]:
        return [
            *self._hooks.get((type_name, event), []),
            *self._hooks.get((WILDCARD, event), []),
        ]

    def __bool__(self) -> bool:
        return bool(self._hooks)


def _as_list(value: Any) -> Iterable[Any]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return value
    return [value]


def _build_endpoint(type_name: str, event: str, index: int, entry: Any) -> Optional[HookEndpoint]:
    name = f"{type_name}.{event}.{index}"
    if isinstance(entry, str):
        return HookEndpoint(name=name, url=entry)
    if not isinstance(entry, dict):
        logger.warning("Ignoring malformed hook entry for %s", name)
        return None
    handler = entry.get("handler")
    if isinstance(handler, str):
        handler = import_string(handler)
    url = entry.get("url")
    if not url and handler is None:
        logger.warning("Hook '%s' missing url; skipping", name)
        return None
    return HookEndpoint(
        name=str(entry.get("name") or name),
        url=url,
        handler=handler,
        headers={str(k): str(v) for k, v in (entry.get("headers") or {}).items()},
        timeout_seconds=entry.get("timeout_seconds"),
        signing_secret=entry.get("signing_secret"),
    )
