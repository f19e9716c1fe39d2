"""
Post-mutation hook dispatch.

Hooks are fire-and-forget. ``enqueue_hooks`` spawns one ``DetachedTask`` per
endpoint and returns immediately; a failing hook is logged as a ``HookError``
and never reaches the caller of the mutation.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
import random
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional, Union

import requests
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from ..core.exceptions import HookError
from ..core.settings import HookSettings
from .registry import HookEndpoint, HookRegistry

logger = logging.getLogger(__name__)

_EXECUTOR: Optional[ThreadPoolExecutor] = None
_EXECUTOR_LOCK = threading.Lock()


class DetachedTask:
    """
    A hook delivery running independently of the mutation that spawned it.

    Wraps a thread future or an asyncio task. Failures are logged when the
    task finishes; nobody awaits it.
    """

    _live: set["DetachedTask"] = set()

    def __init__(self, name: str, handle: Union[Future, "asyncio.Task[Any]"]):
        self.name = name
        self.handle = handle
        # Keep a strong reference so asyncio tasks are not collected mid-flight.
        DetachedTask._live.add(self)
        handle.add_done_callback(self._on_done)

    def _on_done(self, handle: Any) -> None:
        DetachedTask._live.discard(self)
        if handle.cancelled():
            logger.warning("Hook '%s' was cancelled", self.name)
            return
        exc = handle.exception()
        if exc is not None:
            logger.warning(
                "Hook '%s' failed: %s",
                self.name,
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    def done(self) -> bool:
        return self.handle.done()


def enqueue_hooks(
    store: Any,
    registry: Optional[HookRegistry],
    type_name: str,
    event: str,
    result: dict[str, Any],
) -> list[DetachedTask]:
    """
    Schedule every hook registered for ``(type_name, event)``.

    Never raises: scheduling errors are logged and swallowed.
    """
    if not registry:
        return []
    settings = registry.settings
    if not settings.enabled:
        return []

    tasks: list[DetachedTask] = []
    try:
        endpoints = registry.get_hooks(type_name, event)
        if not endpoints:
            return tasks
        payload = build_payload(type_name, event, result)
        for endpoint in endpoints:
            tasks.append(_spawn(store, endpoint, payload, settings))
    except Exception as exc:
        error = HookError(f"Failed to enqueue {event} hooks for {type_name}: {exc}")
        logger.warning(str(error), exc_info=True)
    return tasks


def build_payload(type_name: str, event: str, result: dict[str, Any]) -> dict[str, Any]:
    return {
        "event_id": uuid.uuid4().hex,
        "event_type": event,
        "type": type_name,
        "timestamp": timezone.now().isoformat(),
        "data": result,
    }


def _spawn(
    store: Any, endpoint: HookEndpoint, payload: dict[str, Any], settings: HookSettings
) -> DetachedTask:
    backend = (settings.async_backend or "thread").lower()
    name = f"{payload['type']}.{payload['event_type']}:{endpoint.name}"

    if backend == "asyncio":
        loop = asyncio.get_running_loop()
        handle = loop.run_in_executor(
            _get_executor(settings), deliver, store, endpoint, payload, settings
        )
        return DetachedTask(name, asyncio.ensure_future(handle))

    if backend != "thread":
        raise HookError(f"Unknown hook backend: {settings.async_backend}")

    return DetachedTask(
        name, _get_executor(settings).submit(deliver, store, endpoint, payload, settings)
    )


def _get_executor(settings: HookSettings) -> ThreadPoolExecutor:
    global _EXECUTOR
    if _EXECUTOR is not None:
        return _EXECUTOR
    with _EXECUTOR_LOCK:
        if _EXECUTOR is None:
            _EXECUTOR = ThreadPoolExecutor(
                max_workers=settings.max_workers or 1, thread_name_prefix="rail-hooks"
            )
    return _EXECUTOR


def deliver(
    store: Any, endpoint: HookEndpoint, payload: dict[str, Any], settings: HookSettings
) -> None:
    """Deliver one payload to one endpoint; raises ``HookError`` on final failure."""
    if endpoint.handler is not None:
        try:
            endpoint.handler(store, payload)
        except Exception as exc:
            raise HookError(f"Hook handler '{endpoint.name}' failed: {exc}") from exc
        return

    payload_json = encode_payload(payload)
    headers = build_headers(endpoint, payload, payload_json, settings)
    timeout = endpoint.timeout_seconds or settings.timeout_seconds
    max_attempts = max(1, settings.max_retries + 1)

    for attempt in range(1, max_attempts + 1):
        try:
            response = requests.post(
                endpoint.url, data=payload_json, headers=headers, timeout=timeout
            )
        except requests.RequestException as exc:
            if attempt < max_attempts:
                _sleep_before_retry(attempt, settings)
                continue
            raise HookError(
                f"Hook '{endpoint.name}' failed after {attempt} attempts: {exc}"
            ) from exc

        if response.ok:
            return
        if response.status_code in settings.retry_statuses and attempt < max_attempts:
            _sleep_before_retry(attempt, settings)
            continue
        raise HookError(f"Hook '{endpoint.name}' failed (status {response.status_code})")


def encode_payload(payload: dict[str, Any]) -> str:
    return json.dumps(payload, cls=DjangoJSONEncoder)


def build_headers(
    endpoint: HookEndpoint,
    payload: dict[str, Any],
    payload_json: str,
    settings: HookSettings,
) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    headers.update(endpoint.headers)
    if settings.event_header and payload.get("event_type"):
        headers[settings.event_header] = str(payload["event_type"])
    if settings.id_header and payload.get("event_id"):
        headers[settings.id_header] = str(payload["event_id"])
    secret = endpoint.signing_secret or settings.signing_secret
    if secret:
        headers[settings.signing_header] = sign_payload(
            secret, payload_json, settings.signature_prefix
        )
    return headers


def sign_payload(secret: str, payload_json: str, prefix: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"), payload_json.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"{prefix}{digest}"


def _sleep_before_retry(attempt: int, settings: HookSettings) -> None:
    delay = settings.retry_backoff_seconds * (settings.retry_backoff_factor ** (attempt - 1))
    delay += random.uniform(0, 0.1 * delay) if delay else 0
    if delay > 0:
        time.sleep(delay)
