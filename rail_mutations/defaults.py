"""
Default configuration for the rail-mutations library.

Every setting the library consumes has a default here. Projects override
individual keys through ``settings.RAIL_MUTATIONS``, keyed by section name.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "rail-mutations"


# --------------------------------------------------------------------------- #
# Library-wide defaults (grouped by feature area)
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    "mutation_settings": {
        "generate_create": True,
        "generate_update": True,
        "generate_replace": True,
        "generate_delete": True,
        "default_permission": "allow",
        "permission_rules": {},
        "validator_path": None,
        "store_path": None,
        "hook_registry_path": None,
        "id_field_name": "id",
        "correlation_field_name": "client_mutation_id",
    },
    "hook_settings": {
        "enabled": True,
        "hooks": {},
        "async_backend": "thread",
        "max_workers": 4,
        "timeout_seconds": 5,
        "signing_secret": None,
        "signing_header": "X-Rail-Signature",
        "signature_prefix": "sha256=",
        "event_header": "X-Rail-Event",
        "id_header": "X-Rail-Event-Id",
        "max_retries": 3,
        "retry_backoff_seconds": 2.0,
        "retry_backoff_factor": 2.0,
        "retry_statuses": [429, 500, 502, 503, 504],
    },
}


def merge_settings(*settings_dicts: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple settings dictionaries with deep merging for nested dicts.
    Later dictionaries override earlier ones.
    """
    result: dict[str, Any] = {}
    for settings_dict in settings_dicts:
        if not settings_dict:
            continue
        for key, value in settings_dict.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = merge_settings(result[key], value)
            else:
                result[key] = value
    return result
