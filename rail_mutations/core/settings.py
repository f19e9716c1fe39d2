"""
Settings dataclasses for mutation generation and hook delivery.

Values are resolved from library defaults, then from the matching section of
``settings.RAIL_MUTATIONS`` when Django settings are configured.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings as django_settings

from ..defaults import LIBRARY_DEFAULTS, merge_settings


def _get_project_settings(section: str) -> dict[str, Any]:
    """Read one section of ``RAIL_MUTATIONS`` from Django settings."""
    if not django_settings.configured:
        return {}
    rail_settings = getattr(django_settings, "RAIL_MUTATIONS", None) or {}
    if not isinstance(rail_settings, dict):
        return {}
    section_settings = rail_settings.get(section) or {}
    return section_settings if isinstance(section_settings, dict) else {}


def _load_section(section: str, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    defaults = LIBRARY_DEFAULTS.get(section, {})
    return merge_settings(defaults, _get_project_settings(section), overrides or {})


@dataclass
class MutationSettings:
    """Settings for controlling mutation generation and the collaborators it uses."""

    generate_create: bool = True
    generate_update: bool = True
    generate_replace: bool = True
    generate_delete: bool = True
    default_permission: str = "allow"
    permission_rules: Dict[str, List[str]] = field(default_factory=dict)
    validator_path: Optional[str] = None
    store_path: Optional[str] = None
    hook_registry_path: Optional[str] = None
    id_field_name: str = "id"
    correlation_field_name: str = "client_mutation_id"

    @classmethod
    def from_settings(cls, **overrides: Any) -> "MutationSettings":
        merged = _load_section("mutation_settings", overrides)
        valid_fields = set(cls.__dataclass_fields__.keys())
        return cls(**{k: v for k, v in merged.items() if k in valid_fields})

    def is_enabled(self, operation: str) -> bool:
        return bool(getattr(self, f"generate_{operation}", False))


@dataclass
class HookSettings:
    """Settings for post-mutation hook delivery."""

    enabled: bool = True
    hooks: Dict[str, Dict[str, List[Any]]] = field(default_factory=dict)
    async_backend: str = "thread"
    max_workers: int = 4
    timeout_seconds: int = 5
    signing_secret: Optional[str] = None
    signing_header: str = "X-Rail-Signature"
    signature_prefix: str = "sha256="
    event_header: str = "X-Rail-Event"
    id_header: str = "X-Rail-Event-Id"
    max_retries: int = 3
    retry_backoff_seconds: float = 2.0
    retry_backoff_factor: float = 2.0
    retry_statuses: List[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])

    @classmethod
    def from_settings(cls, **overrides: Any) -> "HookSettings":
        merged = _load_section("hook_settings", overrides)
        valid_fields = set(cls.__dataclass_fields__.keys())
        return cls(**{k: v for k, v in merged.items() if k in valid_fields})
