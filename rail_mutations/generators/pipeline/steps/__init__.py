"""
Pipeline steps for mutation processing.

Steps run in a fixed order:
- Identifier decoding and instance lookup
- Candidate merge
- Permission check
- Validation
- Persistence
- Result formatting
- Hook notification
"""

from .lookup import IdentifierDecodeStep, InstanceLookupStep
from .merge import CandidateMergeStep, merge_candidate
from .permissions import PermissionStep
from .validation import ValidationStep
from .execution import PersistStep
from .result import FormatResultStep
from .hooks import HookNotificationStep

__all__ = [
    # Addressing
    "IdentifierDecodeStep",
    "InstanceLookupStep",
    # Candidate
    "CandidateMergeStep",
    "merge_candidate",
    # Checks
    "PermissionStep",
    "ValidationStep",
    # Write
    "PersistStep",
    # Result
    "FormatResultStep",
    "HookNotificationStep",
]
