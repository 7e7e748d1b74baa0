"""
Exclusivity component - single-active-popup rule and its confirmation protocol.
"""

from .component import (
    ExclusivityCoordinator,
    PendingDecisions,
    active_conflicts,
    request_activate,
)
from .models import ActivationOutcome, ActivationRequest, ConflictPending, Resolved
from .ports import ActivationWriterPort

__all__ = [
    # Entry points
    "request_activate",
    "active_conflicts",
    # Coordinator
    "ExclusivityCoordinator",
    "PendingDecisions",
    # Models
    "ActivationOutcome",
    "ActivationRequest",
    "ConflictPending",
    "Resolved",
    # Ports
    "ActivationWriterPort",
]
