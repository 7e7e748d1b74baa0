"""
Exclusivity component models - the conflict/confirmation protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from src.domain.entities import Popup


@dataclass(frozen=True)
class Resolved:
    """Activation is safe; persist the candidate as active."""

    candidate: Popup


@dataclass(frozen=True)
class ConflictPending:
    """
    Another popup is already active.

    Nothing has been written. The caller must answer with confirm
    (deactivate the incumbent, activate the candidate) or cancel
    (save the candidate as inactive).
    """

    existing_id: str
    candidate: Popup
    existing_label: str = ""
    # The candidate as last confirmed when the conflict was raised (None if new)
    original: Popup | None = None
    decision_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def message(self) -> str:
        label = f" '{self.existing_label}'" if self.existing_label else ""
        return (
            f"There is already an active popup{label} (ID: {self.existing_id}). "
            "Do you want to deactivate the existing popup and make this one active?"
        )


ActivationRequest = Resolved | ConflictPending


@dataclass(frozen=True)
class ActivationOutcome:
    """Result of confirming or cancelling a pending conflict."""

    success: bool
    item: Popup | None = None
    code: str = ""
    message: str = ""
    deactivated_ids: list[str] = field(default_factory=list)
    cancelled: bool = False
