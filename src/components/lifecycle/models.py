"""
Lifecycle component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.components.exclusivity import ConflictPending
from src.components.inference import FieldViolation
from src.domain.entities import Circular, Popup


@dataclass(frozen=True)
class LifecycleError:
    """Operation-level error (not found, rejected transition, remote failure)."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class LifecycleOutput:
    """
    Output for create, update, set_status, permanent_delete and decisions.

    Exactly one of these holds:
    - success: the collaborator confirmed the write; `item` is the
      reconciled record (None after a permanent delete).
    - pending: an exclusivity conflict awaits confirm/cancel; nothing
      was written.
    - errors: the operation was rejected or the write failed; local
      state is unchanged.
    """

    item: Popup | Circular | None = None
    errors: list[LifecycleError] = field(default_factory=list)
    violations: list[FieldViolation] = field(default_factory=list)
    pending: ConflictPending | None = None
    message: str = ""
    success: bool = True

    @property
    def needs_decision(self) -> bool:
        return self.pending is not None

    @property
    def error_code(self) -> str:
        return self.errors[0].code if self.errors else ""


@dataclass(frozen=True)
class FetchOutput:
    """Output of fetch_all."""

    items: list[Popup | Circular] = field(default_factory=list)
    errors: list[LifecycleError] = field(default_factory=list)
    success: bool = True


class InvariantViolationError(Exception):
    """
    A write would leave a second active popup or an incomplete active item.

    Only reachable if a caller bypasses inference or the exclusivity
    protocol; the store refuses before contacting the collaborator.
    """

    def __init__(self, invariant: str, detail: str) -> None:
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"{invariant} violated: {detail}")
