"""
Status inference models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import ContentStatus


@dataclass(frozen=True)
class FieldViolation:
    """A single missing or invalid field."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class StatusInference:
    """Result of inferring an item's status from its fields."""

    status: ContentStatus
    violations: list[FieldViolation] = field(default_factory=list)
    requested_status: ContentStatus | None = None

    @property
    def ready(self) -> bool:
        """True when every mandatory field is present."""
        return not self.violations

    @property
    def demoted(self) -> bool:
        """True when the requested status was overridden."""
        return self.requested_status is not None and self.requested_status != self.status

    @property
    def message(self) -> str:
        if not self.violations:
            return ""
        fields = ", ".join(v.field or v.code for v in self.violations)
        return f"Incomplete details: missing {fields}. Status forced to '{self.status}'."


class InvalidStatusError(ValueError):
    """Raised when a status is not part of the kind's status set."""

    def __init__(self, kind: str, status: str) -> None:
        self.kind = kind
        self.status = status
        super().__init__(f"'{status}' is not a valid {kind} status")
