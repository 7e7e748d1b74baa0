"""
Inference component - derives an item's status from its fields.

Decides whether a submitted popup or circular qualifies for `active`
or must fall back to its not-ready state (`inactive` for popups,
`draft` for circulars). Pure and deterministic: no I/O, no clock.

Mandatory fields:
- popup text:  title_text + content_text
- popup image: title_text + image_url
- popup video: title_text + video_url
- popup link:  button_link
- circular:    title + (link or attachment)

Rules:
- Incomplete fields force the not-ready state, whatever was requested.
- requested_status=None promotes to `active` when ready.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import (
    NOT_READY_STATUS,
    ContentKind,
    ContentStatus,
    is_blank,
    statuses_for,
)
from src.rules.models import Rules

from .models import FieldViolation, InvalidStatusError, StatusInference

DEFAULT_POPUP_FIELDS: dict[str, tuple[str, ...]] = {
    "text": ("title_text", "content_text"),
    "image": ("title_text", "image_url"),
    "video": ("title_text", "video_url"),
    "link": ("button_link",),
}

DEFAULT_CIRCULAR_FIELDS: tuple[str, ...] = ("title",)

_LABELS = {
    "title_text": "Title Text",
    "content_text": "Content Text",
    "image_url": "Image URL",
    "video_url": "Video URL",
    "button_link": "Button Link",
    "title": "Title",
}


@dataclass(frozen=True)
class MandatoryFields:
    """Mandatory-field rule sets per kind."""

    popup: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_POPUP_FIELDS)
    )
    circular: tuple[str, ...] = DEFAULT_CIRCULAR_FIELDS

    @classmethod
    def from_rules(cls, rules: Rules) -> MandatoryFields:
        return cls(
            popup={k: tuple(v) for k, v in rules.popup.mandatory_fields.items()},
            circular=tuple(rules.circular.mandatory_fields),
        )

    def for_popup_type(self, popup_type: str) -> tuple[str, ...]:
        return self.popup.get(popup_type, self.popup.get("text", ()))


DEFAULT_MANDATORY = MandatoryFields()


def _missing(field_name: str, context: str) -> FieldViolation:
    label = _LABELS.get(field_name, field_name)
    return FieldViolation(
        code="missing_field",
        message=f"{label} is required for {context}",
        field=field_name,
    )


def popup_violations(
    fields: Mapping[str, Any],
    mandatory: MandatoryFields = DEFAULT_MANDATORY,
) -> list[FieldViolation]:
    popup_type = fields.get("type") or "text"
    context = f"{popup_type} popups"
    return [
        _missing(name, context)
        for name in mandatory.for_popup_type(popup_type)
        if is_blank(fields.get(name))
    ]


def circular_violations(
    fields: Mapping[str, Any],
    mandatory: MandatoryFields = DEFAULT_MANDATORY,
) -> list[FieldViolation]:
    violations = [
        _missing(name, "circulars")
        for name in mandatory.circular
        if is_blank(fields.get(name))
    ]
    if is_blank(fields.get("link")) and fields.get("attachment") is None:
        violations.append(
            FieldViolation(
                code="missing_link_or_attachment",
                message="A circular needs either a link or an attachment",
                field="link_or_attachment",
            )
        )
    return violations


def validate_fields(
    kind: ContentKind,
    fields: Mapping[str, Any],
    mandatory: MandatoryFields = DEFAULT_MANDATORY,
) -> list[FieldViolation]:
    """Return the mandatory-field violations for `kind` (empty if complete)."""
    if kind == "popup":
        return popup_violations(fields, mandatory)
    return circular_violations(fields, mandatory)


def infer_status(
    kind: ContentKind,
    fields: Mapping[str, Any],
    requested_status: ContentStatus | None = None,
    *,
    mandatory: MandatoryFields = DEFAULT_MANDATORY,
) -> StatusInference:
    """
    Infer the status an item may hold.

    Args:
        kind: "popup" or "circular".
        fields: The item's field values (missing keys count as empty).
        requested_status: Status the caller asked for; None means
            "active if ready".
        mandatory: Mandatory-field rule sets.

    Returns:
        StatusInference with the resolved status and any violations.

    Raises:
        InvalidStatusError: requested_status is not valid for the kind.
    """
    if requested_status is not None and requested_status not in statuses_for(kind):
        raise InvalidStatusError(kind, requested_status)

    violations = validate_fields(kind, fields, mandatory)
    not_ready = NOT_READY_STATUS[kind]

    if violations:
        return StatusInference(
            status=not_ready, violations=violations, requested_status=requested_status
        )

    status: ContentStatus = "active" if requested_status is None else requested_status
    return StatusInference(status=status, violations=[], requested_status=requested_status)
