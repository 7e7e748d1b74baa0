from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Enums / Literals ---
ContentKind = Literal["popup", "circular"]
PopupType = Literal["text", "image", "video", "link"]
PopupStatus = Literal["active", "inactive", "deleted"]
CircularStatus = Literal["active", "draft", "inactive"]
ContentStatus = Literal["active", "inactive", "deleted", "draft"]
ContentChoice = Literal["link", "attachment", "none"]

POPUP_STATUSES: tuple[PopupStatus, ...] = ("active", "inactive", "deleted")
CIRCULAR_STATUSES: tuple[CircularStatus, ...] = ("active", "draft", "inactive")

# Status an item falls back to when its mandatory fields are incomplete.
NOT_READY_STATUS: dict[ContentKind, ContentStatus] = {
    "popup": "inactive",
    "circular": "draft",
}

# Status from which permanent deletion is allowed.
REMOVABLE_STATUS: dict[ContentKind, ContentStatus] = {
    "popup": "deleted",
    "circular": "inactive",
}


def statuses_for(kind: ContentKind) -> tuple[str, ...]:
    return POPUP_STATUSES if kind == "popup" else CIRCULAR_STATUSES


def is_blank(value: Any) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class _RemoteRecord(BaseModel):
    # Ids are opaque; numeric ids from the collaborator are kept as strings.
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# --- Popup ---


class Popup(_RemoteRecord):
    kind: Literal["popup"] = "popup"
    type: PopupType = "text"
    title_text: str | None = None
    content_text: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    button_text: str | None = None
    button_link: str | None = None
    display_rules: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: PopupStatus = "inactive"
    created_by: str | None = None
    updated_by: str | None = None

    @property
    def label(self) -> str:
        return self.title_text or self.button_link or f"popup {self.id}"


# --- Circular ---


class Attachment(BaseModel):
    name: str
    url: str
    type: str = ""
    size: int = 0


class Circular(_RemoteRecord):
    kind: Literal["circular"] = "circular"
    title: str = ""
    link: str | None = None
    attachment: Attachment | None = None
    content: str | None = None
    date: str | None = None
    status: CircularStatus = "draft"

    @model_validator(mode="after")
    def _link_or_attachment(self) -> "Circular":
        if not is_blank(self.link) and self.attachment is not None:
            raise ValueError("A circular cannot carry both a link and an attachment")
        return self

    @property
    def label(self) -> str:
        return self.title or f"circular {self.id}"

    @property
    def content_choice(self) -> ContentChoice:
        if not is_blank(self.link):
            return "link"
        if self.attachment is not None:
            return "attachment"
        return "none"

    def with_link(self, link: str) -> "Circular":
        """Return a copy pointing at `link`; any attachment is dropped."""
        return self.model_copy(update={"link": link, "attachment": None})

    def with_attachment(self, attachment: Attachment) -> "Circular":
        """Return a copy carrying `attachment`; any link is dropped."""
        return self.model_copy(update={"link": None, "attachment": attachment})

    def without_content(self) -> "Circular":
        return self.model_copy(update={"link": None, "attachment": None})


ContentItem = Annotated[Popup | Circular, Field(discriminator="kind")]


def item_from_record(kind: ContentKind, record: dict[str, Any]) -> Popup | Circular:
    """Build a typed item from a collaborator record."""
    data = dict(record)
    data["kind"] = kind
    if kind == "popup":
        return Popup.model_validate(data)
    if data.get("link") == "":
        data["link"] = None
    return Circular.model_validate(data)


def merge_circular_content(
    current: dict[str, Any], updates: dict[str, Any]
) -> dict[str, Any]:
    """
    Apply link/attachment updates so that at most one of them survives.

    Setting a link clears the attachment and vice versa. Supplying both in
    the same update is rejected.
    """
    new_link = updates.get("link")
    new_attachment = updates.get("attachment")
    if not is_blank(new_link) and new_attachment is not None:
        raise ValueError("Provide either a link or an attachment, not both")

    merged = {**current, **updates}
    if not is_blank(new_link):
        merged["attachment"] = None
    elif new_attachment is not None:
        merged["link"] = None
    if is_blank(merged.get("link")):
        merged["link"] = None
    return merged
