from typing import Any

from pydantic import BaseModel

from src.domain.entities import CircularStatus, PopupStatus, PopupType


# --- Shared ---
class ViolationModel(BaseModel):
    code: str
    message: str
    field: str | None = None


class ItemResponse(BaseModel):
    item: dict[str, Any] | None = None
    violations: list[ViolationModel] = []
    message: str = ""


class ItemListResponse(BaseModel):
    items: list[dict[str, Any]]
    total: int


class ConflictResponse(BaseModel):
    decision_id: str
    existing_id: str
    existing_label: str = ""
    message: str


# --- Popups ---
class PopupFields(BaseModel):
    title_text: str | None = None
    content_text: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    button_text: str | None = None
    button_link: str | None = None
    display_rules: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class PopupCreateRequest(PopupFields):
    type: PopupType = "text"
    status: PopupStatus | None = None


class PopupUpdateRequest(PopupFields):
    type: PopupType | None = None
    status: PopupStatus | None = None


class PopupStatusRequest(BaseModel):
    status: PopupStatus


# --- Circulars ---
class AttachmentModel(BaseModel):
    name: str
    url: str
    type: str = ""
    size: int = 0


class CircularFields(BaseModel):
    link: str | None = None
    attachment: AttachmentModel | None = None
    content: str | None = None
    date: str | None = None


class CircularCreateRequest(CircularFields):
    title: str = ""
    status: CircularStatus | None = None


class CircularUpdateRequest(CircularFields):
    title: str | None = None
    status: CircularStatus | None = None


class CircularStatusRequest(BaseModel):
    status: CircularStatus
