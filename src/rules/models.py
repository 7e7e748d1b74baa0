from pydantic import BaseModel, Field


class RemotePaths(BaseModel):
    popup: str = "popups"
    circular: str = "circulars"


class RemoteRules(BaseModel):
    base_url: str = "http://localhost/api"
    timeout_seconds: float = 10.0
    paths: RemotePaths = Field(default_factory=RemotePaths)


class PopupRules(BaseModel):
    mandatory_fields: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "text": ["title_text", "content_text"],
            "image": ["title_text", "image_url"],
            "video": ["title_text", "video_url"],
            "link": ["button_link"],
        }
    )
    status_machine: dict[str, list[str]] | None = None


class CircularRules(BaseModel):
    mandatory_fields: list[str] = Field(default_factory=lambda: ["title"])
    max_attachment_bytes: int = 5 * 1024 * 1024
    status_machine: dict[str, list[str]] | None = None


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    remote: RemoteRules = Field(default_factory=RemoteRules)
    popup: PopupRules = Field(default_factory=PopupRules)
    circular: CircularRules = Field(default_factory=CircularRules)
    ops: OpsRules = Field(default_factory=OpsRules)
