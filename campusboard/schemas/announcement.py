from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Category = Literal["general", "important", "academic", "event"]


class AnnouncementBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    category: Category = "general"
    is_pinned: bool = False

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        # The editor submits an empty paragraph when nothing was typed
        if v.strip() in ("", "<p><br></p>"):
            raise ValueError("Content is required")
        return v


class AnnouncementCreate(AnnouncementBase):
    send_push: bool = False


class AnnouncementUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1)
    category: Category | None = None
    is_pinned: bool | None = None


class AnnouncementResponse(AnnouncementBase):
    id: int
    author_email: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
