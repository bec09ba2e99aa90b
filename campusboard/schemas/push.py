from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

CleanupAction = Literal["clear-inactive", "clear-old", "clear-all", "mark-inactive"]


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1, max_length=255)
    auth: str = Field(..., min_length=1, max_length=255)


class PushSubscribeRequest(BaseModel):
    """The browser's ``PushSubscription.toJSON()`` shape."""

    endpoint: str = Field(..., min_length=1, max_length=1000)
    keys: PushKeys


class UnsubscribeRequest(BaseModel):
    endpoint: str = Field(..., min_length=1)


class BroadcastRequest(BaseModel):
    title: str = Field(..., max_length=255)
    body: str
    icon: str | None = None
    url: str | None = None
    tag: str | None = Field(None, max_length=100)
    require_interaction: bool = Field(False, alias="requireInteraction")
    admin_email: str | None = Field(None, alias="adminEmail")

    model_config = {"populate_by_name": True}

    @field_validator("title", "body")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title and body are required")
        return v


class TrackOpenRequest(BaseModel):
    # Ids arrive loosely typed from the service worker. Any value is accepted
    # here and push_tracking rejects what it cannot parse.
    notification_id: Any = Field(None, alias="notificationId")
    subscription_id: Any = Field(None, alias="subscriptionId")

    model_config = {"populate_by_name": True}


class CleanupRequest(BaseModel):
    action: CleanupAction
    confirm: bool = False
    dry_run: bool = Field(False, alias="dryRun")

    model_config = {"populate_by_name": True}


class DeleteNotificationsRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class NotificationResponse(BaseModel):
    id: int
    title: str
    body: str
    icon: str | None = None
    url: str | None = None
    tag: str | None = None
    require_interaction: bool
    sent_count: int
    success_count: int
    error_count: int
    open_count: int
    admin_email: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None

    model_config = {"from_attributes": True}


class DeliveryLogResponse(BaseModel):
    id: int
    notification_id: int
    subscription_id: int | None = None
    status: str
    error_message: str | None = None
    sent_at: datetime | None = None
    opened_at: datetime | None = None

    model_config = {"from_attributes": True}
