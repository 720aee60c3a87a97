from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from telehealth.models.notification import NotificationStatus


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    id: UUID
    recipient_id: UUID
    title: str
    body: str
    notification_type: str
    status: NotificationStatus
    metadata: dict | None = Field(None, validation_alias="payload")
    read_at: datetime | None
    created_at: datetime

    class Config:
        from_attributes = True
