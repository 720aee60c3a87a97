from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID


class MessageCreate(BaseModel):
    """Schema for sending a chat message."""
    content: str = Field(..., description="Message text")


class MessageResponse(BaseModel):
    """Schema for message response."""
    id: UUID
    appointment_id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    sent_at: datetime
    read_at: datetime | None

    class Config:
        from_attributes = True
