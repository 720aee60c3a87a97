from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from uuid import UUID
from telehealth.clock import as_naive_utc
from telehealth.models.availability import AvailabilityStatus


class AvailabilityCreate(BaseModel):
    """Schema for declaring a slot. Admins must pass doctor_id; doctors default to themselves."""
    doctor_id: UUID | None = Field(None, description="Doctor ID (admins only)")
    start_time: datetime = Field(..., description="Slot start (inclusive)")
    end_time: datetime = Field(..., description="Slot end (exclusive)")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return as_naive_utc(value)


class AvailabilityResponse(BaseModel):
    """Schema for availability response."""
    id: UUID
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    status: AvailabilityStatus
    created_at: datetime

    class Config:
        from_attributes = True
