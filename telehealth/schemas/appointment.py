from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from telehealth.models.appointment import AppointmentStatus, AppointmentType, ConsultationType


class AppointmentInitiate(BaseModel):
    """Schema for booking a slot."""
    doctor_id: UUID = Field(..., description="Doctor ID")
    availability_id: UUID = Field(..., description="Availability slot ID")
    type: AppointmentType = Field(..., description="IN_PERSON or VIRTUAL")
    consultation_type: ConsultationType | None = Field(
        None, description="VIDEO, AUDIO or TEXT (required for VIRTUAL)"
    )
    duration: int | None = Field(None, description="Minutes, VIRTUAL only (default 30)")


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""
    reason: str | None = Field(None, max_length=1000, description="Optional cancellation reason")


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    availability_id: UUID
    scheduled_at: datetime
    type: AppointmentType
    consultation_type: ConsultationType | None
    duration: int | None
    status: AppointmentStatus
    session_id: str | None
    cancellation_reason: str | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JoinResponse(BaseModel):
    """Session credentials handed out by the session gate."""
    appointment_id: UUID
    type: AppointmentType
    consultation_type: ConsultationType | None = None
    session_id: str | None = None
    token: str | None = None
    livekit_url: str | None = None
    expires_at: datetime | None = None
    message: str
