from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from telehealth.schemas.user import DoctorSummary


class HospitalBase(BaseModel):
    """Base hospital schema."""
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=500)
    phone: str = Field(..., min_length=1, max_length=50)
    image: str | None = Field(None, max_length=500, description="Image URL")
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    about: str | None = None
    services: list[str] | None = Field(None, description="Offered services, e.g. ['cardiology']")
    contact_phone: str | None = Field(None, max_length=50)
    contact_email: str | None = Field(None, max_length=255)
    rating: float | None = Field(None, ge=0, le=5)


class HospitalCreate(HospitalBase):
    """Schema for registering a hospital."""
    pass


class HospitalUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""
    name: str | None = Field(None, min_length=1, max_length=200)
    address: str | None = Field(None, min_length=1, max_length=500)
    phone: str | None = Field(None, min_length=1, max_length=50)
    image: str | None = Field(None, max_length=500)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    about: str | None = None
    services: list[str] | None = None
    contact_phone: str | None = Field(None, max_length=50)
    contact_email: str | None = Field(None, max_length=255)
    rating: float | None = Field(None, ge=0, le=5)


class HospitalResponse(HospitalBase):
    """Schema for hospital response."""
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HospitalDetail(HospitalResponse):
    """A hospital with the doctors attached to it."""
    doctors: list[DoctorSummary] = []
