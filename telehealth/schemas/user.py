from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from uuid import UUID
from telehealth.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema."""
    email: str = Field(..., min_length=3, max_length=255, description="User email")
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: UserRole = Field(UserRole.PATIENT, description="User role")
    specialty: str | None = Field(None, max_length=100, description="Doctor specialty")
    hospital_id: UUID | None = Field(None, description="Hospital the doctor works at")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if "@" not in normalized:
            raise ValueError("Invalid email address.")
        return normalized


class UserCreate(UserBase):
    """Schema for creating a user."""
    push_token: str | None = Field(None, max_length=255)


class DoctorUpdate(BaseModel):
    """Partial update of a doctor profile."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    specialty: str | None = Field(None, min_length=1, max_length=100)
    hospital_id: UUID | None = None


class UserResponse(UserBase):
    """Schema for user response."""
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DoctorSummary(BaseModel):
    """Public view of a doctor."""
    id: UUID
    first_name: str | None
    last_name: str | None
    specialty: str | None
    hospital_id: UUID | None = None

    class Config:
        from_attributes = True
