import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import String, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from telehealth.database import Base


class AvailabilityStatus(str, Enum):
    """Availability slot status enum."""
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"


class Availability(Base):
    """A doctor-declared bookable interval [start_time, end_time)."""

    __tablename__ = "availability"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=AvailabilityStatus.AVAILABLE.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_availability_range"),
        Index("idx_availability_doctor_range", "doctor_id", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return f"<Availability {self.doctor_id} {self.start_time}-{self.end_time} {self.status}>"
