"""User service - Business logic for users and the doctor directory."""

import logging
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from telehealth.exceptions import ConflictError, LinkedError, NotFoundError
from telehealth.models.appointment import Appointment, AppointmentStatus
from telehealth.models.availability import Availability, AvailabilityStatus
from telehealth.models.hospital import Hospital
from telehealth.models.user import User, UserRole
from telehealth.schemas.user import DoctorUpdate, UserCreate

logger = logging.getLogger(__name__)


class UserService:
    """Service class for user operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, user_data: UserCreate) -> User:
        """Create a new user."""
        if await self.get_user_by_email(user_data.email):
            raise ConflictError("User with this email already exists", email=user_data.email)
        if user_data.hospital_id:
            await self._require_hospital(user_data.hospital_id)

        fields = user_data.model_dump()
        fields["role"] = user_data.role.value
        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await self.db.get(User, user_id)

    async def get_user(self, user_id: UUID) -> User:
        """Get a user by ID or raise NotFoundError."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", user_id=str(user_id))
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_doctor(self, doctor_id: UUID) -> User:
        """Get a doctor by ID or raise NotFoundError."""
        user = await self.get_user_by_id(doctor_id)
        if user is None or user.role != UserRole.DOCTOR.value:
            raise NotFoundError("Doctor not found", doctor_id=str(doctor_id))
        return user

    async def list_doctors(
        self,
        specialty: str | None = None,
        hospital_id: UUID | None = None,
        name: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[User]:
        """List doctors; specialty and name are case-insensitive contains matches."""
        query = select(User).where(User.role == UserRole.DOCTOR.value)

        if specialty:
            query = query.where(User.specialty.ilike(f"%{specialty.strip()}%"))
        if hospital_id:
            query = query.where(User.hospital_id == hospital_id)
        if name:
            pattern = f"%{name.strip()}%"
            query = query.where(or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern)))

        query = query.order_by(User.last_name, User.first_name).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_doctor(self, doctor_id: UUID, doctor_data: DoctorUpdate) -> User:
        """Apply the profile fields that were sent."""
        doctor = await self.get_doctor(doctor_id)
        changes = doctor_data.model_dump(exclude_unset=True)

        if changes.get("hospital_id"):
            await self._require_hospital(changes["hospital_id"])

        for field, value in changes.items():
            setattr(doctor, field, value)

        await self.db.flush()
        await self.db.refresh(doctor)
        logger.info(f"Updated doctor {doctor_id}")
        return doctor

    async def delete_doctor(self, doctor_id: UUID) -> None:
        """Delete a doctor with no active appointments and no open slots."""
        doctor = await self.get_doctor(doctor_id)

        active = await self.db.scalar(
            select(func.count())
            .select_from(Appointment)
            .where(
                Appointment.doctor_id == doctor_id,
                Appointment.status.in_(
                    [AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value]
                ),
            )
        )
        if active:
            raise LinkedError(
                "Cannot delete doctor with active appointments",
                doctor_id=str(doctor_id),
                appointments=active,
            )

        open_slots = await self.db.scalar(
            select(func.count())
            .select_from(Availability)
            .where(
                Availability.doctor_id == doctor_id,
                Availability.status == AvailabilityStatus.AVAILABLE.value,
            )
        )
        if open_slots:
            raise LinkedError(
                "Cannot delete doctor with available slots",
                doctor_id=str(doctor_id),
                slots=open_slots,
            )

        await self.db.delete(doctor)
        await self.db.flush()
        logger.info(f"Deleted doctor {doctor_id}")

    async def _require_hospital(self, hospital_id: UUID) -> None:
        if await self.db.get(Hospital, hospital_id) is None:
            raise NotFoundError("Hospital not found", hospital_id=str(hospital_id))
