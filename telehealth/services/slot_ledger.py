"""Slot ledger - owns availability slots and their AVAILABLE/BOOKED state.

Status flips are conditional UPDATEs so that two transactions racing for the
same slot cannot both win: the loser matches zero rows and gets a
``ConflictError``. Callers own the transaction; the ledger only flushes.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.clock import Clock, utcnow
from telehealth.exceptions import (
    ConflictError,
    InvalidRangeError,
    InvalidStateError,
    LinkedError,
    NotFoundError,
    OverlapError,
)
from telehealth.models.appointment import Appointment
from telehealth.models.availability import Availability, AvailabilityStatus
from telehealth.services.user_service import UserService

logger = logging.getLogger(__name__)


class SlotLedger:
    """Service class for availability slot operations."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def get_slot(self, availability_id: UUID) -> Availability:
        slot = await self.db.get(Availability, availability_id)
        if slot is None:
            raise NotFoundError("Availability not found", availability_id=str(availability_id))
        return slot

    async def list_slots(
        self,
        doctor_id: UUID | None = None,
        status: AvailabilityStatus | None = None,
        starts_from: datetime | None = None,
        ends_before: datetime | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Availability]:
        """List slots ordered by start time."""
        query = select(Availability)

        if doctor_id:
            query = query.where(Availability.doctor_id == doctor_id)
        if status:
            query = query.where(Availability.status == status.value)
        if starts_from:
            query = query.where(Availability.start_time >= starts_from)
        if ends_before:
            query = query.where(Availability.end_time <= ends_before)

        query = query.order_by(Availability.start_time).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_overlapping(
        self, doctor_id: UUID, start_time: datetime, end_time: datetime
    ) -> Availability | None:
        """First slot of the doctor intersecting the half-open range [start_time, end_time)."""
        result = await self.db.execute(
            select(Availability)
            .where(
                and_(
                    Availability.doctor_id == doctor_id,
                    Availability.start_time < end_time,
                    Availability.end_time > start_time,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_slot(
        self, doctor_id: UUID, start_time: datetime, end_time: datetime
    ) -> Availability:
        """Declare a new AVAILABLE slot for a doctor."""
        if start_time >= end_time:
            raise InvalidRangeError(
                "Start time must be before end time",
                start_time=start_time.isoformat(),
                end_time=end_time.isoformat(),
            )

        if start_time <= self.clock():
            raise InvalidStateError("Start time must be in the future", start_time=start_time.isoformat())

        await UserService(self.db).get_doctor(doctor_id)

        overlapping = await self.find_overlapping(doctor_id, start_time, end_time)
        if overlapping:
            raise OverlapError(
                "Availability slot overlaps with existing slot",
                doctor_id=str(doctor_id),
                existing_id=str(overlapping.id),
                existing_start=overlapping.start_time.isoformat(),
                existing_end=overlapping.end_time.isoformat(),
            )

        slot = Availability(
            doctor_id=doctor_id,
            start_time=start_time,
            end_time=end_time,
            status=AvailabilityStatus.AVAILABLE.value,
        )
        self.db.add(slot)
        await self.db.flush()
        await self.db.refresh(slot)
        logger.info(f"Created slot {slot.id} for doctor {doctor_id}")
        return slot

    async def delete_slot(self, availability_id: UUID) -> None:
        """Delete a slot that no appointment references."""
        slot = await self.get_slot(availability_id)

        linked = await self.db.scalar(
            select(func.count())
            .select_from(Appointment)
            .where(Appointment.availability_id == availability_id)
        )
        if linked:
            raise LinkedError(
                "Cannot delete availability slot linked to an appointment",
                availability_id=str(availability_id),
                status=slot.status,
            )

        await self.db.delete(slot)
        await self.db.flush()
        logger.info(f"Deleted slot {availability_id}")

    async def reserve(self, availability_id: UUID, doctor_id: UUID) -> Availability:
        """Flip an AVAILABLE slot to BOOKED inside the caller's transaction."""
        slot = await self.get_slot(availability_id)

        if slot.status != AvailabilityStatus.AVAILABLE.value:
            raise ConflictError(
                "Availability slot is not available",
                availability_id=str(availability_id),
                current_status=slot.status,
                expected_status=AvailabilityStatus.AVAILABLE.value,
            )

        if slot.doctor_id != doctor_id:
            raise ConflictError(
                "Availability does not belong to the specified doctor",
                availability_id=str(availability_id),
                doctor_id=str(doctor_id),
            )

        if slot.start_time <= self.clock():
            raise InvalidStateError(
                "Cannot book past or current slots",
                availability_id=str(availability_id),
                start_time=slot.start_time.isoformat(),
            )

        result = await self.db.execute(
            update(Availability)
            .where(
                and_(
                    Availability.id == availability_id,
                    Availability.status == AvailabilityStatus.AVAILABLE.value,
                )
            )
            .values(status=AvailabilityStatus.BOOKED.value)
        )
        if result.rowcount != 1:
            raise ConflictError(
                "Availability slot was booked concurrently",
                availability_id=str(availability_id),
                expected_status=AvailabilityStatus.AVAILABLE.value,
            )

        await self.db.refresh(slot)
        return slot

    async def release(self, availability_id: UUID) -> None:
        """Put a slot back to AVAILABLE. A no-op when it already is."""
        await self.db.execute(
            update(Availability)
            .where(
                and_(
                    Availability.id == availability_id,
                    Availability.status == AvailabilityStatus.BOOKED.value,
                )
            )
            .values(status=AvailabilityStatus.AVAILABLE.value)
        )
