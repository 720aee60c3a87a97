"""Availability routes - doctors declare and withdraw bookable slots."""

from datetime import datetime
from fastapi import APIRouter, Query, Response
from uuid import UUID

from telehealth.api.deps import ClockDep, CurrentActor, DBSession, PolicyDep
from telehealth.clock import as_naive_utc
from telehealth.exceptions import ForbiddenError, ValidationError
from telehealth.models.availability import AvailabilityStatus
from telehealth.models.user import UserRole
from telehealth.schemas.availability import AvailabilityCreate, AvailabilityResponse
from telehealth.schemas.common import Envelope, ok
from telehealth.services.slot_ledger import SlotLedger

router = APIRouter()


@router.post("", response_model=Envelope[AvailabilityResponse], status_code=201)
async def create_availability(
    slot_data: AvailabilityCreate,
    db: DBSession,
    actor: CurrentActor,
    clock: ClockDep,
    policy: PolicyDep,
):
    """Declare a slot. Doctors create their own; admins create on a doctor's behalf."""
    if actor.role == UserRole.DOCTOR.value:
        if slot_data.doctor_id and slot_data.doctor_id != actor.user_id:
            raise ForbiddenError("Doctors can only manage their own availability")
        doctor_id = actor.user_id
    elif policy.is_admin(actor):
        if slot_data.doctor_id is None:
            raise ValidationError("doctor_id is required when an admin creates availability")
        doctor_id = slot_data.doctor_id
    else:
        raise ForbiddenError("Doctor access required", role=actor.role)

    ledger = SlotLedger(db, clock)
    return ok(await ledger.create_slot(doctor_id, slot_data.start_time, slot_data.end_time))


@router.get("", response_model=Envelope[list[AvailabilityResponse]])
async def list_availability(
    db: DBSession,
    actor: CurrentActor,
    doctor_id: UUID | None = None,
    status: AvailabilityStatus | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=200),
):
    """List slots, e.g. a doctor's AVAILABLE slots in a date range."""
    ledger = SlotLedger(db)
    slots = await ledger.list_slots(
        doctor_id=doctor_id,
        status=status,
        starts_from=as_naive_utc(start_time) if start_time else None,
        ends_before=as_naive_utc(end_time) if end_time else None,
        skip=skip,
        limit=take,
    )
    return ok(slots)


@router.get("/{availability_id}", response_model=Envelope[AvailabilityResponse])
async def get_availability(availability_id: UUID, db: DBSession, actor: CurrentActor):
    """Get a slot by ID."""
    return ok(await SlotLedger(db).get_slot(availability_id))


@router.delete("/{availability_id}", status_code=204)
async def delete_availability(
    availability_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
):
    """Withdraw a slot that has never been booked."""
    ledger = SlotLedger(db)
    slot = await ledger.get_slot(availability_id)

    if not policy.is_admin(actor) and slot.doctor_id != actor.user_id:
        raise ForbiddenError(
            "Doctors can only manage their own availability",
            availability_id=str(availability_id),
        )

    await ledger.delete_slot(availability_id)
    return Response(status_code=204)
