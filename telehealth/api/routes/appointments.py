"""Appointment routes - API endpoints for the booking workflow."""

from fastapi import APIRouter, Query
from uuid import UUID

from telehealth.api.deps import (
    ClockDep,
    CurrentActor,
    DBSession,
    MediaDep,
    NotifierDep,
    PolicyDep,
)
from telehealth.models.appointment import AppointmentStatus
from telehealth.schemas.appointment import (
    AppointmentCancel,
    AppointmentInitiate,
    AppointmentResponse,
    JoinResponse,
)
from telehealth.schemas.common import Envelope, ok
from telehealth.schemas.message import MessageCreate, MessageResponse
from telehealth.services.appointment_service import AppointmentService
from telehealth.services.message_service import MessageService
from telehealth.services.session_gate import SessionGate

router = APIRouter()


@router.post("/initiate", response_model=Envelope[AppointmentResponse], status_code=201)
async def initiate_appointment(
    appointment_data: AppointmentInitiate,
    db: DBSession,
    actor: CurrentActor,
    notifier: NotifierDep,
    clock: ClockDep,
    policy: PolicyDep,
):
    """Book an availability slot (creates a PENDING appointment)."""
    service = AppointmentService(db, notifier, clock, policy)
    return ok(await service.initiate(actor, appointment_data))


@router.get("", response_model=Envelope[list[AppointmentResponse]])
async def list_appointments(
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
    status: AppointmentStatus | None = None,
    doctor_id: UUID | None = None,
    skip: int = Query(0, ge=0),
    take: int = Query(10, ge=1, le=100),
):
    """List the caller's appointments (all appointments for admins)."""
    service = AppointmentService(db, policy=policy)
    return ok(await service.list_appointments(actor, status, doctor_id, skip, take))


@router.get("/{appointment_id}", response_model=Envelope[AppointmentResponse])
async def get_appointment(appointment_id: UUID, db: DBSession, actor: CurrentActor, policy: PolicyDep):
    """Get an appointment by ID."""
    service = AppointmentService(db, policy=policy)
    return ok(await service.get_appointment(actor, appointment_id))


@router.post("/{appointment_id}/confirm", response_model=Envelope[AppointmentResponse])
async def confirm_appointment(
    appointment_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    notifier: NotifierDep,
    clock: ClockDep,
    policy: PolicyDep,
):
    """Confirm a pending appointment (doctor or admin)."""
    service = AppointmentService(db, notifier, clock, policy)
    return ok(await service.confirm(actor, appointment_id))


@router.post("/{appointment_id}/cancel", response_model=Envelope[AppointmentResponse])
async def cancel_appointment(
    appointment_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    notifier: NotifierDep,
    clock: ClockDep,
    policy: PolicyDep,
    cancel_data: AppointmentCancel | None = None,
):
    """Cancel an appointment and reopen its slot."""
    service = AppointmentService(db, notifier, clock, policy)
    reason = cancel_data.reason if cancel_data else None
    return ok(await service.cancel(actor, appointment_id, reason))


@router.post("/{appointment_id}/complete", response_model=Envelope[AppointmentResponse])
async def complete_appointment(
    appointment_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    notifier: NotifierDep,
    clock: ClockDep,
    policy: PolicyDep,
):
    """Mark a confirmed appointment as completed."""
    service = AppointmentService(db, notifier, clock, policy)
    return ok(await service.complete(actor, appointment_id))


@router.post("/{appointment_id}/join", response_model=Envelope[JoinResponse])
async def join_appointment(
    appointment_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    media: MediaDep,
    clock: ClockDep,
    policy: PolicyDep,
):
    """Get session details (room ID or media token) for a confirmed appointment."""
    gate = SessionGate(db, media, clock, policy)
    return ok(await gate.join(actor, appointment_id))


@router.post("/{appointment_id}/messages", response_model=Envelope[MessageResponse], status_code=201)
async def send_message(
    appointment_id: UUID,
    message_data: MessageCreate,
    db: DBSession,
    actor: CurrentActor,
    notifier: NotifierDep,
    clock: ClockDep,
    policy: PolicyDep,
):
    """Send a message in a TEXT consultation."""
    service = MessageService(db, notifier, clock, policy)
    return ok(await service.send_message(actor, appointment_id, message_data.content))


@router.get("/{appointment_id}/messages", response_model=Envelope[list[MessageResponse]])
async def list_messages(
    appointment_id: UUID,
    db: DBSession,
    actor: CurrentActor,
    policy: PolicyDep,
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=200),
):
    """Get the messages of a TEXT consultation."""
    service = MessageService(db, policy=policy)
    return ok(await service.list_messages(actor, appointment_id, skip, take))
