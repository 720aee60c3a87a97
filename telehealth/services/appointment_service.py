"""Appointment service - the booking state machine.

    PENDING --confirm--> CONFIRMED --complete--> COMPLETED
       |                     |
       +------cancel---------+--> CANCELLED

``initiate`` and ``cancel`` write the appointment and its slot in one
transaction. Every status change is a conditional UPDATE on the status that
was read; if another request moved it first we report ``ConflictError``.
Notifications go out after commit and never fail the operation.
"""

import logging
import uuid
from datetime import timedelta
from uuid import UUID

import logfire
from sqlalchemy import select, update, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.clock import Clock, utcnow
from telehealth.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from telehealth.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    ConsultationType,
)
from telehealth.schemas.appointment import AppointmentInitiate
from telehealth.services.notification_service import NotificationDispatcher
from telehealth.services.policy import Actor, WorkflowPolicy
from telehealth.services.slot_ledger import SlotLedger
from telehealth.services.user_service import UserService

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service class for appointment operations."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationDispatcher | None = None,
        clock: Clock = utcnow,
        policy: WorkflowPolicy | None = None,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.policy = policy or WorkflowPolicy()
        self.ledger = SlotLedger(db, clock)
        self.users = UserService(db)

    # ==================== READS ====================

    async def get_appointment_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Get an appointment by ID."""
        return await self.db.get(Appointment, appointment_id)

    async def get_appointment(self, actor: Actor, appointment_id: UUID) -> Appointment:
        """Get an appointment the actor takes part in (admins see everything)."""
        appointment = await self._load(appointment_id)
        self._require_party_or_admin(actor, appointment)
        return appointment

    async def list_appointments(
        self,
        actor: Actor,
        status: AppointmentStatus | None = None,
        doctor_id: UUID | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> list[Appointment]:
        """List appointments visible to the actor, soonest first."""
        query = select(Appointment)

        if not self.policy.is_admin(actor):
            query = query.where(
                or_(
                    Appointment.patient_id == actor.user_id,
                    Appointment.doctor_id == actor.user_id,
                )
            )
        if status:
            query = query.where(Appointment.status == status.value)
        if doctor_id:
            query = query.where(Appointment.doctor_id == doctor_id)

        query = query.order_by(Appointment.scheduled_at).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ==================== TRANSITIONS ====================

    async def initiate(self, actor: Actor, data: AppointmentInitiate) -> Appointment:
        """Book a slot: create a PENDING appointment and flip the slot to BOOKED."""
        if not self.policy.can_initiate(actor):
            raise ForbiddenError(
                "Only patients can initiate appointments",
                user_id=str(actor.user_id),
                role=actor.role,
            )

        virtual = data.type == AppointmentType.VIRTUAL
        if virtual and data.consultation_type is None:
            raise ValidationError("Consultation type is required for virtual appointments")
        if data.doctor_id == actor.user_id:
            raise ValidationError("A doctor cannot book themselves", doctor_id=str(data.doctor_id))
        if virtual and data.duration is not None and data.duration <= 0:
            raise ValidationError("Duration must be a positive integer", duration=data.duration)

        try:
            await self.users.get_doctor(data.doctor_id)
            slot = await self.ledger.reserve(data.availability_id, data.doctor_id)

            appointment = Appointment(
                patient_id=actor.user_id,
                doctor_id=data.doctor_id,
                availability_id=slot.id,
                scheduled_at=slot.start_time,
                type=data.type.value,
                consultation_type=data.consultation_type.value if virtual else None,
                duration=(data.duration or self.policy.default_virtual_duration_minutes) if virtual else None,
                status=AppointmentStatus.PENDING.value,
                session_id=f"consult-{uuid.uuid4().hex}" if virtual else None,
            )
            self.db.add(appointment)
            await self.db.flush()
            await self.db.refresh(appointment)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(
                "Availability slot already has an active appointment",
                availability_id=str(data.availability_id),
            ) from exc
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Appointment {appointment.id} initiated for patient {actor.user_id}")
        logfire.info(
            "appointment_initiated",
            appointment_id=str(appointment.id),
            patient_id=str(actor.user_id),
            doctor_id=str(data.doctor_id),
        )

        await self._notify_parties(
            appointment,
            event="initiated",
            patient_message=("Appointment Requested", "Your appointment request is pending confirmation."),
            doctor_message=("New Appointment Request", "A patient has requested an appointment with you."),
        )
        return appointment

    async def confirm(self, actor: Actor, appointment_id: UUID) -> Appointment:
        """Doctor (or admin) accepts a PENDING appointment."""
        appointment = await self._load(appointment_id)

        if not self.policy.is_admin(actor) and actor.user_id != appointment.doctor_id:
            raise ForbiddenError(
                "Only the appointment's doctor can confirm it",
                appointment_id=str(appointment_id),
                user_id=str(actor.user_id),
            )

        self._require_status(
            appointment,
            (AppointmentStatus.PENDING,),
            "Only pending appointments can be confirmed",
        )

        await self._transition(appointment, AppointmentStatus.CONFIRMED)

        logger.info(f"Appointment {appointment_id} confirmed by user {actor.user_id}")
        logfire.info("appointment_confirmed", appointment_id=str(appointment_id), actor_id=str(actor.user_id))

        await self._notify_parties(
            appointment,
            event="confirmed",
            patient_message=("Appointment Confirmed", "Your doctor has confirmed your appointment."),
            doctor_message=("Appointment Confirmed", "You confirmed an appointment."),
        )
        return appointment

    async def cancel(self, actor: Actor, appointment_id: UUID, reason: str | None = None) -> Appointment:
        """Cancel a PENDING/CONFIRMED appointment and reopen its slot.

        Only allowed up to ``cancellation_window_hours`` before the scheduled
        time. The window is checked before the actor's permission so a late
        cancellation is rejected the same way for everyone.
        """
        appointment = await self._load(appointment_id)

        self._require_status(
            appointment,
            (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
            "Only pending or confirmed appointments can be cancelled",
        )

        now = self.clock()
        cutoff = appointment.scheduled_at - timedelta(hours=self.policy.cancellation_window_hours)
        if now > cutoff:
            raise InvalidStateError(
                f"Cancellation window closed {self.policy.cancellation_window_hours} hours before appointment",
                appointment_id=str(appointment_id),
                scheduled_at=appointment.scheduled_at.isoformat(),
                cutoff=cutoff.isoformat(),
            )

        allowed = (
            self.policy.is_admin(actor)
            or actor.user_id == appointment.patient_id
            or (self.policy.doctor_can_cancel and actor.user_id == appointment.doctor_id)
        )
        if not allowed:
            raise ForbiddenError(
                "Only the patient or an admin can cancel this appointment",
                appointment_id=str(appointment_id),
                user_id=str(actor.user_id),
            )

        reason = reason.strip() if reason else None
        await self._transition(
            appointment,
            AppointmentStatus.CANCELLED,
            release_slot=True,
            cancellation_reason=reason or None,
            cancelled_at=now,
        )

        logger.info(f"Appointment {appointment_id} cancelled by user {actor.user_id}")
        logfire.info(
            "appointment_cancelled",
            appointment_id=str(appointment_id),
            actor_id=str(actor.user_id),
            reason=reason,
        )

        await self._notify_parties(
            appointment,
            event="cancelled",
            patient_message=("Appointment Cancelled", "Your appointment has been cancelled."),
            doctor_message=("Appointment Cancelled", "An appointment on your schedule has been cancelled."),
        )
        return appointment

    async def complete(self, actor: Actor, appointment_id: UUID) -> Appointment:
        """Close a CONFIRMED appointment once its scheduled time has been reached."""
        appointment = await self._load(appointment_id)
        self._require_party_or_admin(actor, appointment)

        self._require_status(
            appointment,
            (AppointmentStatus.CONFIRMED,),
            "Only confirmed appointments can be completed",
        )

        if self.clock() < appointment.scheduled_at:
            raise InvalidStateError(
                "Appointment has not yet started",
                appointment_id=str(appointment_id),
                scheduled_at=appointment.scheduled_at.isoformat(),
            )

        await self._transition(appointment, AppointmentStatus.COMPLETED)

        logger.info(f"Appointment {appointment_id} completed by user {actor.user_id}")
        logfire.info("appointment_completed", appointment_id=str(appointment_id), actor_id=str(actor.user_id))

        await self._notify_parties(
            appointment,
            event="completed",
            patient_message=("Appointment Completed", "Your appointment has been marked as completed."),
            doctor_message=("Appointment Completed", "An appointment has been marked as completed."),
        )
        return appointment

    # ==================== HELPERS ====================

    async def _load(self, appointment_id: UUID) -> Appointment:
        appointment = await self.get_appointment_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found", appointment_id=str(appointment_id))
        return appointment

    def _require_party_or_admin(self, actor: Actor, appointment: Appointment) -> None:
        if self.policy.is_admin(actor):
            return
        if actor.user_id not in (appointment.patient_id, appointment.doctor_id):
            raise ForbiddenError(
                "Unauthorized access",
                appointment_id=str(appointment.id),
                user_id=str(actor.user_id),
            )

    @staticmethod
    def _require_status(
        appointment: Appointment,
        allowed: tuple[AppointmentStatus, ...],
        message: str,
    ) -> None:
        if appointment.status not in {status.value for status in allowed}:
            raise InvalidStateError(
                message,
                appointment_id=str(appointment.id),
                current_status=appointment.status,
                expected_status="|".join(status.value for status in allowed),
            )

    async def _transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        release_slot: bool = False,
        **changes,
    ) -> None:
        """Move the appointment from the status we read to ``target`` and commit."""
        expected = appointment.status
        try:
            result = await self.db.execute(
                update(Appointment)
                .where(
                    and_(
                        Appointment.id == appointment.id,
                        Appointment.status == expected,
                    )
                )
                .values(status=target.value, updated_at=self.clock(), **changes)
            )
            if result.rowcount != 1:
                raise ConflictError(
                    "Appointment status changed concurrently",
                    appointment_id=str(appointment.id),
                    expected_status=expected,
                    target_status=target.value,
                )

            if release_slot:
                await self.ledger.release(appointment.availability_id)

            await self.db.flush()
            await self.db.refresh(appointment)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _notify_parties(
        self,
        appointment: Appointment,
        event: str,
        patient_message: tuple[str, str],
        doctor_message: tuple[str, str],
    ) -> None:
        if self.notifier is None:
            return

        metadata = {
            "appointment_id": str(appointment.id),
            "status": appointment.status,
            "event": event,
            "scheduled_at": appointment.scheduled_at.isoformat(),
        }
        for recipient_id, (title, body) in (
            (appointment.patient_id, patient_message),
            (appointment.doctor_id, doctor_message),
        ):
            try:
                await self.notifier.notify(recipient_id, title, body, metadata)
            except Exception as e:
                logger.error(f"Failed to notify {recipient_id} about appointment {appointment.id}: {e}")
