"""Session gate - decides whether a confirmed appointment can be joined now.

Read-only: nothing here writes to the appointment or its slot.
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.clock import Clock, utcnow
from telehealth.exceptions import (
    ConfigurationError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    NotStartedError,
    WindowExpiredError,
)
from telehealth.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    ConsultationType,
)
from telehealth.schemas.appointment import JoinResponse
from telehealth.services.media_session import MediaSessionProvider, PUBLISHER, SUBSCRIBER
from telehealth.services.policy import Actor, WorkflowPolicy

logger = logging.getLogger(__name__)


class SessionGate:
    """Service class for joining appointment sessions."""

    def __init__(
        self,
        db: AsyncSession,
        media: MediaSessionProvider | None = None,
        clock: Clock = utcnow,
        policy: WorkflowPolicy | None = None,
    ):
        self.db = db
        self.media = media
        self.clock = clock
        self.policy = policy or WorkflowPolicy()

    def join_window(self, appointment: Appointment) -> tuple:
        """Inclusive [start, end] during which the session can be joined."""
        duration = appointment.duration or self.policy.default_virtual_duration_minutes
        return appointment.scheduled_at, appointment.scheduled_at + timedelta(minutes=duration)

    async def join(self, actor: Actor, appointment_id: UUID) -> JoinResponse:
        appointment = await self.db.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found", appointment_id=str(appointment_id))

        is_party = actor.user_id in (appointment.patient_id, appointment.doctor_id)
        if not is_party and not self.policy.is_admin(actor):
            raise ForbiddenError(
                "Unauthorized access",
                appointment_id=str(appointment_id),
                user_id=str(actor.user_id),
            )

        if appointment.status != AppointmentStatus.CONFIRMED.value:
            raise InvalidStateError(
                "Appointment is not confirmed",
                appointment_id=str(appointment_id),
                current_status=appointment.status,
                expected_status=AppointmentStatus.CONFIRMED.value,
            )

        now = self.clock()
        start, end = self.join_window(appointment)
        if now < start:
            raise NotStartedError(
                "Appointment has not started yet",
                appointment_id=str(appointment_id),
                starts_at=start.isoformat(),
            )
        if now > end:
            raise WindowExpiredError(
                "Appointment time window has expired",
                appointment_id=str(appointment_id),
                ended_at=end.isoformat(),
            )

        if appointment.type == AppointmentType.IN_PERSON.value:
            logger.info(f"User {actor.user_id} accessed IN_PERSON appointment {appointment_id}")
            return JoinResponse(
                appointment_id=appointment.id,
                type=AppointmentType.IN_PERSON,
                message="In-person appointment. No virtual session required.",
            )

        if appointment.consultation_type == ConsultationType.TEXT.value:
            logger.info(f"User {actor.user_id} joined TEXT session {appointment.session_id}")
            return JoinResponse(
                appointment_id=appointment.id,
                type=AppointmentType.VIRTUAL,
                consultation_type=ConsultationType.TEXT,
                session_id=appointment.session_id,
                message="Text consultation. Join the chat room with this session ID.",
            )

        if self.media is None:
            raise ConfigurationError("Media session provider not configured")

        ttl = self.policy.session_token_ttl_seconds
        token = self.media.mint_token(
            channel=appointment.session_id,
            user_id=str(actor.user_id),
            role=PUBLISHER if is_party else SUBSCRIBER,
            ttl_seconds=ttl,
            consultation_type=appointment.consultation_type,
            display_name=actor.display_name,
        )

        logger.info(f"User {actor.user_id} joined {appointment.consultation_type} session {appointment.session_id}")
        return JoinResponse(
            appointment_id=appointment.id,
            type=AppointmentType.VIRTUAL,
            consultation_type=ConsultationType(appointment.consultation_type),
            session_id=appointment.session_id,
            token=token,
            livekit_url=self.media.url,
            expires_at=now + timedelta(seconds=ttl),
            message="Virtual appointment. Connect to the media session with this token.",
        )
