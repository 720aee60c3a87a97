"""Message service - chat for TEXT consultations."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.clock import Clock, utcnow
from telehealth.exceptions import (
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
from telehealth.models.message import Message
from telehealth.services.notification_service import NotificationDispatcher
from telehealth.services.policy import Actor, WorkflowPolicy

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


class MessageService:
    """Service class for consultation messages."""

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

    async def _load_appointment(self, appointment_id: UUID) -> Appointment:
        appointment = await self.db.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found", appointment_id=str(appointment_id))
        return appointment

    async def send_message(self, actor: Actor, appointment_id: UUID, content: str) -> Message:
        """Send a message to the other party of a confirmed TEXT consultation."""
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message content is required")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError("Message too long", max_length=MAX_MESSAGE_LENGTH)

        appointment = await self._load_appointment(appointment_id)

        if actor.user_id == appointment.patient_id:
            receiver_id = appointment.doctor_id
        elif actor.user_id == appointment.doctor_id:
            receiver_id = appointment.patient_id
        else:
            raise ForbiddenError(
                "Unauthorized: Not part of this appointment",
                appointment_id=str(appointment_id),
                user_id=str(actor.user_id),
            )

        if (
            appointment.type != AppointmentType.VIRTUAL.value
            or appointment.consultation_type != ConsultationType.TEXT.value
        ):
            raise InvalidStateError(
                "Messages are only available for text consultations",
                appointment_id=str(appointment_id),
                consultation_type=appointment.consultation_type,
            )

        if appointment.status != AppointmentStatus.CONFIRMED.value:
            raise InvalidStateError(
                "Appointment is not confirmed",
                appointment_id=str(appointment_id),
                current_status=appointment.status,
                expected_status=AppointmentStatus.CONFIRMED.value,
            )

        message = Message(
            appointment_id=appointment.id,
            sender_id=actor.user_id,
            receiver_id=receiver_id,
            content=text,
            sent_at=self.clock(),
        )
        self.db.add(message)
        await self.db.flush()
        await self.db.refresh(message)
        await self.db.commit()

        logger.info(f"Message {message.id} sent by user {actor.user_id} to {receiver_id}")

        if self.notifier is not None:
            try:
                await self.notifier.notify(
                    receiver_id,
                    "New Message",
                    text[:100],
                    {"appointment_id": str(appointment.id), "message_id": str(message.id)},
                    notification_type="MESSAGE",
                )
            except Exception as e:
                logger.error(f"Failed to notify {receiver_id} about message {message.id}: {e}")

        return message

    async def list_messages(
        self, actor: Actor, appointment_id: UUID, skip: int = 0, limit: int = 50
    ) -> list[Message]:
        """Messages of an appointment in the order they were sent."""
        appointment = await self._load_appointment(appointment_id)

        if not self.policy.is_admin(actor) and actor.user_id not in (
            appointment.patient_id,
            appointment.doctor_id,
        ):
            raise ForbiddenError(
                "Unauthorized access",
                appointment_id=str(appointment_id),
                user_id=str(actor.user_id),
            )

        result = await self.db.execute(
            select(Message)
            .where(Message.appointment_id == appointment_id)
            .order_by(Message.sent_at, Message.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, actor: Actor, message_id: UUID) -> Message:
        """Set the read receipt. Only the receiver can, and only once."""
        message = await self.db.get(Message, message_id)
        if message is None:
            raise NotFoundError("Message not found", message_id=str(message_id))

        if actor.user_id != message.receiver_id:
            raise ForbiddenError(
                "Unauthorized: Only receiver can mark a message as read",
                message_id=str(message_id),
            )

        if message.read_at is None:
            message.read_at = self.clock()
            await self.db.flush()
            await self.db.refresh(message)
        return message
