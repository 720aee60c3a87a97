"""Notification service - persisted, best-effort notifications.

``NotificationDispatcher.notify`` runs in its own session so it is independent
of whatever transaction the caller just committed. Delivery itself goes
through a ``PushSender``; the default one only logs. The record is committed
as PENDING before delivery and only marked SENT once the sender succeeds.
"""

import logging
from typing import Any, Callable, Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.clock import Clock, utcnow
from telehealth.exceptions import NotFoundError
from telehealth.models.notification import Notification, NotificationStatus
from telehealth.models.user import User

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    async def send(self, push_token: str | None, title: str, body: str, data: dict[str, Any]) -> None:
        ...


class LoggingPushSender:
    """Push sender that records the delivery in the application log."""

    async def send(self, push_token: str | None, title: str, body: str, data: dict[str, Any]) -> None:
        if not push_token:
            logger.debug(f"No push token, stored notification only: {title}")
            return
        logger.info(f"Push -> {push_token[:8]}...: {title}")


class NotificationDispatcher:
    """Creates notification records and hands them to the push sender."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        sender: PushSender | None = None,
    ):
        self.session_factory = session_factory
        self.sender = sender or LoggingPushSender()

    async def notify(
        self,
        recipient_id: UUID,
        title: str,
        body: str,
        metadata: dict[str, Any] | None = None,
        notification_type: str = "APPOINTMENT",
    ) -> None:
        async with self.session_factory() as session:
            notification = Notification(
                recipient_id=recipient_id,
                title=title,
                body=body,
                notification_type=notification_type,
                status=NotificationStatus.PENDING.value,
                payload=metadata or {},
            )
            session.add(notification)
            # The record must survive a failed delivery
            await session.commit()

            recipient = await session.get(User, recipient_id)
            try:
                await self.sender.send(
                    recipient.push_token if recipient else None,
                    title,
                    body,
                    {"notification_id": str(notification.id), **(metadata or {})},
                )
            except Exception as e:
                logger.error(f"Push delivery failed for notification {notification.id}: {e}")
                return

            notification.status = NotificationStatus.SENT.value
            await session.commit()


class NotificationService:
    """Service class for reading a user's notifications."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def list_notifications(
        self,
        recipient_id: UUID,
        status: NotificationStatus | None = None,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Notification]:
        query = select(Notification).where(Notification.recipient_id == recipient_id)

        if status:
            query = query.where(Notification.status == status.value)
        if unread_only:
            query = query.where(Notification.read_at.is_(None))

        query = query.order_by(Notification.created_at.desc()).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, recipient_id: UUID, notification_id: UUID) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        # Someone else's notification is reported as missing
        if notification is None or notification.recipient_id != recipient_id:
            raise NotFoundError("Notification not found", notification_id=str(notification_id))

        if notification.read_at is None:
            notification.read_at = self.clock()
            await self.db.flush()
            await self.db.refresh(notification)
        return notification
