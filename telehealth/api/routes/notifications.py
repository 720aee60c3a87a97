"""Notification routes - the caller's notification inbox."""

from fastapi import APIRouter, Query
from uuid import UUID

from telehealth.api.deps import ClockDep, CurrentActor, DBSession
from telehealth.models.notification import NotificationStatus
from telehealth.schemas.common import Envelope, ok
from telehealth.schemas.notification import NotificationResponse
from telehealth.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=Envelope[list[NotificationResponse]])
async def list_notifications(
    db: DBSession,
    actor: CurrentActor,
    status: NotificationStatus | None = None,
    unread_only: bool = False,
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=100),
):
    """List the caller's notifications, newest first."""
    service = NotificationService(db)
    return ok(await service.list_notifications(actor.user_id, status, unread_only, skip, take))


@router.post("/{notification_id}/read", response_model=Envelope[NotificationResponse])
async def mark_notification_read(
    notification_id: UUID, db: DBSession, actor: CurrentActor, clock: ClockDep
):
    """Mark one of the caller's notifications as read."""
    service = NotificationService(db, clock)
    return ok(await service.mark_read(actor.user_id, notification_id))
