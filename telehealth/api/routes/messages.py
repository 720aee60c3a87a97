"""Message routes - read receipts. Sending/listing lives under /appointments/{id}/messages."""

from fastapi import APIRouter
from uuid import UUID

from telehealth.api.deps import ClockDep, CurrentActor, DBSession
from telehealth.schemas.common import Envelope, ok
from telehealth.schemas.message import MessageResponse
from telehealth.services.message_service import MessageService

router = APIRouter()


@router.post("/{message_id}/read", response_model=Envelope[MessageResponse])
async def mark_message_read(message_id: UUID, db: DBSession, actor: CurrentActor, clock: ClockDep):
    """Mark a received message as read."""
    service = MessageService(db, clock=clock)
    return ok(await service.mark_read(actor, message_id))
