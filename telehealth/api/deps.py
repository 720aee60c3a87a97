"""Shared FastAPI dependencies: database session, caller identity and collaborators."""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from telehealth.clock import Clock, utcnow
from telehealth.config import settings
from telehealth.database import AsyncSessionLocal, get_db
from telehealth.models.user import User
from telehealth.security import decode_access_token
from telehealth.services.media_session import LiveKitSessionProvider, MediaSessionProvider
from telehealth.services.notification_service import NotificationDispatcher
from telehealth.services.policy import Actor, WorkflowPolicy

security = HTTPBearer(auto_error=False)

DBSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DBSession,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """Resolve the bearer token to a stored user. The role comes from the database."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized. No token provided.")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = UUID(str(payload.get("sub", "")))
    except (jwt.PyJWTError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Unauthorized. Invalid or expired token.") from exc

    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized. User not found.")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_current_actor(user: CurrentUser) -> Actor:
    return Actor.from_user(user)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


def get_clock() -> Clock:
    return utcnow


def get_policy() -> WorkflowPolicy:
    return WorkflowPolicy.from_settings(settings)


def get_notifier() -> NotificationDispatcher:
    return NotificationDispatcher(AsyncSessionLocal)


def get_media_provider() -> MediaSessionProvider:
    return LiveKitSessionProvider(
        api_key=settings.livekit_api_key,
        api_secret=settings.livekit_api_secret,
        url=settings.livekit_url,
    )


ClockDep = Annotated[Clock, Depends(get_clock)]
PolicyDep = Annotated[WorkflowPolicy, Depends(get_policy)]
NotifierDep = Annotated[NotificationDispatcher, Depends(get_notifier)]
MediaDep = Annotated[MediaSessionProvider, Depends(get_media_provider)]
