from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from telehealth.config import settings


def create_access_token(subject: UUID | str, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or settings.jwt_expires_minutes
    now = datetime.now(timezone.utc)
    payload = {"sub": str(subject), "exp": now + timedelta(minutes=expire_minutes), "iat": now}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
