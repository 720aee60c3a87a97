"""Media session provider - LiveKit access tokens for VIDEO/AUDIO consultations."""

import logging
from datetime import timedelta
from typing import Protocol

from livekit.api import AccessToken, VideoGrants

from telehealth.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PUBLISHER = "publisher"
SUBSCRIBER = "subscriber"


class MediaSessionProvider(Protocol):
    url: str

    def mint_token(
        self,
        channel: str,
        user_id: str,
        role: str,
        ttl_seconds: int,
        consultation_type: str | None = None,
        display_name: str | None = None,
    ) -> str:
        ...


class LiveKitSessionProvider:
    """Mints room-scoped LiveKit JWTs. Both the API key and secret are required."""

    def __init__(self, api_key: str, api_secret: str, url: str):
        self.api_key = api_key
        self.api_secret = api_secret
        self.url = url

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def mint_token(
        self,
        channel: str,
        user_id: str,
        role: str,
        ttl_seconds: int,
        consultation_type: str | None = None,
        display_name: str | None = None,
    ) -> str:
        if not self.configured:
            raise ConfigurationError("Media session provider credentials not configured")

        can_publish = role == PUBLISHER
        grants = VideoGrants(
            room_join=True,
            room=channel,
            can_publish=can_publish,
            can_subscribe=True,
            can_publish_data=can_publish,
        )
        # Audio consultations only ever publish the microphone
        if can_publish and consultation_type == "AUDIO":
            grants.can_publish_sources = ["microphone"]

        token = (
            AccessToken(
                api_key=self.api_key,
                api_secret=self.api_secret,
            )
            .with_identity(user_id)
            .with_name(display_name or user_id)
            .with_ttl(timedelta(seconds=ttl_seconds))
            .with_grants(grants)
        )

        logger.info(f"Minted {role} token for {user_id} in room {channel}")
        return token.to_jwt()
