"""RTC admission token issuance.

Tokens are signed locally with the LiveKit API secret; no network call is made."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from livekit import api

from ..core.config import Settings


class TokenIssueError(RuntimeError):
    """Raised when an admission token could not be signed."""


@dataclass(slots=True)
class RtcToken:
    token: str
    expires_in: int


def issue_token(settings: Settings, room: str, identity: str, name: str | None = None) -> RtcToken:
    """Sign a token letting ``identity`` join, publish and subscribe in ``room``."""

    expires = settings.token_ttl_seconds
    grants = api.VideoGrants(
        room_join=True,
        room=room,
        can_publish=True,
        can_subscribe=True,
    )
    try:
        token = (
            api.AccessToken(settings.livekit_api_key, settings.livekit_api_secret)
            .with_identity(identity)
            .with_name(name or identity)
            .with_grants(grants)
            .with_ttl(timedelta(seconds=expires))
            .to_jwt()
        )
    except Exception as exc:  # noqa: BLE001 - surface any signing failure uniformly
        raise TokenIssueError(f"could not sign token for room {room}") from exc
    return RtcToken(token=token, expires_in=expires)
