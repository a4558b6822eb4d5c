"""Session observers for rooms joined by the worker."""
from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SessionObserver(Protocol):
    """Receives realtime session events, one method per event kind."""

    def on_participant_connected(self, participant: Any) -> None: ...

    def on_participant_disconnected(self, participant: Any) -> None: ...

    def on_track_subscribed(self, track: Any, publication: Any, participant: Any) -> None: ...

    def on_data_received(self, packet: Any) -> None: ...

    def on_disconnected(self, reason: Any = None) -> None: ...


def _describe(participant: Any) -> str:
    if participant is None:
        return "<server>"
    return f"{getattr(participant, 'identity', '?')} (sid={getattr(participant, 'sid', '?')})"


class LoggingSessionObserver:
    """Write one log line per event for a single room."""

    def __init__(self, room_name: str) -> None:
        self.room_name = room_name

    def on_participant_connected(self, participant: Any) -> None:
        logger.info("[%s] Participant connected: %s", self.room_name, _describe(participant))

    def on_participant_disconnected(self, participant: Any) -> None:
        logger.info("[%s] Participant disconnected: %s", self.room_name, _describe(participant))

    def on_track_subscribed(self, track: Any, publication: Any, participant: Any) -> None:
        logger.info(
            "[%s] Track subscribed: %s kind=%s publication=%s from %s",
            self.room_name,
            getattr(track, "sid", "?"),
            getattr(track, "kind", "?"),
            getattr(publication, "sid", "?"),
            _describe(participant),
        )

    def on_data_received(self, packet: Any) -> None:
        data = getattr(packet, "data", b"") or b""
        logger.info(
            "[%s] Data received: %d bytes topic=%s from %s",
            self.room_name,
            len(data),
            getattr(packet, "topic", None),
            _describe(getattr(packet, "participant", None)),
        )

    def on_disconnected(self, reason: Any = None) -> None:
        logger.info("[%s] Room disconnected: %s", self.room_name, reason)


def bind_observer(room: Any, observer: SessionObserver) -> None:
    """Register ``observer`` on an ``rtc.Room`` event emitter."""

    room.on("participant_connected", observer.on_participant_connected)
    room.on("participant_disconnected", observer.on_participant_disconnected)
    room.on("track_subscribed", observer.on_track_subscribed)
    room.on("data_received", observer.on_data_received)
    room.on("disconnected", observer.on_disconnected)
