"""Room service client wrapping the LiveKit server API."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Protocol

import aiohttp
from google.protobuf.json_format import MessageToDict
from livekit import api

from ..core.config import Settings

logger = logging.getLogger(__name__)

ROOM_ID_TIME_FORMAT = "%Y%m%d%H%M%S"


class RoomServiceError(RuntimeError):
    """Base class for failures talking to the room service."""


class RoomServiceUnavailableError(RoomServiceError):
    """The room service could not be reached or timed out."""


class RoomServiceRejectedError(RoomServiceError):
    """The room service answered with an error."""

    def __init__(self, operation: str, code: str, message: str) -> None:
        super().__init__(f"{operation} rejected: {code}: {message}")
        self.operation = operation
        self.code = code
        self.message = message


class RoomService(Protocol):
    async def list_rooms(self) -> list[dict[str, Any]]: ...

    async def create_room(self, name: str, empty_timeout: int, max_participants: int) -> dict[str, Any]: ...

    async def delete_room(self, name: str) -> None: ...


def create_room_id(user_id: str, now: datetime | None = None) -> str:
    """Derive a room name from the user id and the current second."""

    moment = now or datetime.now()
    return f"{user_id}-{moment.strftime(ROOM_ID_TIME_FORMAT)}"


def room_to_dict(message: Any) -> dict[str, Any]:
    return MessageToDict(message, preserving_proto_field_name=True)


class RoomServiceClient:
    """Thin async adapter over ``livekit.api.LiveKitAPI().room``.

    Every call translates SDK and transport failures into ``RoomServiceError``
    subclasses so the HTTP layer can tell an unreachable service from a
    rejected request.
    """

    def __init__(self, lkapi: Any) -> None:
        self._lkapi = lkapi

    @classmethod
    def from_settings(cls, settings: Settings) -> "RoomServiceClient":
        """Build a client; must be called with a running event loop."""

        lkapi = api.LiveKitAPI(
            url=settings.http_url,
            api_key=settings.livekit_api_key,
            api_secret=settings.livekit_api_secret,
        )
        return cls(lkapi)

    async def aclose(self) -> None:
        await self._lkapi.aclose()

    async def list_rooms(self) -> list[dict[str, Any]]:
        logger.debug("Listing rooms")
        response = await self._call("list_rooms", self._lkapi.room.list_rooms(api.ListRoomsRequest()))
        rooms = [room_to_dict(room) for room in response.rooms]
        logger.info("Listed %d rooms", len(rooms))
        return rooms

    async def create_room(self, name: str, empty_timeout: int, max_participants: int) -> dict[str, Any]:
        request = api.CreateRoomRequest(
            name=name,
            empty_timeout=empty_timeout,
            max_participants=max_participants,
        )
        room = await self._call("create_room", self._lkapi.room.create_room(request))
        logger.info("Room created: %s (sid=%s)", room.name, room.sid)
        return room_to_dict(room)

    async def delete_room(self, name: str) -> None:
        await self._call("delete_room", self._lkapi.room.delete_room(api.DeleteRoomRequest(room=name)))
        logger.info("Room deleted: %s", name)

    async def _call(self, operation: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except api.TwirpError as exc:
            logger.warning("Room service rejected %s: %s %s", operation, exc.code, exc.message)
            raise RoomServiceRejectedError(operation, str(exc.code), exc.message) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Room service unreachable during %s: %s", operation, exc)
            raise RoomServiceUnavailableError(f"{operation} failed: room service unreachable") from exc
