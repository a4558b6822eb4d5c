"""Data contracts for room endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class JoinRoomRequest(BaseModel):
    userid: str = Field(default="", description="Opaque user identifier")


class DeleteRoomRequest(BaseModel):
    roomid: str = Field(default="", description="Name of the room to delete")


class TokenResponse(BaseModel):
    token: str = Field(..., description="Signed admission token for the new room")
    room: dict[str, Any] = Field(..., description="Room as reported by the room service")


class RoomResponse(BaseModel):
    room: dict[str, Any]


class DeleteRoomResponse(BaseModel):
    room: str
    status: str = "deleted"


class ListRoomsResponse(BaseModel):
    rooms: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    error: str
    code: str | None = None
