"""Room creation, admission, deletion and listing endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core.config import Settings
from ..schemas.rooms import (
    DeleteRoomRequest,
    DeleteRoomResponse,
    ErrorResponse,
    JoinRoomRequest,
    ListRoomsResponse,
    RoomResponse,
    TokenResponse,
)
from ..services import rtc as rtc_service
from ..services.rooms import RoomService, create_room_id
from ..services.worker import WorkerDispatcher

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_room_service(request: Request) -> RoomService:
    return request.app.state.room_service


def get_dispatcher(request: Request) -> WorkerDispatcher | None:
    return getattr(request.app.state, "dispatcher", None)


@router.post("/get/token", response_model=TokenResponse, responses=ERROR_RESPONSES)
async def get_token(
    payload: JoinRoomRequest,
    settings: Settings = Depends(get_settings),
    rooms: RoomService = Depends(get_room_service),
    dispatcher: WorkerDispatcher | None = Depends(get_dispatcher),
) -> TokenResponse:
    """Create a room for the user, sign their admission token and send the worker in."""

    if not payload.userid:
        raise HTTPException(status_code=400, detail="userid is required")

    room_id = create_room_id(payload.userid)
    room = await rooms.create_room(room_id, settings.room_empty_timeout, settings.room_max_participants)
    token = rtc_service.issue_token(settings, room_id, settings.human_identity, payload.userid)

    if dispatcher is not None:
        dispatcher.submit(room_id)

    return TokenResponse(token=token.token, room=room)


@router.post("/create/room", response_model=RoomResponse, responses=ERROR_RESPONSES)
async def create_room(
    payload: JoinRoomRequest,
    settings: Settings = Depends(get_settings),
    rooms: RoomService = Depends(get_room_service),
) -> RoomResponse:
    """Create a room without issuing a token."""

    room_id = create_room_id(payload.userid)
    logger.info("Creating room %s for user %r", room_id, payload.userid)

    room = await rooms.create_room(room_id, settings.room_empty_timeout, settings.room_max_participants)
    return RoomResponse(room=room)


@router.post("/delete/room", response_model=DeleteRoomResponse, responses=ERROR_RESPONSES)
async def delete_room(
    payload: DeleteRoomRequest,
    rooms: RoomService = Depends(get_room_service),
) -> DeleteRoomResponse:
    if not payload.roomid:
        raise HTTPException(status_code=400, detail="roomid is required")

    logger.info("Deleting room %s", payload.roomid)
    await rooms.delete_room(payload.roomid)
    return DeleteRoomResponse(room=payload.roomid, status="deleted")


@router.get("/list/rooms", response_model=ListRoomsResponse, responses=ERROR_RESPONSES)
async def list_rooms(rooms: RoomService = Depends(get_room_service)) -> ListRoomsResponse:
    return ListRoomsResponse(rooms=await rooms.list_rooms())
