"""Shared fixtures: settings with substitute credentials and stub collaborators."""
from __future__ import annotations

from typing import Any

import pytest

from roomgate.core.config import Settings
from roomgate.main import create_app
from roomgate.routers import rooms as rooms_router


class StubRoomService:
    """Record room service calls and return canned rooms."""

    def __init__(self) -> None:
        self.created: list[tuple[str, int, int]] = []
        self.deleted: list[str] = []
        self.list_calls = 0
        self.rooms: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def list_rooms(self) -> list[dict[str, Any]]:
        self.list_calls += 1
        if self.error:
            raise self.error
        return self.rooms

    async def create_room(self, name: str, empty_timeout: int, max_participants: int) -> dict[str, Any]:
        self.created.append((name, empty_timeout, max_participants))
        if self.error:
            raise self.error
        return {"sid": "RM_test", "name": name, "empty_timeout": empty_timeout, "max_participants": max_participants}

    async def delete_room(self, name: str) -> None:
        self.deleted.append(name)
        if self.error:
            raise self.error

    @property
    def call_count(self) -> int:
        return len(self.created) + len(self.deleted) + self.list_calls


class RecordingDispatcher:
    def __init__(self) -> None:
        self.submitted: list[str] = []

    def submit(self, room_name: str) -> bool:
        self.submitted.append(room_name)
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        livekit_api_key="test-key",
        livekit_api_secret="test-secret-that-is-long-enough-for-hs256",
        livekit_host="https://livekit.example.test",
    )


@pytest.fixture
def room_service() -> StubRoomService:
    return StubRoomService()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def app(settings, room_service, dispatcher):
    application = create_app(settings)
    application.dependency_overrides[rooms_router.get_room_service] = lambda: room_service
    application.dependency_overrides[rooms_router.get_dispatcher] = lambda: dispatcher
    return application
