"""Background worker that joins freshly created rooms as a session participant."""
from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Any, Awaitable, Callable, Dict

from livekit import rtc

from ..core.config import Settings
from . import rtc as rtc_service
from .observer import LoggingSessionObserver, SessionObserver, bind_observer

logger = logging.getLogger(__name__)

JoinCallable = Callable[[str], Awaitable[None]]
SleepCallable = Callable[[float], Awaitable[None]]
ObserverFactory = Callable[[str], SessionObserver]


class WorkerSession:
    """Connect the worker identity to rooms and keep the connections open."""

    def __init__(
        self,
        settings: Settings,
        observer_factory: ObserverFactory = LoggingSessionObserver,
        room_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings
        self._observer_factory = observer_factory
        self._room_factory = room_factory or rtc.Room
        self._rooms: Dict[str, Any] = {}

    @property
    def rooms(self) -> list[str]:
        return list(self._rooms)

    async def join(self, room_name: str) -> None:
        """Join ``room_name`` as the worker identity; raises if the connection fails."""

        identity = self._settings.worker_identity
        token = rtc_service.issue_token(self._settings, room_name, identity).token

        room = self._room_factory()
        bind_observer(room, self._observer_factory(room_name))
        room.on("disconnected", lambda *_: self._forget(room_name, room))

        await room.connect(self._settings.ws_url, token)
        self._rooms[room_name] = room
        logger.info("Worker %s joined room %s", identity, room_name)

    async def close(self) -> None:
        """Disconnect from every room still held."""

        rooms, self._rooms = self._rooms, {}
        for room_name, room in rooms.items():
            try:
                await room.disconnect()
            except Exception:  # noqa: BLE001 - shutdown continues with the next room
                logger.exception("Worker failed to leave room %s", room_name)

    def _forget(self, room_name: str, room: Any) -> None:
        if self._rooms.get(room_name) is room:
            self._rooms.pop(room_name, None)


class WorkerDispatcher:
    """Bounded queue of worker joins with retry and backoff.

    Submissions never block the caller and failures never propagate to it;
    each failed attempt is logged and retried until ``max_attempts``.
    """

    def __init__(
        self,
        join: JoinCallable,
        *,
        queue_size: int = 100,
        concurrency: int = 1,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        sleep: SleepCallable = asyncio.sleep,
    ) -> None:
        self._join = join
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._concurrency = concurrency
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep
        self._tasks: list[asyncio.Task[None]] = []

    @classmethod
    def from_settings(cls, settings: Settings, join: JoinCallable) -> "WorkerDispatcher":
        return cls(
            join,
            queue_size=settings.worker_queue_size,
            concurrency=settings.worker_concurrency,
            max_attempts=settings.worker_max_attempts,
            base_delay=settings.worker_retry_base_delay,
            max_delay=settings.worker_retry_max_delay,
        )

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._consume(), name=f"worker-dispatch-{index}")
            for index in range(self._concurrency)
        ]

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    def submit(self, room_name: str) -> bool:
        """Queue a join for ``room_name``; returns False when it was dropped."""

        if not self._tasks:
            logger.warning("Worker dispatcher is not running; dropping join for room %s", room_name)
            return False
        try:
            self._queue.put_nowait(room_name)
        except asyncio.QueueFull:
            logger.warning("Worker queue full (%d); dropping join for room %s", self._queue.maxsize, room_name)
            return False
        logger.debug("Queued worker join for room %s", room_name)
        return True

    async def drain(self) -> None:
        """Wait until every queued join has finished or given up."""

        await self._queue.join()

    async def _consume(self) -> None:
        while True:
            room_name = await self._queue.get()
            try:
                await self._join_with_retry(room_name)
            finally:
                self._queue.task_done()

    async def _join_with_retry(self, room_name: str) -> bool:
        delay = self._base_delay
        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._join(room_name)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001 - join failures are reported, never raised
                if attempt >= self._max_attempts:
                    logger.error(
                        "Worker gave up joining room %s after %d attempts",
                        room_name,
                        attempt,
                        exc_info=exc,
                    )
                    return False
                logger.warning(
                    "Worker join attempt %d/%d for room %s failed: %s; retrying in %.1fs",
                    attempt,
                    self._max_attempts,
                    room_name,
                    exc,
                    delay,
                )
                await self._sleep(delay)
                delay = min(delay * 2, self._max_delay)
            else:
                return True
        return False
