"""FastAPI application for the LiveKit room gateway."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import Settings, get_settings
from .core.log import configure_logging
from .routers import rooms as rooms_router
from .services.rooms import RoomServiceClient, RoomServiceRejectedError, RoomServiceUnavailableError
from .services.rtc import TokenIssueError
from .services.worker import WorkerDispatcher, WorkerSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the room service client and run the worker dispatcher for the app's lifetime."""

    settings: Settings = app.state.settings
    room_service = RoomServiceClient.from_settings(settings)
    app.state.room_service = room_service
    logger.info("Room service at %s", settings.http_url)

    session: WorkerSession | None = None
    dispatcher: WorkerDispatcher | None = None
    if settings.worker_enabled:
        session = WorkerSession(settings)
        dispatcher = WorkerDispatcher.from_settings(settings, session.join)
        await dispatcher.start()
    app.state.dispatcher = dispatcher

    try:
        yield
    finally:
        if dispatcher is not None:
            await dispatcher.stop()
        if session is not None:
            await session.close()
        await room_service.aclose()


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around an explicit settings object."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Room Gateway", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
            for err in exc.errors()
        ]
        return _error(400, "invalid request body", details=details)

    @app.exception_handler(RoomServiceRejectedError)
    async def rejected_handler(request: Request, exc: RoomServiceRejectedError) -> JSONResponse:
        return _error(502, "room service rejected the request", code=exc.code, operation=exc.operation)

    @app.exception_handler(RoomServiceUnavailableError)
    async def unavailable_handler(request: Request, exc: RoomServiceUnavailableError) -> JSONResponse:
        return _error(503, "room service unreachable")

    @app.exception_handler(TokenIssueError)
    async def token_error_handler(request: Request, exc: TokenIssueError) -> JSONResponse:
        logger.error("Token signing failed: %s", exc, exc_info=exc)
        return _error(500, "token signing failed")

    @app.get("/", response_class=PlainTextResponse, tags=["meta"])
    async def index() -> PlainTextResponse:
        """Liveness probe."""

        return PlainTextResponse("/")

    @app.head("/", tags=["meta"])
    async def index_head() -> Response:
        """Fast health checks issue HEAD /; answer with 200 to avoid noisy 405s."""

        return Response(status_code=200)

    app.include_router(rooms_router.router, tags=["rooms"])
    return app


def run() -> None:
    """Console entry point: serve the gateway with uvicorn."""

    settings = get_settings()
    app = create_app(settings)
    logger.info("Starting room gateway on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
