# cinesync/main.py

from __future__ import annotations

import asyncio

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from cinesync.core import state
from cinesync.core.config import settings
from cinesync.core.errors import AppError, app_error_handler, validation_error_handler
from cinesync.core.logging import get_logger, setup_error_reporting, setup_logging
from cinesync.services import auth_service
from cinesync.services.redis_pub_sub import AsyncRedisPubSubService
from cinesync.api.routes import root, health, tmdb, users, watch_room, watchlist, notifications, admin
from cinesync.api import websocket as websocket_module

# Configure logging first
setup_logging(settings)
logger = get_logger(__name__)

setup_error_reporting(settings)

ROOM_CLEANUP_INTERVAL_SECONDS = 3600

# FastAPI app
app = FastAPI(title=f"{settings.APP_NAME} - Watch Together", version=settings.VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(auth_service.router)
app.include_router(tmdb.router)
app.include_router(users.router)
app.include_router(watch_room.router)
app.include_router(watchlist.router)
app.include_router(notifications.router)
app.include_router(admin.router)

# WebSocket routes
app.include_router(websocket_module.router)

_background_tasks: set[asyncio.Task] = set()


async def periodic_room_cleanup():
    """Background task closing rooms idle for a day."""
    while True:
        await asyncio.sleep(ROOM_CLEANUP_INTERVAL_SECONDS)
        state.room_manager.cleanup_inactive_rooms(hours_inactive=24)


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Application starting - environment=%s pub_sub=%s", settings.ENVIRONMENT, settings.PUB_SUB_SERVICE)

    if settings.PUB_SUB_SERVICE == "redis":
        redis_service = AsyncRedisPubSubService(settings)
        await redis_service.connect()

        # Store globally
        state.redis_service = redis_service

        # Start subscriber in background
        _background_tasks.add(asyncio.create_task(redis_service.listen(state.connection_manager)))

    _background_tasks.add(asyncio.create_task(periodic_room_cleanup()))

    if not settings.tmdb_configured:
        logger.warning("TMDB_API_KEY not set - /api/tmdb proxy will answer 500")


@app.on_event("shutdown")
async def on_shutdown():
    for task in _background_tasks:
        task.cancel()
    _background_tasks.clear()

    if state.redis_service is not None:
        await state.redis_service.close()
        state.redis_service = None


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cinesync.main:app", host="0.0.0.0", port=8000)
