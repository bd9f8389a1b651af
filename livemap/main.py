"""Application entry point for the presence server."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .routers import create_realtime_router, system_router
from .services import PresenceHub

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info("%s listening for participants on %s", settings.app_name, settings.websocket_path)
    yield
    hub: PresenceHub = app.state.presence_hub
    # Release every open socket so their sessions announce the departures.
    await hub.close_all()
    await hub.broadcaster.drain()


def create_app(settings: Settings | None = None, *, hub: PresenceHub | None = None) -> FastAPI:
    """Build an application with its own presence hub."""

    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=_lifespan)
    app.state.settings = settings
    app.state.presence_hub = hub or PresenceHub(send_timeout=settings.send_timeout_seconds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system_router)
    app.include_router(create_realtime_router(settings.websocket_path))
    return app


app = create_app()


__all__ = ["app", "create_app"]
