from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.deps import build_session_registry
from .api.routers import portal, session
from .application.use_cases.session_registry import SessionRegistry
from .core.config import Settings, get_settings


def create_app(
    *,
    settings: Settings | None = None,
    registry_factory: Callable[[Settings], SessionRegistry] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    factory = registry_factory or build_session_registry

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        registry = factory(settings)
        app.state.session_registry = registry
        registry.start()
        try:
            yield
        finally:
            await registry.aclose()

    app = FastAPI(title="MoodBite Session API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(session.router)
    app.include_router(portal.router)
    return app


app = create_app()
