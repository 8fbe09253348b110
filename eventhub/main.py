from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

from eventhub.api.errors import register_error_handlers
from eventhub.api.v1.router import router as v1_router
from eventhub.core.config import Settings, settings as default_settings
from eventhub.core.logging import configure_logging
from eventhub.db import create_db_engine, create_session_factory
from eventhub.middleware.request_id import RequestIdMiddleware
from eventhub.middleware.security_headers import SecurityHeadersMiddleware
from eventhub.models import Base
from eventhub.realtime.broadcaster import Broadcaster
from eventhub.services.mailer import Mailer

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    # The one shared store handle, built here and handed to every request.
    engine = create_db_engine(settings.database_url, echo=settings.database_echo)
    Base.metadata.create_all(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_started", env=settings.env, channel=settings.realtime_channel)
        yield
        engine.dispose()
        logger.info("app_stopped")

    app = FastAPI(title="Event Monolith API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.broadcaster = Broadcaster(channel=settings.realtime_channel)
    app.state.mailer = Mailer(settings)

    # Starlette runs the LAST added middleware FIRST (outermost).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)

    # Per-app registry so several apps (tests) can coexist in one process.
    Instrumentator(registry=CollectorRegistry()).instrument(app).expose(
        app, endpoint="/metrics", include_in_schema=False
    )

    @app.get("/")
    def root():
        return {"name": "Event Monolith API", "status": "ok"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(v1_router, prefix="/v1")
    return app


app = create_app()
