from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta
import logging
import time
from typing import AsyncIterator
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from docmaster.apps.api.errors import (
    http_exception_handler,
    invalid_transition_handler,
    unhandled_exception_response,
    validation_exception_handler,
)
from docmaster.apps.api.routes.activities import router as activities_router
from docmaster.apps.api.routes.auth import router as auth_router
from docmaster.apps.api.routes.documents import router as documents_router
from docmaster.apps.api.routes.health import router as health_router
from docmaster.apps.api.routes.ingestions import router as ingestions_router
from docmaster.apps.api.routes.ops import router as ops_router
from docmaster.apps.api.routes.qa import router as qa_router
from docmaster.apps.api.routes.users import router as users_router
from docmaster.core.config import Settings, get_settings
from docmaster.core.errors import InvalidTransitionError
from docmaster.core.logging import configure_logging
from docmaster.persistence.seed import seed_store
from docmaster.persistence.store import EntityStore
from docmaster.services.auth.sessions import SessionManager
from docmaster.services.ingest.runner import IngestionRunner, Sleep
from docmaster.services.telemetry import record_request


logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Pending progressions are abandoned on shutdown; the store does not outlive the process.
    await app.state.runner.shutdown()


def create_app(
    *,
    settings: Settings | None = None,
    store: EntityStore | None = None,
    sessions: SessionManager | None = None,
    ingest_sleep: Sleep | None = None,
) -> FastAPI:
    """Build the API with its own store, session table and ingestion runner.

    Everything is constructed here rather than in the lifespan so a test client
    that never runs startup events still gets a fully wired app. A store passed
    in by the caller is used as-is; a store created here is seeded per settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if store is None:
        store = EntityStore()
        seed_store(store, settings)
    if sessions is None:
        sessions = SessionManager(ttl=timedelta(hours=settings.session_ttl_hours))
    runner_kwargs = {} if ingest_sleep is None else {"sleep": ingest_sleep}
    runner = IngestionRunner(
        store,
        processing_delay_s=settings.ingest_processing_delay_s,
        completion_delay_s=settings.ingest_completion_delay_s,
        **runner_kwargs,
    )

    app = FastAPI(title="DocMaster API", lifespan=_lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = sessions
    app.state.runner = runner

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as exc:  # noqa: BLE001 - a failing request must never take the process down
            response = unhandled_exception_response(request, exc)
        latency_ms = (time.monotonic() - start) * 1000.0
        record_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        if request.url.path.startswith(API_PREFIX):
            logger.info(
                "request method=%s path=%s status=%s latency_ms=%.1f request_id=%s",
                request.method,
                request.url.path,
                response.status_code,
                latency_ms,
                request_id,
            )
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    origins = [origin.strip() for origin in settings.cors_allowed_origins.split(",") if origin.strip()]
    if origins:
        # Credentials are required for the session cookie to cross origins.
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(documents_router, prefix=API_PREFIX)
    app.include_router(activities_router, prefix=API_PREFIX)
    app.include_router(ingestions_router, prefix=API_PREFIX)
    app.include_router(qa_router, prefix=API_PREFIX)
    # Liveness and admin observability.
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(ops_router, prefix=API_PREFIX)

    return app


app = create_app()
