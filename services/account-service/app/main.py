"""FastAPI application wiring for the account service."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import install_error_handlers
from .api.routes import router as account_router
from .config import get_settings
from .domain.service import AccountService
from .logging_config import setup_logging
from .repository import AccountRepository

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    try:
        repository = AccountRepository(pool)
        if settings.schema_bootstrap:
            repository.ensure_schema()
        app.state.pool = pool
        app.state.account_service = AccountService(
            repository,
            restricted_ids=settings.restricted_ids,
            id_seed=settings.account_id_seed,
        )
        logger.info(
            "%s %s ready (id seed %s, %s restricted ids)",
            settings.app_name,
            settings.version,
            settings.account_id_seed,
            len(settings.restricted_ids),
        )
        yield
    finally:
        pool.close()
        pool.wait_close()


app = FastAPI(
    title="Customer Account Management API",
    description=(
        "API for managing customer accounts. Allows customers to register new accounts, "
        "retrieve account data by ID or email, and update existing account information."
    ),
    version=settings.version,
    lifespan=lifespan,
)

# CORS for local frontend dev
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log the start and the outcome of every request."""
    logger.info("request started: %s %s", request.method, request.url.path)
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "request completed in %.0fms with %s: %s %s",
        elapsed_ms,
        response.status_code,
        request.method,
        request.url.path,
    )
    return response


install_error_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


app.include_router(account_router)


# Prometheus metrics endpoint for Prometheus scrapes
@app.get("/metrics", tags=["health"])
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
