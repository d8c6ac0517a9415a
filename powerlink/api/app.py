"""PowerLink FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from powerlink.api.routes import admin, applications, auth, bills
from powerlink.config import get_settings
from powerlink.errors import PowerlinkError, error_response
from powerlink.models import Base
from powerlink.services import engine
from powerlink.services.verification_codes import InMemoryVerificationCodeStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    # Startup: Initialize database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")
    yield
    logger.info("Application shutting down")


async def handle_powerlink_error(request: Request, exc: PowerlinkError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="PowerLink",
        description="Consumer management core for an electric cooperative",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.code_store = InMemoryVerificationCodeStore(
        ttl=timedelta(minutes=settings.verification_code_ttl_minutes)
    )
    app.add_exception_handler(PowerlinkError, handle_powerlink_error)

    app.include_router(applications.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(bills.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
