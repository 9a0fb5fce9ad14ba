"""FastAPI application for the Verity service."""

import contextlib
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..infrastructure.config import configure_logging
from ..infrastructure.dependencies import ServiceContainer, get_service_container
from .endpoints import health, results, verification

logger = logging.getLogger(__name__)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Create the API application.

    Args:
        container: Service container to serve from; the global one built
            from the environment is used when omitted

    Returns:
        Configured FastAPI application
    """
    container = container or get_service_container()
    configure_logging(container.config.logging)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        await app.state.container.initialize()
        logger.info("🚀 Verity API started")
        yield
        await app.state.container.shutdown()

    app = FastAPI(
        title="Verity API",
        description="Claim extraction and evidence-backed fact verification",
        version=health.VERSION,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(f"🌐 {request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)")
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"⚠️ Invalid request body for {request.url.path}")
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request body", "errors": jsonable_errors(exc)},
        )

    app.include_router(health.router)
    app.include_router(verification.router)
    app.include_router(results.router)
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Reduce validation errors to their location and message."""
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]
