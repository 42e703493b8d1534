"""FastAPI application for the agent query gateway."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.infra.error_handler import (
    ApplicationError,
    AuthError,
    ConfigError,
    EncryptionError,
    GatewayError,
    MalformedResponseError,
    QueryNotFound,
    TransportError,
)
from app.infra.logging import app_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    from app.services.queries import query_catalog
    app_logger.info("Application starting up", extra={"catalog_queries": len(query_catalog)})

    yield

    app_logger.info("Application shutting down")
    from app.infra.database import dispose_engine
    dispose_engine()


app = FastAPI(
    title="Agent Query Gateway API",
    description="""
    Executes signed, optionally encrypted queries against the databases of
    tenants (ISP operators) through a thin agent each tenant runs on its own
    server.

    ## Authentication

    Tenant endpoints require an `X-API-Key` header holding the master key or
    an API key issued to the same tenant.
    """,
    version="1.0.0",
    lifespan=lifespan,
    tags_metadata=[
        {
            "name": "Agent",
            "description": "Agent connectivity checks and dashboard statistics",
        },
        {
            "name": "Health",
            "description": "Health check and monitoring endpoints",
        },
    ],
)

from app.infra.middleware import RequestLoggingMiddleware  # noqa: E402

app.add_middleware(RequestLoggingMiddleware)

from app.api.routers import agent, health  # noqa: E402

app.include_router(health.router)
app.include_router(agent.router)


# Typed gateway failures, most specific first
ERROR_STATUS_CODES = (
    (ConfigError, 409),
    (QueryNotFound, 404),
    (TransportError, 503),
    (AuthError, 502),
    (ApplicationError, 422),
    (MalformedResponseError, 502),
    (EncryptionError, 500),
)


def status_code_for(exc: GatewayError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError):
    """Map typed gateway errors onto HTTP statuses."""
    status_code = status_code_for(exc)
    app_logger.warning(
        "Gateway error",
        extra={
            "path": request.url.path,
            "category": exc.category.value,
            "tenant_id": exc.tenant_id,
            "status_code": status_code,
            "error": exc.message,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "category": exc.category.value, "tenant_id": exc.tenant_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions."""
    error_id = str(uuid.uuid4())
    app_logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"error_id": error_id})
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error. Error ID: {error_id}"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    )
