"""
FastAPI application entry point for the servicehub backend.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from servicehub.config import get_settings
from servicehub.errors import ServiceError
from servicehub.http_router import router as http_router
from servicehub.routes import router


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="servicehub", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(http_router, prefix=settings.api_prefix)
    return app


app = create_app()
