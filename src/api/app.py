"""FastAPI application factory for the lease API."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.lease import router as lease_router
from src.services.config import get_settings
from src.services.errors import LeaseError, error_response

logger = logging.getLogger(__name__)


async def lease_error_handler(request: Request, exc: LeaseError) -> JSONResponse:
    """Render a rejected lease operation as a standardized error body."""
    logger.debug("%s %s -> %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


def create_app() -> FastAPI:
    """Build the API application with the lease router mounted."""
    settings = get_settings()
    app = FastAPI(title=settings.api_title, version=settings.api_version)
    app.add_exception_handler(LeaseError, lease_error_handler)
    app.include_router(lease_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()

__all__ = ["app", "create_app", "lease_error_handler"]
