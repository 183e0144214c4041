"""
Main entrypoint for the CRM API.

This module assembles the FastAPI application: it sets up logging,
creates the schema, builds the services from a single ``Settings``
instance, includes the API router and installs the exception handlers
that turn service errors into JSON responses.  The ``create_app``
function builds and configures the app; ``app`` is created lazily by
``run.py`` or can be served directly with::

    uvicorn crm_api.app.main:create_app --factory

Every error response has the shape ``{"message": "..."}``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.router import router as api_router
from .core.config import Settings
from .core.db import init_db
from .core.errors import AuthError, ConfigError, CRMError
from .core.logging_config import setup_logging
from .services import EmployeeService, EnquiryService


logger = logging.getLogger(__name__)


def _message(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    if isinstance(exc, ConfigError):
        logger.error("Server misconfiguration on %s %s: %s", request.method, request.url.path, exc.message)
        return _message(exc.status_code, "Server misconfiguration.")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return _message(exc.status_code, exc.message, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return _message(400, "Request body is missing or malformed.")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _message(404, "Route not found.")
    return _message(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return _message(500, "Unexpected server error.")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to ``Settings.from_env()``.

    Returns
    -------
    FastAPI
        A configured application.  Services are available as
        ``app.state.employee_service`` and ``app.state.enquiry_service``.
    """
    settings = settings or Settings.from_env()
    # Initialise logging before anything else so that the steps below can
    # log.
    setup_logging(settings.log_level, settings.log_file, sql_trace=settings.db_logging)

    if not settings.jwt_secret:
        logger.warning("JWT_SECRET is not set; login will refuse to issue tokens")

    # Apply migrations up front so the app is usable without lifespan
    # events (e.g. a bare TestClient).
    init_db(settings)

    app = FastAPI(title=settings.project_name, version=settings.api_version)
    app.state.settings = settings
    app.state.employee_service = EmployeeService(settings)
    app.state.enquiry_service = EnquiryService(settings)

    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/", include_in_schema=False)
    def root() -> dict:
        return {"message": "CRM API is running."}

    app.include_router(api_router, prefix="/api")
    return app
