"""FastAPI entrypoint for the storefront order service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.api.v1.api import api_router
from storefront.core.config import settings
from storefront.core.logging import configure_logging
from storefront.db import session as db_session
from storefront.db.base import Base
from storefront.db.seed import ensure_demo_catalog
from storefront.services.errors import (
    ConcurrencyConflictError,
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    OrderProcessingError,
    PersistenceError,
    ValidationError,
    Violation,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[OrderProcessingError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    DuplicateError: status.HTTP_409_CONFLICT,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

configure_logging(settings.log_level, structured=settings.log_json)

app = FastAPI(title=settings.app_name, debug=settings.debug)
app.include_router(api_router, prefix="/api/v1")


def status_code_for(exc: OrderProcessingError) -> int:
    """Map a domain error to its HTTP status, honouring subclasses."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[error_type]
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(OrderProcessingError)
async def handle_domain_error(request: Request, exc: OrderProcessingError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=code, content={"error": exc.to_dict()})


REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


def field_path(loc: Sequence[int | str]) -> str:
    """Render a pydantic error location like ("body", "items", 0, "quantity") as "items[0].quantity"."""
    parts = list(loc[1:] if loc and loc[0] in REQUEST_LOCATIONS else loc)
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "body"


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: list[dict[str, Any]] = list(exc.errors())
    violations = [
        Violation(field=field_path(error.get("loc", ())), message=error.get("msg", "Invalid value")) for error in errors
    ]
    if not violations:
        violations = [Violation(field="body", message="Request could not be parsed")]
    error = ValidationError(violations)
    return JSONResponse(status_code=status_code_for(error), content={"error": error.to_dict()})


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=db_session.engine)
    if settings.app_env == "dev" and settings.seed_demo_data:
        with db_session.SessionLocal() as session:
            ensure_demo_catalog(session)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.app_env}
