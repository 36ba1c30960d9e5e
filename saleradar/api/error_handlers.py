"""Exception handlers that wrap failures in the response envelope."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from saleradar.api.response_utils import build_meta
from saleradar.core.exceptions import (
    ConfigurationError,
    ProviderError,
    RecordNotFoundError,
    SaleRadarException,
    StoreError,
    ValidationError,
)
from saleradar.core.logging import get_logger
from saleradar.schemas.response import ResponseEnvelope, ResponseError

logger = get_logger(__name__)

# Resolved along the exception's MRO, so subclasses inherit their parent's status
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    ProviderError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}
DEFAULT_ERROR_CODE = "INTERNAL.UNEXPECTED"


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that wrap exceptions in the common envelope."""

    app.add_exception_handler(SaleRadarException, _saleradar_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


def status_for(exc: Exception) -> int:
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    envelope = ResponseEnvelope[None](
        success=False,
        data=None,
        error=ResponseError(code=code, message=message, details=details),
        meta=build_meta(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope, by_alias=True),
    )


def _format_validation_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Validation error"

    parts: list[str] = []
    for error in errors:
        loc = error.get("loc", [])
        msg = error.get("msg", "Validation error")
        loc_path = ".".join(str(item) for item in loc) if loc else None
        parts.append(f"{loc_path}: {msg}" if loc_path else msg)

    return "; ".join(parts)


async def _saleradar_exception_handler(
    request: Request, exc: SaleRadarException
) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log("request_failed", path=request.url.path, code=exc.code, error=exc.message)

    return _error_response(
        request,
        status_code=status_code,
        code=exc.code,
        message=exc.message,
    )


async def _request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors() or []
    return _error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        code="ValidationError",
        message=_format_validation_message(errors),
        details={"errors": jsonable_encoder(errors)},
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(
        request,
        status_code=exc.status_code,
        code=f"HTTP.{exc.status_code}",
        message=str(exc.detail),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error_type=type(exc).__name__)
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=DEFAULT_ERROR_CODE,
        message="Unexpected server error.",
    )
