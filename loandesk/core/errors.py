from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base for failures raised by the service layer and rendered by one handler."""

    status_code: int = 400
    default_code: str = "bad_request"

    def __init__(self, message: str, *, code: str | None = None, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class InvalidRequest(ServiceError):
    default_code = "validation_error"


class InvalidIdentifier(ServiceError):
    default_code = "invalid_id"


class BusinessRuleViolation(ServiceError):
    default_code = "business_rule_violation"


class InvalidSignature(ServiceError):
    default_code = "invalid_signature"


class Unauthorized(ServiceError):
    status_code = 401
    default_code = "unauthorized"


class NotFound(ServiceError):
    status_code = 404
    default_code = "not_found"


class UpstreamError(ServiceError):
    """A dependency (store or payment provider) failed; the caller may retry."""

    status_code = 500
    default_code = "upstream_error"


class StoreUnavailable(UpstreamError):
    default_code = "store_unavailable"


class PaymentProviderError(UpstreamError):
    default_code = "payment_provider_error"


def _default_code(status_code: int) -> str:
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        429: "rate_limited",
    }
    return mapping.get(status_code, "http_error")


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _normalize_details(details: Any) -> dict:
    if details is None:
        return {}
    if isinstance(details, dict):
        return details
    if isinstance(details, list):
        return {"errors": details}
    return {"detail": str(details)}


def build_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    payload = {
        "code": code,
        "message": message,
        "data": None,
        "details": _normalize_details(details),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Upstream failure on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__ is not None,
        )
    return build_error_response(exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        code = detail.get("code") or _default_code(exc.status_code)
        message = detail.get("message") or _default_message(exc.status_code)
        return build_error_response(exc.status_code, code, message, detail.get("details"))
    message = detail if isinstance(detail, str) else _default_message(exc.status_code)
    return build_error_response(exc.status_code, _default_code(exc.status_code), message, {"detail": message})


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Validation failed"
    if errors:
        first = errors[0] or {}
        loc_parts = [str(part) for part in first.get("loc") or [] if part not in {"body", "query", "path"}]
        msg = first.get("msg") or message
        message = f"{'.'.join(loc_parts)}: {msg}" if loc_parts else str(msg)
    # Missing or malformed input is a client error (400) across the API.
    return build_error_response(400, "validation_error", message, {"errors": errors})


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = build_error_response(429, "rate_limited", _default_message(429), getattr(exc, "detail", None))
    headers = getattr(exc, "headers", None)
    if isinstance(headers, dict):
        response.headers.update(headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return build_error_response(500, "internal_server_error", "Internal server error", {})


def register_exception_handlers(app) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
