"""
Error types and the terminal error responder.

Every failure in the request pipeline ends up in `error_response`, which maps
an error to exactly one JSON response. Internal details never reach clients.
"""
from typing import Any, Dict, List, Optional

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ApiError(Exception):
    """Base error carrying the HTTP status it should be answered with."""

    status_code = 500
    default_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class MalformedBodyError(ApiError):
    status_code = 400
    default_message = "Malformed JSON body"


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Invalid authentication credentials"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class ConfigurationError(ApiError):
    status_code = 500
    default_message = "Server is not configured"


class UpstreamError(ApiError):
    status_code = 502
    default_message = "Upstream service failed"


def _validation_details(exc: RequestValidationError) -> List[Dict[str, str]]:
    details = []
    for err in exc.errors():
        # loc starts with the source ("body", "query", "path")
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        details.append({"field": field, "message": err.get("msg", "Invalid value")})
    return details


def _is_json_decode_failure(exc: RequestValidationError) -> bool:
    return any(err.get("type") == "json_invalid" for err in exc.errors())


def error_response(exc: Exception) -> JSONResponse:
    """Map any error to its single HTTP response."""
    body: Dict[str, Any]

    if isinstance(exc, ApiError):
        status_code = exc.status_code
        body = {"error": exc.message}
    elif isinstance(exc, RequestValidationError):
        if _is_json_decode_failure(exc):
            status_code = MalformedBodyError.status_code
            body = {"error": MalformedBodyError.default_message}
        else:
            status_code = 422
            body = {"error": "Invalid request", "details": _validation_details(exc)}
    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        body = {"error": exc.detail}
        return JSONResponse(status_code=status_code, content=body, headers=exc.headers)
    else:
        status_code = 500
        body = {"error": INTERNAL_ERROR_MESSAGE}

    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Route framework-level and domain errors through `error_response`."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logfire.error("{method} {path} failed: {error}", method=request.method, path=request.url.path, error=exc.message)
        else:
            logfire.info("{method} {path} -> {status}: {error}", method=request.method, path=request.url.path, status=exc.status_code, error=exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc)
