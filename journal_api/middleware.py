"""
Cross-cutting middleware applied to every request before routing.

Order (outermost first): CORS -> error boundary -> JSON body parser.
No business logic belongs here.
"""
import json

import logfire
from starlette.datastructures import Headers, MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Message, Receive, Scope, Send

from journal_api.errors import ApiError, MalformedBodyError, error_response


class OpenCORSMiddleware(CORSMiddleware):
    """CORS for any origin, stamped on every response.

    Starlette skips CORS headers when the request has no Origin header;
    this variant still marks those responses as readable from any origin.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or "origin" in Headers(scope=scope):
            await super().__call__(scope, receive, send)
            return

        async def send_with_origin(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.setdefault("Access-Control-Allow-Origin", "*")
            await send(message)

        await self.app(scope, receive, send_with_origin)


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Turns anything raised below it into exactly one error response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except ApiError as exc:
            logfire.info("{method} {path} rejected: {error}", method=request.method, path=request.url.path, error=exc.message)
            return error_response(exc)
        except Exception as exc:
            logfire.exception("Unhandled error on {method} {path}: {error_type}", method=request.method, path=request.url.path, error_type=type(exc).__name__)
            return error_response(exc)


def is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class JSONBodyMiddleware(BaseHTTPMiddleware):
    """Rejects JSON requests whose body does not parse, before any route runs."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if is_json_content_type(request.headers.get("content-type", "")):
            body = await request.body()
            if body.strip():
                try:
                    json.loads(body)
                except ValueError:
                    raise MalformedBodyError()
        return await call_next(request)
