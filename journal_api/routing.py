"""
Route table: ordered {prefix, router} entries ending in a catch-all.

Entries are mounted top-to-bottom. Whatever no entry matches falls through to
the terminal 404 route, which answers directly and never raises.
"""
from dataclasses import dataclass, field
from typing import List, Sequence

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse

from journal_api.routers import accounts, posts

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@dataclass(frozen=True)
class RouteEntry:
    prefix: str
    router: APIRouter
    tags: List[str] = field(default_factory=list)


DEFAULT_ROUTES = (
    RouteEntry("/auth", accounts.router, ["auth"]),
    RouteEntry("/posts", posts.router, ["posts"]),
)


async def not_found(path: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Not found"})


def mount_routes(app: FastAPI, routes: Sequence[RouteEntry] = DEFAULT_ROUTES) -> None:
    for entry in routes:
        app.include_router(entry.router, prefix=entry.prefix, tags=entry.tags)

    app.add_api_route("/{path:path}", not_found, methods=ALL_METHODS, include_in_schema=False)
