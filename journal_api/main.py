"""
Application entry point.

Creates the FastAPI application and wires together middleware, the route
table and the error responder. No business logic belongs here.
"""
import logfire

# Configure Logfire before the app is built
# Only send to Logfire if LOGFIRE_TOKEN is set (production) or user is authenticated (local dev)
try:
    logfire.configure(service_name="travel-journal-api")
    logfire.instrument_httpx()
except Exception as e:
    print(f"Logfire not configured (running without observability): {e}")
    # Configure with send_to_logfire=False so spans still work locally but don't require auth
    logfire.configure(service_name="travel-journal-api", send_to_logfire=False)
    logfire.instrument_httpx()

from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import FastAPI

from journal_api.config import is_debug
from journal_api.errors import register_error_handlers
from journal_api.middleware import ErrorBoundaryMiddleware, JSONBodyMiddleware, OpenCORSMiddleware
from journal_api.routing import DEFAULT_ROUTES, RouteEntry, mount_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown
    """
    logfire.info("Travel Journal API started successfully")

    yield

    logfire.info("Shutting down Travel Journal API...")


def create_app(routes: Optional[Sequence[RouteEntry]] = None, debug: Optional[bool] = None) -> FastAPI:
    """Build the application around a route table (the default one unless given)."""
    debug = is_debug() if debug is None else debug

    app = FastAPI(
        title="Travel Journal API",
        description="Backend API for the travel journal: auth and posts",
        version="1.0.0",
        docs_url="/docs" if debug else None,
        redoc_url="/redoc" if debug else None,
        openapi_url="/openapi.json" if debug else None,
        lifespan=lifespan,
    )

    # Added innermost first: the last middleware added runs first
    app.add_middleware(JSONBodyMiddleware)
    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(
        OpenCORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    mount_routes(app, DEFAULT_ROUTES if routes is None else routes)

    return app


app = create_app()
