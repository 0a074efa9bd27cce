"""
Tests for request dispatch: CORS, JSON body parsing, the route table,
the 404 fallback and the error responder.

Most tests build an app around stub routers so that what the dispatcher
adds (or doesn't) is visible on its own.
"""

import pytest
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from journal_api.errors import ConflictError
from journal_api.main import create_app
from journal_api.routing import RouteEntry

NOT_FOUND_BODY = {"error": "Not found"}


def build_stub_app():
    """App whose /auth and /posts routers just record what they receive."""
    calls = []
    auth_router = APIRouter()
    posts_router = APIRouter()

    @posts_router.get("/boom")
    async def explode():
        raise RuntimeError("database password is hunter2")

    @posts_router.get("/conflict")
    async def conflict():
        raise ConflictError("Already there")

    @auth_router.api_route("/{rest:path}", methods=["GET", "POST"])
    async def auth_handler(rest: str, request: Request):
        body = await request.body()
        calls.append(("auth", request.url.path, body))
        return PlainTextResponse("from auth", status_code=203, headers={"X-Handler": "auth"})

    @posts_router.api_route("/{rest:path}", methods=["GET", "POST"])
    async def posts_handler(rest: str, request: Request):
        body = await request.body()
        calls.append(("posts", request.url.path, body))
        return PlainTextResponse("from posts", status_code=207, headers={"X-Handler": "posts"})

    app = create_app(
        routes=[RouteEntry("/auth", auth_router), RouteEntry("/posts", posts_router)],
        debug=False,
    )
    return app, calls


@pytest.fixture
def stub():
    app, calls = build_stub_app()
    return TestClient(app), calls


class TestNotFoundFallback:
    """Paths outside /auth and /posts."""

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE"])
    @pytest.mark.parametrize("path", ["/", "/health", "/api/posts", "/authors", "/postsx", "/docs"])
    def test_unmatched_path_is_404(self, stub, method, path) -> None:
        client, calls = stub
        response = client.request(method, path)
        assert response.status_code == 404
        assert response.json() == NOT_FOUND_BODY
        assert calls == []

    def test_real_app_unknown_path(self, client) -> None:
        response = client.get("/nowhere/at/all")
        assert response.status_code == 404
        assert response.json() == NOT_FOUND_BODY

    def test_docs_hidden_unless_debug(self, client) -> None:
        assert client.get("/openapi.json").status_code == 404

    def test_docs_available_in_debug(self) -> None:
        debug_client = TestClient(create_app(routes=[], debug=True))
        assert debug_client.get("/openapi.json").status_code == 200


class TestDelegation:
    """Matched prefixes hand the request over untouched."""

    def test_auth_prefix_delegates(self, stub) -> None:
        client, calls = stub
        response = client.post(
            "/auth/signin/extra",
            content=b'{"email": "a@b.co"}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 203
        assert response.text == "from auth"
        assert response.headers["x-handler"] == "auth"
        assert calls == [("auth", "/auth/signin/extra", b'{"email": "a@b.co"}')]

    def test_posts_prefix_delegates(self, stub) -> None:
        client, calls = stub
        response = client.get("/posts/123")
        assert response.status_code == 207
        assert response.text == "from posts"
        assert calls == [("posts", "/posts/123", b"")]

    def test_route_table_order_wins(self) -> None:
        first, second = APIRouter(), APIRouter()

        @first.get("/x")
        async def first_handler():
            return {"handler": "first"}

        @second.get("/x")
        async def second_handler():
            return {"handler": "second"}

        client = TestClient(create_app(routes=[RouteEntry("/same", first), RouteEntry("/same", second)]))
        assert client.get("/same/x").json() == {"handler": "first"}


class TestCors:
    """Access-Control-Allow-Origin: * on every outcome."""

    @pytest.mark.parametrize("path,expected", [
        ("/posts/1", 207),
        ("/auth/me", 203),
        ("/missing", 404),
        ("/posts/conflict", 409),
        ("/posts/boom", 500),
    ])
    @pytest.mark.parametrize("origin", [None, "https://journal.example"])
    def test_header_on_every_response(self, stub, path, expected, origin) -> None:
        client, _ = stub
        headers = {"Origin": origin} if origin else {}
        response = client.get(path, headers=headers)
        assert response.status_code == expected
        assert response.headers["access-control-allow-origin"] == "*"

    def test_header_on_malformed_body(self, stub) -> None:
        client, _ = stub
        response = client.post("/posts/1", content=b"{nope", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight(self, stub) -> None:
        client, calls = stub
        response = client.options(
            "/posts/1",
            headers={
                "Origin": "https://journal.example",
                "Access-Control-Request-Method": "DELETE",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "DELETE" in response.headers["access-control-allow-methods"]
        assert calls == []


class TestJsonBody:
    """Body parsing happens before routing and fails through the error responder."""

    def test_malformed_json_never_reaches_handler(self, stub) -> None:
        client, calls = stub
        response = client.post("/posts/new", content=b'{"title": ', headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json() == {"error": "Malformed JSON body"}
        assert calls == []

    def test_malformed_json_on_unmatched_path(self, stub) -> None:
        client, _ = stub
        response = client.post("/elsewhere", content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json() == {"error": "Malformed JSON body"}

    def test_json_suffix_media_type_is_parsed(self, stub) -> None:
        client, calls = stub
        response = client.post("/auth/x", content=b"[1,", headers={"Content-Type": "application/merge-patch+json"})
        assert response.status_code == 400
        assert calls == []

    def test_empty_json_body_is_fine(self, stub) -> None:
        client, calls = stub
        response = client.post("/auth/x", content=b"", headers={"Content-Type": "application/json"})
        assert response.status_code == 203
        assert len(calls) == 1

    def test_non_json_content_type_is_not_parsed(self, stub) -> None:
        client, calls = stub
        response = client.post("/auth/x", content=b"{plain text", headers={"Content-Type": "text/plain"})
        assert response.status_code == 203
        assert calls == [("auth", "/auth/x", b"{plain text")]

    def test_valid_json_body_reaches_handler_intact(self, stub) -> None:
        client, calls = stub
        raw = b'{"title": "Lisbon", "tags": ["tram", "pasteis"]}'
        client.post("/posts/new", content=raw, headers={"Content-Type": "application/json; charset=utf-8"})
        assert calls == [("posts", "/posts/new", raw)]


class TestErrorResponder:
    """Errors from handlers end in exactly one JSON response."""

    def test_domain_error_keeps_its_status(self, stub) -> None:
        client, _ = stub
        response = client.get("/posts/conflict")
        assert response.status_code == 409
        assert response.json() == {"error": "Already there"}

    def test_unexpected_error_is_500_without_internals(self, stub) -> None:
        client, _ = stub
        response = client.get("/posts/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "hunter2" not in response.text
        assert "Traceback" not in response.text

    def test_malformed_body_on_real_route(self, client, fake_firebase, alice_headers) -> None:
        headers = {**alice_headers, "Content-Type": "application/json"}
        response = client.post("/posts", content=b"{oops", headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Malformed JSON body"}
