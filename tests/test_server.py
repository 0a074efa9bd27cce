"""
Tests for port/host resolution and the JournalServer lifecycle.
"""

import asyncio
import socket

import httpx
import pytest

from journal_api.config import DEFAULT_PORT, is_debug, resolve_host, resolve_port
from journal_api.main import create_app
from journal_api.server import JournalServer


class TestResolvePort:
    def test_default_is_8000(self) -> None:
        assert DEFAULT_PORT == 8000
        assert resolve_port({}) == 8000

    def test_blank_port_uses_default(self) -> None:
        assert resolve_port({"PORT": "  "}) == 8000

    def test_port_from_env(self) -> None:
        assert resolve_port({"PORT": "9999"}) == 9999

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT", "9999")
        assert resolve_port() == 9999
        monkeypatch.delenv("PORT")
        assert resolve_port() == 8000

    @pytest.mark.parametrize("raw", ["eighty", "8000.5", "0", "70000", "-1"])
    def test_invalid_port_fails(self, raw) -> None:
        with pytest.raises(ValueError):
            resolve_port({"PORT": raw})


class TestOtherSettings:
    def test_host_default(self) -> None:
        assert resolve_host({}) == "0.0.0.0"
        assert resolve_host({"HOST": "127.0.0.1"}) == "127.0.0.1"

    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("ON", True), ("0", False), ("", False)])
    def test_debug_flag(self, raw, expected) -> None:
        assert is_debug({"DEBUG": raw}) is expected


class TestJournalServer:
    def test_binds_port_from_env(self) -> None:
        server = JournalServer(create_app(), env={"PORT": "9999"})
        assert server.port == 9999
        assert server._server.config.port == 9999

    def test_binds_default_port(self) -> None:
        server = JournalServer(create_app(), env={})
        assert server.port == 8000
        assert server._server.config.port == 8000

    def test_not_listening_before_start(self) -> None:
        server = JournalServer(create_app(), env={})
        assert server.started is False

    def test_serve_then_stop(self) -> None:
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        server = JournalServer(create_app(), host="127.0.0.1", port=port)

        async def scenario():
            task = asyncio.create_task(server.serve())
            for _ in range(200):
                if server.started:
                    break
                await asyncio.sleep(0.01)
            async with httpx.AsyncClient() as client:
                response = await client.get(f"http://127.0.0.1:{port}/nowhere")
            server.stop()
            await asyncio.wait_for(task, timeout=5)
            return response

        response = asyncio.run(scenario())
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert response.headers["access-control-allow-origin"] == "*"
