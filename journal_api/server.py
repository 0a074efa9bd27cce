"""
Process-level server object: owns the uvicorn listener and its lifecycle.
"""
from typing import Mapping, Optional

import logfire
import uvicorn
from fastapi import FastAPI

from journal_api.config import resolve_host, resolve_port


class JournalServer:
    """Binds the app to HOST:PORT and runs it until stopped.

    Nothing listens until `start()` (blocking) or `serve()` (async) is called.
    """

    def __init__(self, app: FastAPI, host: Optional[str] = None, port: Optional[int] = None,
                 env: Optional[Mapping[str, str]] = None):
        self.app = app
        self.host = host or resolve_host(env)
        self.port = resolve_port(env) if port is None else port
        self._server = uvicorn.Server(
            uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning")
        )

    @property
    def started(self) -> bool:
        return self._server.started

    async def serve(self) -> None:
        logfire.info("Server listening on port : {port}", port=self.port)
        await self._server.serve()

    def start(self) -> None:
        logfire.info("Server listening on port : {port}", port=self.port)
        self._server.run()

    def stop(self) -> None:
        """Ask the running server to finish in-flight requests and exit."""
        self._server.should_exit = True


def main() -> None:
    from journal_api.main import app

    JournalServer(app).start()


if __name__ == "__main__":
    main()
