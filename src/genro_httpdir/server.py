# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
DirectoryServer - ASGI entry point serving one or more Directory mounts.

Usage:
    server = DirectoryServer(directories=[
        Directory("/srv/www", path="/"),
        Directory("/srv/ftp/pub", path="/pub/", directory_list=True),
    ])
    server.run()  # Starts uvicorn

    # or from <server_dir>/config.yaml
    server = DirectoryServer(config=ServerConfig(server_dir="./site"))

Request flow:
    ASGI Server (uvicorn) -> DirectoryServer.__call__
        -> Middleware chain (access log -> errors)
        -> DirectoryServer.dispatch
        -> Directory.handle(request, path) in a worker thread (smartasync)
        -> Response(scope, receive, send)

Dispatch rules:
    - only GET and HEAD are served, anything else is 405
    - paths with a ".." segment are 404
    - the directory with the longest matching prefix answers
    - no directory, or a directory returning None, is 404
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import Any

from smartasync import smartasync  # type: ignore[import-untyped]

from .directory import Directory
from .exceptions import HTTPMethodNotAllowed, HTTPNotFound
from .middleware import middleware_chain
from .request import HttpRequest
from .server_config import ServerConfig
from .types import SCOPE_MOUNT, Receive, Scope, Send

__all__ = ["DirectoryServer"]

ALLOWED_METHODS = ("GET", "HEAD")


class DirectoryServer:
    """
    ASGI application dispatching requests to Directory mounts.

    Attributes:
        config: ServerConfig, or None when directories were passed explicitly.
        directories: Mounted directories, longest prefix first.
        app: Middleware chain wrapping ``dispatch``.
        logger: Server logger instance.
    """

    __slots__ = ("config", "directories", "app", "logger")

    def __init__(
        self,
        directories: Iterable[Directory] | None = None,
        middleware: Any = None,
        config: ServerConfig | None = None,
    ) -> None:
        """
        Initialize DirectoryServer.

        Args:
            directories: Directory instances to mount. Default: built from config.
            middleware: Middleware config ({name: on/off}, list or string).
                Default: config middleware section, or the registry defaults.
            config: ServerConfig. Created from the environment when neither
                config nor directories are given.
        """
        if directories is None and config is None:
            config = ServerConfig()
        self.config = config
        self.logger = logging.getLogger("genro_httpdir")

        if directories is None:
            directories = config.directories()  # type: ignore[union-attr]
        self.directories: list[Directory] = sorted(directories, key=lambda d: len(d.path), reverse=True)

        if middleware is None and config is not None:
            middleware = config.middleware
        full_config = config._opts if config is not None else None
        self.app = middleware_chain(middleware, self.dispatch, full_config=full_config)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle ASGI request. Lifespan events bypass the middleware chain."""
        if scope["type"] == "lifespan":
            await self.lifespan(receive, send)
        else:
            await self.app(scope, receive, send)

    async def lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                for directory in reversed(self.directories):
                    self.logger.info(f"Serving {directory.location or 'custom mapper'} at {directory.path}")
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                self.logger.info("DirectoryServer stopped")
                await send({"type": "lifespan.shutdown.complete"})
                return

    def directory_for(self, path: str) -> Directory | None:
        """Return the directory with the longest prefix matching path."""
        for directory in self.directories:
            prefix = directory.path
            if path.startswith(prefix) or (prefix != "/" and path == prefix[:-1]):
                return directory
        return None

    async def dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        """
        Serve one HTTP request.

        Raises:
            HTTPMethodNotAllowed: Method other than GET or HEAD.
            HTTPNotFound: No directory produced a response.
        """
        if scope["type"] != "http":
            return

        request = HttpRequest(scope)
        if request.method not in ALLOWED_METHODS:
            raise HTTPMethodNotAllowed(allow=", ".join(ALLOWED_METHODS))

        path = request.path
        if ".." in path.split("/"):
            raise HTTPNotFound()

        directory = self.directory_for(path)
        if directory is None:
            raise HTTPNotFound()
        scope[SCOPE_MOUNT] = directory.path

        response = await smartasync(directory.handle)(request, path)
        if response is None:
            raise HTTPNotFound()

        await response(scope, receive, send)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Run the server using Uvicorn."""
        import uvicorn

        if self.config is not None:
            host = host or self.config.server["host"]
            port = port or self.config.server["port"]
            reload = self.config.server["reload"]
        else:
            reload = False
        host = host or "127.0.0.1"
        port = int(port or 8000)

        if reload:
            # factory rebuilds the server from config in the reloaded process
            os.environ["GENRO_HTTPDIR_SERVER_DIR"] = str(self.config.server_dir)  # type: ignore[union-attr]
            uvicorn.run(
                "genro_httpdir:DirectoryServer",
                host=host,
                port=port,
                reload=True,
                factory=True,
            )
        else:
            uvicorn.run(self, host=host, port=port)

    def __repr__(self) -> str:
        mounts = ", ".join(d.path for d in self.directories)
        return f"DirectoryServer(directories=[{mounts}])"


if __name__ == "__main__":
    server = DirectoryServer()
    server.run()
