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
Access log, one line per request.

Each line says what was asked, what was answered and why::

    10.0.0.1 "GET /pub/notes.txt" 304 match etag 0b via /pub/ (0.4ms)
    10.0.0.1 "GET /pub/" 403 no directory lists 18b via /pub/ (0.2ms)
    10.0.0.1 "GET /nothing" 404 Not found 9b (0.1ms)

The reason phrase and the serving mount are read back from the scope, where
``Response`` and ``DirectoryServer.dispatch`` leave them. Requests that
raise past the chain are logged at ERROR and re-raised.

Options (``logging_middleware`` section):
    logger_name: default "genro_httpdir.access"
    level: level of ordinary lines, default "INFO"
    slow_ms: requests slower than this are logged at WARNING
"""

from __future__ import annotations

import logging
import time
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, MutableMapping

from . import BaseMiddleware
from ..types import SCOPE_MOUNT, SCOPE_REASON

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send


def _level(value: str | int) -> int:
    if isinstance(value, int):
        return value
    level = getattr(logging, value.upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _standard_reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


class AccessLogMiddleware(BaseMiddleware):
    """Write one access line per HTTP request.

    Outermost in the chain, so responses produced by ErrorMiddleware are
    logged with their final status.
    """

    middleware_name = "logging"
    middleware_order = 50
    middleware_default = False

    __slots__ = ("logger", "level", "slow_ms")

    def __init__(
        self,
        app: ASGIApp,
        logger_name: str = "genro_httpdir.access",
        level: str | int = "INFO",
        slow_ms: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.logger = logging.getLogger(logger_name)
        self.level = _level(level)
        self.slow_ms = float(slow_ms) if slow_ms is not None else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status = 0
        size = 0

        async def counting_send(message: MutableMapping[str, Any]) -> None:
            nonlocal status, size
            if message["type"] == "http.response.start":
                status = message["status"]
            elif message["type"] == "http.response.body":
                size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, counting_send)
        except Exception as e:
            elapsed = (time.perf_counter() - started) * 1000
            self.logger.error(f"{self.request_line(scope)} failed: {e!r} ({elapsed:.1f}ms)")
            raise

        elapsed = (time.perf_counter() - started) * 1000
        level = self.level
        if self.slow_ms is not None and elapsed > self.slow_ms:
            level = max(level, logging.WARNING)
        self.logger.log(level, self.access_line(scope, status, size, elapsed))

    def request_line(self, scope: Scope) -> str:
        client = scope.get("client")
        client_ip = client[0] if client else "-"
        return f'{client_ip} "{scope.get("method", "?")} {scope.get("path", "/")}"'

    def access_line(self, scope: Scope, status: int, size: int, elapsed: float) -> str:
        reason = scope.get(SCOPE_REASON) or _standard_reason(status)
        line = f"{self.request_line(scope)} {status} {reason} {size}b"
        mount = scope.get(SCOPE_MOUNT)
        if mount is not None:
            line += f" via {mount}"
        return f"{line} ({elapsed:.1f}ms)"
