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

"""Error handling middleware.

Catches exceptions raised while serving a request and converts them into
HTTP responses:

    - Redirect: 3xx with Location header, empty body
    - HTTPException: status code with detail as plain text, the detail
      also becomes the reason shown in the access log
    - Exception: 500 Internal Server Error, logged with traceback

A PathTranslationError (directory mounted behind the wrong prefix) is an
ordinary exception here: the client gets a 500 and the traceback goes to the
``genro_httpdir`` logger.

Config:
    debug (bool): If True, include traceback in 500 responses. Default: False.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING, Any, MutableMapping

from . import BaseMiddleware
from ..exceptions import HTTPException, Redirect
from ..types import SCOPE_REASON

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("genro_httpdir")


class ErrorMiddleware(BaseMiddleware):
    """Error handling middleware for HTTP requests.

    Attributes:
        debug: If True, include stack traces in 500 error responses.

    Class Attributes:
        middleware_name: "errors" - identifier for config.
        middleware_order: 100 - inside the access log, outside dispatch.
        middleware_default: True - enabled by default.
    """

    middleware_name = "errors"
    middleware_order = 100
    middleware_default = True

    __slots__ = ("debug",)

    def __init__(
        self,
        app: ASGIApp,
        debug: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the wrapped app, converting exceptions into responses.

        Note:
            Exception priority: Redirect > HTTPException > generic Exception.
            Once the response has started nothing more can be sent, the
            exception is re-raised to the server.
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def send_tracking(message: MutableMapping[str, Any]) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking)
        except Redirect as e:
            if started:
                raise
            await self._send_redirect(send, e)
        except HTTPException as e:
            if started:
                raise
            scope[SCOPE_REASON] = e.detail
            await self._send_http_error(send, e)
        except Exception as e:
            logger.exception(f"Error serving {scope.get('path', '/')}: {e}")
            if started:
                raise
            await self._send_server_error(send)

    async def _send_redirect(self, send: Send, exc: Redirect) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": exc.status_code,
                "headers": [(b"location", exc.url.encode("latin-1"))],
            }
        )
        await send({"type": "http.response.body", "body": b""})

    async def _send_http_error(self, send: Send, exc: HTTPException) -> None:
        """Send exc.detail as text/plain with exc.headers appended."""
        body_bytes = (exc.detail or "").encode("utf-8")

        headers: list[tuple[bytes, bytes]] = [
            (b"content-type", b"text/plain; charset=utf-8"),
            (b"content-length", str(len(body_bytes)).encode()),
        ]
        if exc.headers:
            headers.extend((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in exc.headers)

        await send({"type": "http.response.start", "status": exc.status_code, "headers": headers})
        await send({"type": "http.response.body", "body": body_bytes})

    async def _send_server_error(self, send: Send) -> None:
        if self.debug:
            body = f"Internal Server Error\n\n{traceback.format_exc()}"
        else:
            body = "Internal Server Error"

        body_bytes = body.encode("utf-8")

        await send(
            {
                "type": "http.response.start",
                "status": 500,
                "headers": [
                    (b"content-type", b"text/plain; charset=utf-8"),
                    (b"content-length", str(len(body_bytes)).encode()),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body_bytes})

