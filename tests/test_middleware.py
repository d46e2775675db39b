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

"""Tests for the middleware registry, chain building and bundled middleware."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from genro_httpdir.exceptions import HTTPMethodNotAllowed, HTTPNotFound, Redirect
from genro_httpdir.middleware import MIDDLEWARE_REGISTRY, BaseMiddleware, middleware_chain
from genro_httpdir.middleware.errors import ErrorMiddleware
from genro_httpdir.middleware.logging import AccessLogMiddleware
from genro_httpdir.response import Response
from genro_httpdir.types import SCOPE_MOUNT, SCOPE_REASON


class MockSend:
    """Capture ASGI send messages for testing."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def status(self) -> int:
        return self.messages[0]["status"]

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.messages[0]["headers"])

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages if m["type"] == "http.response.body")


async def mock_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b""}


def make_scope(path: str = "/") -> dict[str, Any]:
    return {"type": "http", "method": "GET", "path": path, "headers": [], "client": ("10.0.0.1", 5000)}


async def ok_app(scope: dict, receive: Any, send: Any) -> None:
    await Response(b"ok", media_type="text/plain")(scope, receive, send)


def raising_app(exc: Exception) -> Any:
    async def app(scope: dict, receive: Any, send: Any) -> None:
        raise exc

    return app


# =============================================================================
# Registry and chain
# =============================================================================


class TestRegistry:
    """Tests for middleware auto-registration."""

    def test_bundled_middleware_registered(self) -> None:
        assert MIDDLEWARE_REGISTRY["errors"] is ErrorMiddleware
        assert MIDDLEWARE_REGISTRY["logging"] is AccessLogMiddleware

    def test_duplicate_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):

            class AnotherErrors(BaseMiddleware):
                middleware_name = "errors"

                async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
                    await self.app(scope, receive, send)


class TestMiddlewareChain:
    """Tests for middleware_chain."""

    def test_defaults(self) -> None:
        app = middleware_chain(None, ok_app)
        assert isinstance(app, ErrorMiddleware)
        assert app.app is ok_app

    def test_enable_by_string(self) -> None:
        app = middleware_chain("logging", ok_app)
        assert isinstance(app, AccessLogMiddleware)
        assert isinstance(app.app, ErrorMiddleware)
        assert app.app.app is ok_app

    def test_disable_by_dict(self) -> None:
        assert middleware_chain({"errors": "off"}, ok_app) is ok_app

    def test_enable_by_list(self) -> None:
        app = middleware_chain(["logging"], ok_app)
        assert isinstance(app, AccessLogMiddleware)

    def test_only_access_log(self) -> None:
        app = middleware_chain({"logging": True, "errors": False}, ok_app)
        assert isinstance(app, AccessLogMiddleware)
        assert app.app is ok_app

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown middleware: cors"):
            middleware_chain({"cors": True}, ok_app)

    def test_options_from_full_config(self) -> None:
        full_config = {"errors_middleware": {"debug": True}, "logging_middleware": {"level": "DEBUG"}}
        app = middleware_chain({"logging": "on"}, ok_app, full_config=full_config)
        assert app.level == logging.DEBUG
        assert app.app.debug is True


# =============================================================================
# ErrorMiddleware
# =============================================================================


class TestErrorMiddleware:
    """Tests for exception to response conversion."""

    @pytest.mark.asyncio
    async def test_passthrough(self) -> None:
        send = MockSend()
        await ErrorMiddleware(ok_app)(make_scope(), mock_receive, send)
        assert send.status == 200
        assert send.body == b"ok"

    @pytest.mark.asyncio
    async def test_http_exception(self) -> None:
        send = MockSend()
        await ErrorMiddleware(raising_app(HTTPNotFound()))(make_scope(), mock_receive, send)
        assert send.status == 404
        assert send.body == b"Not found"
        assert send.headers[b"content-type"] == b"text/plain; charset=utf-8"

    @pytest.mark.asyncio
    async def test_exception_headers_sent(self) -> None:
        send = MockSend()
        await ErrorMiddleware(raising_app(HTTPMethodNotAllowed()))(make_scope(), mock_receive, send)
        assert send.status == 405
        assert send.headers[b"allow"] == b"GET, HEAD"

    @pytest.mark.asyncio
    async def test_redirect(self) -> None:
        send = MockSend()
        await ErrorMiddleware(raising_app(Redirect("/docs/")))(make_scope(), mock_receive, send)
        assert send.status == 307
        assert send.headers[b"location"] == b"/docs/"
        assert send.body == b""

    @pytest.mark.asyncio
    async def test_unexpected_exception(self, caplog: pytest.LogCaptureFixture) -> None:
        send = MockSend()
        with caplog.at_level(logging.ERROR, logger="genro_httpdir"):
            await ErrorMiddleware(raising_app(RuntimeError("boom")))(make_scope(), mock_receive, send)
        assert send.status == 500
        assert send.body == b"Internal Server Error"
        assert "boom" in caplog.text

    @pytest.mark.asyncio
    async def test_debug_includes_traceback(self) -> None:
        send = MockSend()
        await ErrorMiddleware(raising_app(RuntimeError("boom")), debug=True)(make_scope(), mock_receive, send)
        assert send.status == 500
        assert b"RuntimeError: boom" in send.body

    @pytest.mark.asyncio
    async def test_error_after_start_reraised(self) -> None:
        async def half_app(scope: dict, receive: Any, send: Any) -> None:
            await send({"type": "http.response.start", "status": 200, "headers": []})
            raise RuntimeError("late")

        send = MockSend()
        with pytest.raises(RuntimeError, match="late"):
            await ErrorMiddleware(half_app)(make_scope(), mock_receive, send)
        assert len(send.messages) == 1


# =============================================================================
# AccessLogMiddleware
# =============================================================================


def responding(response: Response, mount: str | None = None) -> Any:
    async def app(scope: dict, receive: Any, send: Any) -> None:
        if mount is not None:
            scope[SCOPE_MOUNT] = mount
        await response(scope, receive, send)

    return app


class TestAccessLogMiddleware:
    """Tests for the one-line access log."""

    @pytest.mark.asyncio
    async def test_access_line(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="genro_httpdir.access"):
            await AccessLogMiddleware(ok_app)(make_scope("/docs/"), mock_receive, MockSend())
        assert '10.0.0.1 "GET /docs/" 200 OK 2b' in caplog.text

    @pytest.mark.asyncio
    async def test_reason_and_mount(self, caplog: pytest.LogCaptureFixture) -> None:
        app = responding(Response(status_code=304, reason="match etag"), mount="/pub/")
        with caplog.at_level(logging.INFO, logger="genro_httpdir.access"):
            await AccessLogMiddleware(app)(make_scope("/pub/a.txt"), mock_receive, MockSend())
        assert '"GET /pub/a.txt" 304 match etag 0b via /pub/ (' in caplog.text

    @pytest.mark.asyncio
    async def test_no_mount_shown_without_directory(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="genro_httpdir.access"):
            await AccessLogMiddleware(ok_app)(make_scope(), mock_receive, MockSend())
        assert " via " not in caplog.text

    @pytest.mark.asyncio
    async def test_error_detail_becomes_reason(self, caplog: pytest.LogCaptureFixture) -> None:
        app = AccessLogMiddleware(ErrorMiddleware(raising_app(HTTPNotFound("no such mount"))))
        scope = make_scope("/x")
        with caplog.at_level(logging.INFO, logger="genro_httpdir.access"):
            await app(scope, mock_receive, MockSend())
        assert scope[SCOPE_REASON] == "no such mount"
        assert '"GET /x" 404 no such mount 13b' in caplog.text

    @pytest.mark.asyncio
    async def test_failure_logged_and_reraised(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="genro_httpdir.access"):
            with pytest.raises(RuntimeError):
                await AccessLogMiddleware(raising_app(RuntimeError("boom")))(make_scope(), mock_receive, MockSend())
        assert "failed: RuntimeError('boom')" in caplog.text
        assert caplog.records[-1].levelno == logging.ERROR

    @pytest.mark.asyncio
    async def test_slow_request_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="genro_httpdir.access"):
            await AccessLogMiddleware(ok_app, slow_ms=-1)(make_scope(), mock_receive, MockSend())
        assert caplog.records[-1].levelno == logging.WARNING

    def test_level_names(self) -> None:
        assert AccessLogMiddleware(ok_app, level="debug").level == logging.DEBUG
        assert AccessLogMiddleware(ok_app, level="bogus").level == logging.INFO
        assert AccessLogMiddleware(ok_app, level=logging.WARNING).level == logging.WARNING
