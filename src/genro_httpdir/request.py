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
HTTP request wrapper over an ASGI scope.

Directory handlers only read the request: method, path and the two
conditional-GET headers. The body is never consumed, so the request is built
synchronously from the scope and can be handed to blocking code.

Example:
    request = HttpRequest(scope)
    etag = request.header("If-None-Match")
    since = request.if_modified_since  # float timestamp or None
"""

from __future__ import annotations

import uuid
from urllib.parse import unquote

from .datastructures import Headers, headers_from_scope
from .types import Scope

__all__ = ["HttpRequest"]


class HttpRequest:
    """HTTP request adapter wrapping ASGI scope."""

    __slots__ = ("_scope", "_headers", "_id")

    def __init__(self, scope: Scope) -> None:
        self._scope = scope
        self._headers: Headers = headers_from_scope(scope)
        self._id: str = self._headers.get("x-request-id") or str(uuid.uuid4())

    @property
    def id(self) -> str:
        """Correlation ID, taken from X-Request-ID when the client sends one."""
        return self._id

    @property
    def scope(self) -> Scope:
        """Raw ASGI scope dict."""
        return self._scope

    @property
    def method(self) -> str:
        return str(self._scope.get("method", "GET")).upper()

    @property
    def path(self) -> str:
        """Decoded request path (e.g. '/docs/read me.txt')."""
        path = self._scope.get("path")
        if path is None:
            raw_path = self._scope.get("raw_path", b"/")
            path = unquote(raw_path.decode("latin-1"))
        return str(path)

    @property
    def headers(self) -> Headers:
        return self._headers

    def header(self, name: str) -> str | None:
        """Return a header value (case-insensitive), None if absent."""
        return self._headers.get(name)

    @property
    def if_modified_since(self) -> float | None:
        """If-Modified-Since as POSIX timestamp, None if absent or malformed."""
        return self._headers.get_date("if-modified-since")

    @property
    def if_none_match(self) -> str | None:
        return self._headers.get("if-none-match")

    def __repr__(self) -> str:
        return f"<HttpRequest id={self._id!r} method={self.method} path={self.path!r}>"
