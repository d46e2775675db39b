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
HTTP Response for ASGI applications.

A Response is built completely by the handler (status, reason, headers, body)
and then sent with ``await response(scope, receive, send)``.

Reason phrases
==============
ASGI carries no reason phrase on the wire. Handlers still attach one
(``"match etag"``, ``"unchanged"``, ``"no directory lists"``) so that callers
and logs can tell why a status was chosen. ``Response.reason`` falls back to
the standard phrase from ``http.HTTPStatus``. Sending a response stores the
reason in the scope under ``SCOPE_REASON`` for the access log.

Bodiless statuses
=================
1xx, 204 and 304 responses never carry a body nor a Content-Length header.
HEAD requests get the full header set with an empty body.
"""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus

from .types import SCOPE_REASON, Receive, Scope, Send

__all__ = ["Response"]

# Type alias for headers input
HeadersInput = Mapping[str, str] | list[tuple[str, str]] | None

BODYLESS_STATUSES = frozenset({204, 304})


def _normalize_headers(
    headers: HeadersInput,
) -> list[tuple[str, str]]:
    """
    Normalize headers input to list of tuples.

    Args:
        headers: Headers as dict, list of tuples, or None.

    Returns:
        List of (name, value) tuples. Empty list if headers is None.
    """
    if headers is None:
        return []
    if isinstance(headers, list):
        return list(headers)
    return list(headers.items())


class Response:
    """
    HTTP response sent through the ASGI interface.

    Attributes:
        body: Encoded response body as bytes.
        status_code: HTTP status code.
        reason: Reason phrase (custom or standard).

    Example:
        >>> response = Response(status_code=304, reason="match etag")
        >>> response.body
        b''
        >>> response = Response(b"<html/>", headers={"Content-Type": "text/html"})
        >>> await response(scope, receive, send)
    """

    __slots__ = ("body", "status_code", "_reason", "_media_type", "_headers")

    media_type: str | None = None
    charset: str = "utf-8"

    def __init__(
        self,
        content: bytes | str | None = None,
        status_code: int = 200,
        headers: HeadersInput = None,
        media_type: str | None = None,
        reason: str | None = None,
    ) -> None:
        """
        Initialize response.

        Args:
            content: Response body (bytes, string, or None). Ignored for
                bodiless statuses.
            status_code: HTTP status code (default 200).
            headers: Response headers as dict or list of tuples.
            media_type: Content-Type media type, used when headers carry none.
            reason: Reason phrase; defaults to the standard one.
        """
        self.status_code = status_code
        self._reason = reason
        self._headers: list[tuple[str, str]] = _normalize_headers(headers)
        self._media_type = media_type

        if self.bodyless:
            self.body = b""
            return

        self.body = self._encode_content(content)

        if self.header("content-type") is None:
            content_type = self._get_content_type()
            if content_type:
                self._headers.append(("content-type", content_type))

        if self.header("content-length") is None:
            self._headers.append(("content-length", str(len(self.body))))

    def _encode_content(self, content: bytes | str | None) -> bytes:
        """Encode response content to bytes (str uses self.charset)."""
        if content is None:
            return b""
        if isinstance(content, bytes):
            return content
        return content.encode(self.charset)

    def _get_content_type(self) -> str | None:
        """Get content-type header value with charset for text types."""
        effective_media_type = self._media_type if self._media_type is not None else self.media_type
        if effective_media_type is None:
            return None
        if effective_media_type.startswith("text/") and "charset" not in effective_media_type:
            return f"{effective_media_type}; charset={self.charset}"
        return effective_media_type

    @property
    def bodyless(self) -> bool:
        """True for statuses that must not carry a body (1xx, 204, 304)."""
        return self.status_code < 200 or self.status_code in BODYLESS_STATUSES

    @property
    def reason(self) -> str:
        if self._reason is not None:
            return self._reason
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return ""

    @property
    def headers(self) -> list[tuple[str, str]]:
        """Response headers as (name, value) pairs, in insertion order."""
        return list(self._headers)

    def header(self, name: str) -> str | None:
        """Return the first value of a response header (case-insensitive)."""
        name_lower = name.lower()
        for key, value in self._headers:
            if key.lower() == name_lower:
                return value
        return None

    def set_header(self, name: str, value: str) -> None:
        """Add a response header."""
        self._headers.append((name, value))

    def _build_headers(self) -> list[tuple[bytes, bytes]]:
        """
        Build ASGI headers list.

        Header names are lowercased and encoded as latin-1 (HTTP standard).
        """
        return [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self._headers
        ]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """
        ASGI application interface.

        Sends http.response.start and http.response.body messages. The body
        is left out for HEAD requests.
        """
        scope[SCOPE_REASON] = self.reason
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self._build_headers(),
            }
        )
        include_body = scope.get("method", "GET") != "HEAD"
        await send(
            {
                "type": "http.response.body",
                "body": self.body if include_body else b"",
            }
        )

    def __repr__(self) -> str:
        return f"Response(status_code={self.status_code}, reason={self.reason!r}, body={len(self.body)} bytes)"
