# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception classes for genro-httpdir.

Two families live here:

1. HTTP exceptions, raised by the serving layer and converted into responses
   by the errors middleware:

   - HTTPException: base class carrying status_code, detail and headers
   - HTTPNotFound, HTTPForbidden, HTTPMethodNotAllowed: common 4xx shortcuts
   - Redirect: 3xx with a Location header

2. Configuration exceptions, which signal a bug in the way directories were
   set up rather than a problem with the client request:

   - ConfigError: a directory definition is invalid (missing or non-existing
     location, bad option type). Raised at construction time.
   - PathTranslationError: a URI was handed to a directory whose prefix it
     does not start with. The routing in front of the directory is wrong.

HTTPException
-------------
Attributes:
    status_code (int): HTTP status code (expected 4xx or 5xx)
    detail (str): Error detail message (default: "")
    headers (list[tuple[str, str]] | None): Optional response headers as list of
        tuples. Input can be dict[str, str] or list[tuple[str, str]].

Example:
    >>> raise HTTPException(404, detail="Not found")
    >>> raise Redirect("/docs/", status_code=307)
"""


class HTTPException(Exception):
    """
    HTTP exception with status code and detail.

    The errors middleware catches this and sends a plain-text response with
    the given status code, detail and headers.

    Attributes:
        status_code: HTTP status code (expected 4xx or 5xx, not validated)
        detail: Error detail message
        headers: Response headers as list of tuples (supports duplicate names)
    """

    def __init__(
        self,
        status_code: int,
        detail: str = "",
        headers: dict[str, str] | list[tuple[str, str]] | None = None,
    ) -> None:
        """
        Initialize HTTP exception.

        Args:
            status_code: HTTP status code (4xx, 5xx expected)
            detail: Error detail message (default: "")
            headers: Response headers as dict or list of tuples (default: None).
        """
        self.status_code = status_code
        self.detail = detail
        if headers is None:
            self.headers: list[tuple[str, str]] | None = None
        elif isinstance(headers, dict):
            self.headers = list(headers.items())
        else:
            self.headers = list(headers)
        super().__init__(detail)

    def __repr__(self) -> str:
        """Return detailed string representation."""
        return f"HTTPException(status_code={self.status_code}, detail={self.detail!r})"


class Redirect(HTTPException):
    """HTTP redirect exception. Raises 307 Temporary Redirect by default."""

    def __init__(self, url: str, status_code: int = 307) -> None:
        super().__init__(status_code, headers={"Location": url})
        self.url = url

    def __repr__(self) -> str:
        return f"Redirect(url={self.url!r}, status_code={self.status_code})"


class HTTPNotFound(HTTPException):
    """HTTP 404 Not Found exception."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(404, detail=detail)


class HTTPForbidden(HTTPException):
    """HTTP 403 Forbidden exception."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(403, detail=detail)


class HTTPMethodNotAllowed(HTTPException):
    """HTTP 405 Method Not Allowed exception."""

    def __init__(self, allow: str = "GET, HEAD") -> None:
        super().__init__(405, detail="Method not allowed", headers={"Allow": allow})


class ConfigError(Exception):
    """Invalid directory or server configuration."""


class PathTranslationError(Exception):
    """
    URI path does not belong to the directory asked to translate it.

    Attributes:
        uri: The URI path that was passed in.
        prefix: The URL prefix the directory is mounted on.
    """

    def __init__(self, uri: str, prefix: str) -> None:
        self.uri = uri
        self.prefix = prefix
        super().__init__(f"path {uri} not inside {prefix}")

    def __repr__(self) -> str:
        return f"PathTranslationError(uri={self.uri!r}, prefix={self.prefix!r})"
