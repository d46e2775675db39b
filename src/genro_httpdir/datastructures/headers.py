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
Case-insensitive request headers with HTTP-date parsing.

Purpose
=======
HTTP header names are case-insensitive per RFC 7230 and the same header can
appear more than once. ASGI hands them over as ``list[tuple[bytes, bytes]]``
in Latin-1. Conditional GET needs two lookups on top of that: the raw
``If-None-Match`` value and ``If-Modified-Since`` as a timestamp.

Processing Schema::

    [(b"If-Modified-Since", b"Sun, 06 Nov 1994 08:49:37 GMT")]
                        ↓
    [("if-modified-since", "Sun, 06 Nov 1994 08:49:37 GMT")]
                        ↓
    headers.get_date("If-Modified-Since") → 784111777.0

Design Notes
============
- ``__slots__``, read-only after construction
- Names normalized to lowercase, values preserved as-is
- Unparseable dates read as absent (``None``), never raise

References
==========
- HTTP Headers (RFC 7230): https://tools.ietf.org/html/rfc7230#section-3.2
- HTTP-date (RFC 7231): https://tools.ietf.org/html/rfc7231#section-7.1.1.1
"""

from collections.abc import Mapping
from email.utils import parsedate_to_datetime
from typing import Any, Iterator

__all__ = ["Headers", "headers_from_scope"]


class Headers:
    """
    Immutable, case-insensitive HTTP headers with multi-value support.

    Example:
        >>> headers = Headers([(b"If-None-Match", b"2049-131-1700000000")])
        >>> headers.get("if-none-match")
        '2049-131-1700000000'
        >>> "IF-NONE-MATCH" in headers
        True
    """

    __slots__ = ("_headers",)

    def __init__(self, raw_headers: list[tuple[bytes, bytes]]) -> None:
        """
        Initialize Headers from raw ASGI headers.

        Args:
            raw_headers: List of (name, value) byte tuples from ASGI scope.
                         Both are decoded as Latin-1, names lowercased.
        """
        self._headers: list[tuple[str, str]] = [
            (name.decode("latin-1").lower(), value.decode("latin-1"))
            for name, value in raw_headers
        ]

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the first value for a header (case-insensitive), or default."""
        key_lower = key.lower()
        for name, value in self._headers:
            if name == key_lower:
                return value
        return default

    def getlist(self, key: str) -> list[str]:
        """Return all values for a header, empty list if not present."""
        key_lower = key.lower()
        return [value for name, value in self._headers if name == key_lower]

    def get_date(self, key: str) -> float | None:
        """
        Parse an HTTP-date header into a POSIX timestamp.

        Args:
            key: Header name (case-insensitive), e.g. "If-Modified-Since".

        Returns:
            Seconds since the epoch, or None when the header is missing or
            cannot be parsed.
        """
        value = self.get(key)
        if not value:
            return None
        try:
            return parsedate_to_datetime(value).timestamp()
        except (ValueError, TypeError, IndexError):
            return None

    def keys(self) -> list[str]:
        """Return unique header names (lowercase) in order of first occurrence."""
        seen: set[str] = set()
        result: list[str] = []
        for name, _ in self._headers:
            if name not in seen:
                seen.add(name)
                result.append(name)
        return result

    def items(self) -> list[tuple[str, str]]:
        """Return all (name, value) pairs, duplicates included."""
        return list(self._headers)

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.get(key) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Headers({self._headers!r})"


def headers_from_scope(scope: Mapping[str, Any]) -> Headers:
    """
    Create Headers instance from ASGI scope.

    Returns empty Headers if "headers" is not in scope.
    """
    return Headers(scope.get("headers", []))
