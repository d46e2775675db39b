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

"""MIME type lookup by file extension.

A thin layer over a private ``mimetypes.MimeTypes`` database. One instance,
``DEFAULT_MIME_TYPES``, is built at import time and shared read-only by every
Directory; a different table can be injected per Directory for tests or for
sites with their own extension mapping.

Besides the type itself a Directory needs to know whether the content is
textual (ASCII-compatible), because those types get the configured charset
appended to their Content-Type.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Iterable

__all__ = ["MimeTypes", "DEFAULT_MIME_TYPES", "UNKNOWN_CONTENT_TYPE"]

UNKNOWN_CONTENT_TYPE = "binary/octet-stream"

# Ensure common types are registered regardless of the host mime.types files
EXTRA_TYPES: tuple[tuple[str, str], ...] = (
    ("application/javascript", ".js"),
    ("application/javascript", ".mjs"),
    ("text/css", ".css"),
    ("image/svg+xml", ".svg"),
    ("application/json", ".json"),
    ("text/html", ".html"),
    ("text/html", ".htm"),
    ("text/markdown", ".md"),
    ("text/plain", ".txt"),
    ("text/plain", ".log"),
    ("application/wasm", ".wasm"),
)

# Non text/* types whose content is ASCII-compatible text
TEXTUAL_APPLICATION_TYPES = frozenset(
    {
        "application/javascript",
        "application/ecmascript",
        "application/json",
        "application/ld+json",
        "application/manifest+json",
        "application/xml",
        "application/xhtml+xml",
        "application/rss+xml",
        "application/atom+xml",
        "application/x-sh",
        "application/x-csh",
        "application/x-tex",
        "application/x-latex",
        "application/x-sql",
        "application/yaml",
        "image/svg+xml",
    }
)


class MimeTypes:
    """Extension to MIME type table.

    Args:
        extra: Additional ``(type, extension)`` pairs registered on top of the
            built-in database.
    """

    __slots__ = ("_db",)

    def __init__(self, extra: Iterable[tuple[str, str]] = EXTRA_TYPES) -> None:
        self._db = mimetypes.MimeTypes()
        for mime_type, extension in extra:
            self._db.add_type(mime_type, extension)

    def type_of(self, filename: str) -> str | None:
        """Return the MIME type registered for filename's extension, or None."""
        mime_type, _ = self._db.guess_type(filename, strict=False)
        return mime_type

    @staticmethod
    def is_ascii(mime_type: str) -> bool:
        """True when the type is text-like and should carry a charset."""
        return (
            mime_type.startswith("text/")
            or mime_type in TEXTUAL_APPLICATION_TYPES
            or mime_type.endswith("+xml")
            or mime_type.endswith("+json")
        )

    def content_type(self, filename: str, charset: str) -> str:
        """
        Build the Content-Type header value for filename.

        Args:
            filename: Path or name of the file; only the extension matters.
            charset: Charset appended to textual types.

        Returns:
            ``"text/html; charset=utf-8"``-style value for textual types, the
            bare type for binary ones, ``binary/octet-stream`` when unknown.
        """
        mime_type = self.type_of(filename)
        if mime_type is None:
            return UNKNOWN_CONTENT_TYPE
        if self.is_ascii(mime_type):
            return f"{mime_type}; charset={charset}"
        return mime_type

    def __repr__(self) -> str:
        return f"MimeTypes(types={len(self._db.types_map[1]) + len(self._db.types_map[0])})"


DEFAULT_MIME_TYPES = MimeTypes()
