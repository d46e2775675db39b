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

"""Tests for MIME type lookup."""

import pytest

from genro_httpdir.mime import DEFAULT_MIME_TYPES, UNKNOWN_CONTENT_TYPE, MimeTypes


class TestTypeOf:
    """Tests for extension lookup."""

    def test_html(self):
        assert DEFAULT_MIME_TYPES.type_of("index.html") == "text/html"

    def test_png(self):
        assert DEFAULT_MIME_TYPES.type_of("/srv/www/logo.png") == "image/png"

    def test_case_insensitive_extension(self):
        assert DEFAULT_MIME_TYPES.type_of("README.TXT") == "text/plain"

    def test_unknown(self):
        assert DEFAULT_MIME_TYPES.type_of("data.zzqx") is None

    def test_extra_types(self):
        table = MimeTypes(extra=[("text/x-genro", ".gnr")])
        assert table.type_of("page.gnr") == "text/x-genro"
        assert DEFAULT_MIME_TYPES.type_of("page.gnr") is None


class TestIsAscii:
    """Tests for textual type detection."""

    @pytest.mark.parametrize(
        "mime_type",
        ["text/html", "text/plain", "application/json", "application/javascript", "image/svg+xml", "application/atom+xml"],
    )
    def test_textual(self, mime_type):
        assert MimeTypes.is_ascii(mime_type)

    @pytest.mark.parametrize("mime_type", ["image/png", "application/pdf", "application/zip"])
    def test_binary(self, mime_type):
        assert not MimeTypes.is_ascii(mime_type)


class TestContentType:
    """Tests for the Content-Type header value."""

    def test_textual_gets_charset(self):
        assert DEFAULT_MIME_TYPES.content_type("a.html", "utf-8") == "text/html; charset=utf-8"

    def test_charset_is_configurable(self):
        assert DEFAULT_MIME_TYPES.content_type("a.txt", "latin-1") == "text/plain; charset=latin-1"

    def test_binary_has_no_charset(self):
        assert DEFAULT_MIME_TYPES.content_type("a.png", "utf-8") == "image/png"

    def test_unknown_extension(self):
        assert DEFAULT_MIME_TYPES.content_type("a.zzqx", "utf-8") == UNKNOWN_CONTENT_TYPE
        assert UNKNOWN_CONTENT_TYPE == "binary/octet-stream"

    def test_no_extension(self):
        assert DEFAULT_MIME_TYPES.content_type("Makefile", "utf-8") == "binary/octet-stream"
