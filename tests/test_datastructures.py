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

"""Tests for Headers."""

from email.utils import formatdate

from genro_httpdir.datastructures import Headers, headers_from_scope


class TestHeaders:
    """Test Headers class."""

    def test_case_insensitive_get(self):
        headers = Headers([(b"If-None-Match", b"1-2-3")])
        assert headers.get("if-none-match") == "1-2-3"
        assert headers.get("IF-NONE-MATCH") == "1-2-3"

    def test_get_default(self):
        headers = Headers([])
        assert headers.get("x-missing") is None
        assert headers.get("x-missing", "fallback") == "fallback"

    def test_getlist(self):
        headers = Headers([(b"accept", b"text/html"), (b"Accept", b"*/*")])
        assert headers.getlist("accept") == ["text/html", "*/*"]
        assert headers.getlist("x-none") == []

    def test_getitem_and_contains(self):
        headers = Headers([(b"host", b"localhost")])
        assert headers["Host"] == "localhost"
        assert "HOST" in headers
        assert "x-other" not in headers
        assert 42 not in headers

    def test_getitem_missing_raises(self):
        headers = Headers([])
        try:
            headers["host"]
        except KeyError as e:
            assert e.args == ("host",)
        else:
            raise AssertionError("KeyError not raised")

    def test_keys_unique_in_order(self):
        headers = Headers([(b"b", b"1"), (b"a", b"2"), (b"b", b"3")])
        assert headers.keys() == ["b", "a"]
        assert list(headers) == ["b", "a"]
        assert len(headers) == 3

    def test_items_keep_duplicates(self):
        headers = Headers([(b"X-A", b"1"), (b"x-a", b"2")])
        assert headers.items() == [("x-a", "1"), ("x-a", "2")]


class TestGetDate:
    """Test HTTP-date parsing."""

    def test_rfc1123_date(self):
        headers = Headers([(b"if-modified-since", formatdate(1700000000, usegmt=True).encode())])
        assert headers.get_date("If-Modified-Since") == 1700000000

    def test_missing(self):
        assert Headers([]).get_date("if-modified-since") is None

    def test_malformed(self):
        headers = Headers([(b"if-modified-since", b"yesterday")])
        assert headers.get_date("if-modified-since") is None


def test_headers_from_scope():
    headers = headers_from_scope({"headers": [(b"host", b"example.org")]})
    assert headers.get("host") == "example.org"


def test_headers_from_scope_without_headers():
    assert len(headers_from_scope({})) == 0
