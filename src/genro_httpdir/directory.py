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
Directory - maps a URI prefix onto a filesystem location.

A Directory answers requests for paths under its ``path`` prefix with file
content, index files or HTML listings. It is synchronous: every call opens,
reads and closes what it needs before returning.

Constructor:
    Directory(location, path="/", index_file=None, directory_list=False,
              charset="utf-8", mime_types=None)

    - location: directory to serve, or a callable rewriting the URI path
      into an absolute file or directory name (None when unmappable)
    - path: URI prefix this directory is mounted on
    - index_file: name or list of names tried for directory requests,
      default ["index.html", "index.htm"]
    - directory_list: render a listing when no index file exists
    - charset: appended to the Content-Type of textual files
    - mime_types: MimeTypes table, default the shared DEFAULT_MIME_TYPES

Request handling (``handle``):

    ===================================  ======================================
    unmappable or missing path           None (the caller decides, usually 404)
    regular file                         file response
    neither file nor directory           403
    directory, URI without trailing /    307 to quote(URI + "/")
    directory with an index file         file response for the first match
    directory, listing disabled          403 "no directory lists"
    directory                            200 HTML listing
    ===================================  ======================================

File response:

    - 404 when the file vanished, 403 when it cannot be opened
    - ETag is "<device>-<inode>-<mtime>", a weak validator
    - If-None-Match equal to the ETag: 304 "match etag"
    - If-Modified-Since not older than mtime: 304 "unchanged"
    - otherwise 200 with Content-Type, Last-Modified and ETag

Example:
    >>> docs = Directory("/srv/docs", path="/docs/", directory_list=True)
    >>> docs.filename("/docs/api/index.html")
    '/srv/docs/api/index.html'
    >>> response = docs.handle(HttpRequest(scope), "/docs/api/")
"""

from __future__ import annotations

import logging
import os
import re
import stat
from collections.abc import Callable, Sequence
from email.utils import formatdate
from urllib.parse import quote

from .exceptions import ConfigError, PathTranslationError
from .listing import DirEntry, list_directory
from .mime import DEFAULT_MIME_TYPES, MimeTypes
from .rendering import render_listing
from .request import HttpRequest
from .response import Response

__all__ = ["CustomMapper", "Directory", "DirectoryConfig", "StaticPrefix"]

logger = logging.getLogger("genro_httpdir")

DEFAULT_INDEX_FILES = ("index.html", "index.htm")


class StaticPrefix:
    """Translate URIs by replacing the URL prefix with a filesystem root.

    Both prefix and root end with a slash. The prefix without its slash is
    accepted too and maps onto the root, so that ``/docs`` can be redirected
    to ``/docs/``.
    """

    __slots__ = ("prefix", "root")

    def __init__(self, prefix: str, root: str) -> None:
        self.prefix = prefix
        self.root = root

    def __call__(self, uri: str) -> str:
        if uri.startswith(self.prefix):
            return self.root + uri[len(self.prefix) :]
        if uri == self.prefix[:-1] and uri:
            return self.root
        logger.critical(f"Directory misconfigured: path {uri} not inside {self.prefix}")
        raise PathTranslationError(uri, self.prefix)

    def __repr__(self) -> str:
        return f"StaticPrefix(prefix={self.prefix!r}, root={self.root!r})"


class CustomMapper:
    """Translate URIs with a caller-supplied function."""

    __slots__ = ("function",)

    def __init__(self, function: Callable[[str], str | None]) -> None:
        self.function = function

    def __call__(self, uri: str) -> str | None:
        return self.function(uri)

    def __repr__(self) -> str:
        return f"CustomMapper(function={self.function!r})"


PathTranslator = StaticPrefix | CustomMapper


def _normalize_prefix(path: str) -> str:
    if not path.startswith("/"):
        path = "/" + path
    if not path.endswith("/"):
        path += "/"
    return path


class DirectoryConfig:
    """
    Validated, read-only directory definition.

    Attributes:
        path: URI prefix, always starting and ending with "/".
        location: Absolute root with trailing separator, or None when a
            custom mapper is used.
        translator: StaticPrefix or CustomMapper built from location.
        index_files: Names tried, in order, for directory requests.
        directory_list: Whether listings are allowed.
        charset: Charset for textual content types.

    Raises:
        ConfigError: location missing, not an existing directory, or
            index_file of the wrong type.
    """

    __slots__ = ("_path", "_location", "_translator", "_index_files", "_directory_list", "_charset")

    def __init__(
        self,
        location: str | os.PathLike[str] | Callable[[str], str | None] | None,
        path: str = "/",
        index_file: str | Sequence[str] | None = None,
        directory_list: bool = False,
        charset: str | None = "utf-8",
    ) -> None:
        if not location:
            raise ConfigError("directory definition requires location")

        self._path = _normalize_prefix(path)

        if callable(location):
            self._location: str | None = None
            self._translator: PathTranslator = CustomMapper(location)
        else:
            root = os.path.abspath(os.fspath(location))
            if not root.endswith(os.sep):
                root += os.sep
            if not os.path.isdir(root):
                raise ConfigError(f"directory location {root} for {self._path} does not exist")
            self._location = root
            self._translator = StaticPrefix(self._path, root)

        if index_file is None:
            self._index_files: tuple[str, ...] = DEFAULT_INDEX_FILES
        elif isinstance(index_file, str):
            self._index_files = (index_file,)
        elif isinstance(index_file, Sequence):
            self._index_files = tuple(index_file)
        else:
            raise ConfigError(f"index_file must be a string or a list, not {index_file!r}")

        self._directory_list = bool(directory_list)
        self._charset = charset or "utf-8"

    @property
    def path(self) -> str:
        return self._path

    @property
    def location(self) -> str | None:
        return self._location

    @property
    def translator(self) -> PathTranslator:
        return self._translator

    @property
    def index_files(self) -> tuple[str, ...]:
        return self._index_files

    @property
    def directory_list(self) -> bool:
        return self._directory_list

    @property
    def charset(self) -> str:
        return self._charset

    def __repr__(self) -> str:
        return (
            f"DirectoryConfig(path={self._path!r}, translator={self._translator!r}, "
            f"index_files={self._index_files!r}, directory_list={self._directory_list})"
        )


class Directory:
    """Serve files and listings from one location under one URI prefix."""

    __slots__ = ("config", "mime_types")

    def __init__(
        self,
        location: str | os.PathLike[str] | Callable[[str], str | None] | None = None,
        path: str = "/",
        index_file: str | Sequence[str] | None = None,
        directory_list: bool = False,
        charset: str | None = "utf-8",
        mime_types: MimeTypes | None = None,
        config: DirectoryConfig | None = None,
    ) -> None:
        """
        Initialize directory.

        Args:
            location: Filesystem directory, or callable mapping URI to path.
            path: URI prefix the directory is mounted on.
            index_file: Index file name(s), tried in order.
            directory_list: Allow HTML listings.
            charset: Charset for textual content types.
            mime_types: Extension lookup table.
            config: Prebuilt DirectoryConfig; other options are ignored.
        """
        self.config = config or DirectoryConfig(
            location,
            path=path,
            index_file=index_file,
            directory_list=directory_list,
            charset=charset,
        )
        self.mime_types = mime_types or DEFAULT_MIME_TYPES

    @property
    def path(self) -> str:
        return self.config.path

    @property
    def location(self) -> str | None:
        return self.config.location

    @property
    def charset(self) -> str:
        return self.config.charset

    def filename(self, uri: str) -> str | None:
        """Convert a URI path into a filesystem path.

        A custom mapper may return None when the URI has no file.

        Raises:
            PathTranslationError: uri is outside this directory's prefix.
        """
        return self.config.translator(uri)

    def handle(self, request: HttpRequest, uri: str | None = None) -> Response | None:
        """
        Answer a request for uri (default: the request path).

        Returns:
            Response, or None when nothing exists at the translated path.
        """
        if uri is None:
            uri = request.path
        item = self.filename(uri)
        if item is None:
            return None

        try:
            st = os.stat(item)
        except OSError:
            return None

        if stat.S_ISREG(st.st_mode):
            return self._file_response(request, item)

        if not stat.S_ISDIR(st.st_mode):
            return Response(status_code=403)

        if not uri.endswith("/"):
            return Response(status_code=307, headers={"Location": quote(uri + "/")})

        for index_name in self.config.index_files:
            index_path = os.path.join(item, index_name)
            if os.path.isfile(index_path):
                return self._file_response(request, index_path)

        if not self.config.directory_list:
            return Response(
                "no directory lists",
                status_code=403,
                media_type="text/plain",
                reason="no directory lists",
            )

        return self._list_response(request, uri, item)

    def _file_response(self, request: HttpRequest, filename: str) -> Response:
        if not os.path.isfile(filename):
            return Response(status_code=404)

        try:
            fh = open(filename, "rb")
        except OSError:
            return Response(status_code=403)

        with fh:
            st = os.fstat(fh.fileno())
            mtime = int(st.st_mtime)
            etag = f"{st.st_dev}-{st.st_ino}-{mtime}"

            has_etag = request.if_none_match
            if has_etag is not None and has_etag == etag:
                return Response(status_code=304, reason="match etag")

            has_mtime = request.if_modified_since
            if has_mtime is not None and has_mtime >= mtime:
                return Response(status_code=304, reason="unchanged")

            headers = [
                ("Content-Type", self.mime_types.content_type(filename, self.charset)),
                ("Last-Modified", formatdate(mtime, usegmt=True)),
                ("ETag", etag),
            ]
            return Response(fh.read(), status_code=200, headers=headers)

    def _list_response(self, request: HttpRequest, uri: str, dirname: str) -> Response:
        entries = self.list(dirname)
        page = render_listing(dirname, entries, up=uri != "/")
        return Response(
            page.encode("utf-8"),
            status_code=200,
            headers={"Content-Type": f"text/html; charset={self.charset}"},
        )

    def list(
        self,
        dirname: str,
        names: Callable[[str], bool] | re.Pattern[str] | None = None,
        filter: Callable[[DirEntry], bool] | None = None,
        hide_symlinks: bool = False,
    ) -> dict[str, DirEntry]:
        """Return ``{name: DirEntry}`` for dirname; see ``list_directory``."""
        return list_directory(dirname, names=names, filter=filter, hide_symlinks=hide_symlinks)

    def __repr__(self) -> str:
        return f"Directory(path={self.path!r}, location={self.location!r})"
