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

"""genro-httpdir - Static files and directory listings over ASGI.

Main components:
    Directory: Maps a URI prefix onto a filesystem location
    DirectoryServer: ASGI entry point, mounts directories, runs uvicorn
    Response: HTTP response with automatic content-length
    HttpRequest: HTTP request wrapper with conditional GET headers

Listings:
    list_directory: Stat-enriched directory entries with filtering
    render_listing: HTML table page for a directory

Middleware:
    ErrorMiddleware: Exception handling and error responses
    AccessLogMiddleware: Access log with reason phrase and mount

Usage:
    from genro_httpdir import Directory, DirectoryServer

    server = DirectoryServer(directories=[Directory("./public", path="/")])
    server.run()  # Starts uvicorn

See config.yaml for configuration options.
"""

__version__ = "0.1.0"

from .datastructures import Headers, headers_from_scope
from .directory import CustomMapper, Directory, DirectoryConfig, StaticPrefix
from .exceptions import (
    ConfigError,
    HTTPException,
    HTTPForbidden,
    HTTPMethodNotAllowed,
    HTTPNotFound,
    PathTranslationError,
    Redirect,
)
from .listing import DirEntry, EntryKind, human_size, list_directory, permission_string
from .middleware import BaseMiddleware, middleware_chain
from .mime import DEFAULT_MIME_TYPES, MimeTypes
from .rendering import render_listing
from .request import HttpRequest
from .response import Response
from .server import DirectoryServer
from .server_config import ServerConfig
from .types import ASGIApp, Message, Receive, Scope, Send

__all__ = [
    "__version__",
    "ASGIApp",
    "BaseMiddleware",
    "ConfigError",
    "CustomMapper",
    "DEFAULT_MIME_TYPES",
    "DirEntry",
    "Directory",
    "DirectoryConfig",
    "DirectoryServer",
    "EntryKind",
    "HTTPException",
    "HTTPForbidden",
    "HTTPMethodNotAllowed",
    "HTTPNotFound",
    "Headers",
    "HttpRequest",
    "Message",
    "MimeTypes",
    "PathTranslationError",
    "Receive",
    "Redirect",
    "Response",
    "Scope",
    "Send",
    "ServerConfig",
    "StaticPrefix",
    "headers_from_scope",
    "human_size",
    "list_directory",
    "middleware_chain",
    "permission_string",
    "render_listing",
]
