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

"""Server configuration - loads config sources and builds Directory objects.

config.yaml layout::

    server:
      host: 0.0.0.0
      port: 8080

    middleware:
      logging: on

    logging_middleware:
      level: INFO

    directories:
      site:
        path: /
        location: ./public
        index_file: [index.html, index.htm]
      pub:
        path: /pub/
        location: /srv/ftp/pub
        directory_list: true
        charset: latin-1
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from genro_toolbox import SmartOptions  # type: ignore[import-untyped]

from .directory import Directory
from .exceptions import ConfigError

__all__ = ["ServerConfig"]

DEFAULTS = {"host": "127.0.0.1", "port": 8000, "reload": False}

DIRECTORY_OPTIONS = ("path", "location", "index_file", "directory_list", "charset")


def _server_opts_spec(
    server_dir: str,
    host: str,
    port: int,
    reload: bool,
    config: str,
) -> None:
    """Reference function for SmartOptions type extraction (no defaults)."""


def _plain(value: Any) -> Any:
    if hasattr(value, "as_dict"):
        return value.as_dict()
    return value


class ServerConfig:
    """Handles server configuration loading and Directory instantiation."""

    __slots__ = ("_opts",)

    def __init__(
        self,
        server_dir: str | Path | None = None,
        host: str | None = None,
        port: int | None = None,
        reload: bool | None = None,
        argv: list[str] | None = None,
    ) -> None:
        self._opts = self._build_config(
            server_dir=server_dir,
            host=host,
            port=port,
            reload=reload,
            argv=argv or [],
        )

    def _build_config(
        self,
        server_dir: str | Path | None,
        host: str | None,
        port: int | None,
        reload: bool | None,
        argv: list[str],
    ) -> SmartOptions:
        """Build server configuration from multiple sources.

        Config precedence (later overrides earlier):
        1. Built-in DEFAULTS
        2. Global config: ~/.genro-httpdir/config.yaml
        3. Project config: <server_dir>/config.yaml (or --config)
        4. Environment variables: GENRO_HTTPDIR_*
        5. Command line arguments
        6. Explicit constructor parameters
        """
        parsed_opts = SmartOptions(_server_opts_spec, env="GENRO_HTTPDIR", argv=argv)
        # drop unset options so config.yaml values survive the merge
        env_argv_opts = SmartOptions(parsed_opts.as_dict(), ignore_none=True)

        caller_opts = SmartOptions(
            dict(server_dir=server_dir, host=host, port=port, reload=reload),
            ignore_none=True,
        )

        resolved_server_dir = Path(caller_opts["server_dir"] or env_argv_opts["server_dir"] or ".").resolve()

        global_config_path = Path.home() / ".genro-httpdir" / "config.yaml"
        if global_config_path.exists():
            global_config = SmartOptions(str(global_config_path))
        else:
            global_config = SmartOptions({})

        project_config_path = resolved_server_dir / (env_argv_opts["config"] or "config.yaml")
        if project_config_path.exists():
            project_config = SmartOptions(str(project_config_path))
        else:
            project_config = SmartOptions({})

        config = global_config + project_config

        server_opts = (
            SmartOptions(DEFAULTS)
            + (global_config["server"] or SmartOptions({}))
            + (project_config["server"] or SmartOptions({}))
            + env_argv_opts
            + caller_opts
        )
        server_opts["server_dir"] = resolved_server_dir

        config["server"] = server_opts
        return config

    @property
    def server(self) -> SmartOptions:
        """Server options (host, port, reload, server_dir)."""
        result: SmartOptions = self._opts["server"]
        return result

    @property
    def server_dir(self) -> Path:
        return Path(self.server["server_dir"])

    @property
    def middleware(self) -> Any:
        """Middleware configuration ({name: on/off}, list or string)."""
        return self._opts["middleware"] or {}

    def get_directory_specs(self) -> dict[str, dict[str, Any]]:
        """Return {name: Directory kwargs} for all configured directories.

        Relative locations are resolved against server_dir.

        Raises:
            ConfigError: A directory entry is not a mapping or has unknown keys.
        """
        directories = _plain(self._opts["directories"])
        if not directories:
            return {}
        result: dict[str, dict[str, Any]] = {}
        for name, options in directories.items():
            options = _plain(options)
            if isinstance(options, str):
                options = {"location": options}
            if not isinstance(options, dict):
                raise ConfigError(f"Directory '{name}' must be a mapping, not {options!r}")
            unknown = set(options) - set(DIRECTORY_OPTIONS)
            if unknown:
                raise ConfigError(f"Directory '{name}' has unknown options: {', '.join(sorted(unknown))}")
            kwargs = dict(options)
            location = kwargs.get("location")
            if isinstance(location, str) and location:
                kwargs["location"] = str(self.server_dir / location)
            kwargs["index_file"] = _plain(kwargs.get("index_file"))
            result[name] = kwargs
        return result

    def directories(self) -> list[Directory]:
        """Instantiate one Directory per configured entry."""
        return [Directory(**kwargs) for kwargs in self.get_directory_specs().values()]

    def __getitem__(self, name: str) -> Any:
        """Proxy bracket access to underlying opts."""
        return self._opts[name]


if __name__ == "__main__":
    config = ServerConfig()
    print(f"Server: {config.server['host']}:{config.server['port']}")
    print(f"Middleware: {config.middleware}")
    print(f"Directories: {list(config.get_directory_specs())}")
