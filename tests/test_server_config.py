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

"""Tests for ServerConfig and DirectoryServer built from config.yaml."""

from __future__ import annotations

from pathlib import Path

import pytest

from genro_httpdir.exceptions import ConfigError
from genro_httpdir.server import DirectoryServer
from genro_httpdir.server_config import ServerConfig

CONFIG_YAML = """\
server:
  host: 0.0.0.0
  port: 9000

middleware:
  logging: on

directories:
  site:
    path: /
    location: public
    index_file: [home.html]
  pub:
    path: /pub/
    location: files
    directory_list: true
    charset: latin-1
"""


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ~/.genro-httpdir/config.yaml and GENRO_HTTPDIR_* out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ("SERVER_DIR", "HOST", "PORT", "RELOAD", "CONFIG"):
        monkeypatch.delenv(f"GENRO_HTTPDIR_{name}", raising=False)


@pytest.fixture
def server_dir(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "public").mkdir(parents=True)
    (root / "public" / "home.html").write_text("home")
    (root / "files").mkdir()
    (root / "config.yaml").write_text(CONFIG_YAML)
    return root


class TestServerConfig:
    """Tests for config loading."""

    def test_defaults_without_config_file(self, tmp_path: Path) -> None:
        config = ServerConfig(server_dir=str(tmp_path))
        assert config.server["host"] == "127.0.0.1"
        assert config.server["port"] == 8000
        assert config.server_dir == tmp_path.resolve()
        assert config.get_directory_specs() == {}

    def test_server_section(self, server_dir: Path) -> None:
        config = ServerConfig(server_dir=str(server_dir))
        assert config.server["host"] == "0.0.0.0"
        assert config.server["port"] == 9000

    def test_explicit_parameters_win(self, server_dir: Path) -> None:
        config = ServerConfig(server_dir=str(server_dir), port=9100)
        assert config.server["port"] == 9100

    def test_directory_specs(self, server_dir: Path) -> None:
        specs = ServerConfig(server_dir=str(server_dir)).get_directory_specs()
        assert set(specs) == {"site", "pub"}
        assert specs["site"]["location"] == str(server_dir.resolve() / "public")
        assert list(specs["site"]["index_file"]) == ["home.html"]
        assert specs["pub"]["directory_list"] is True
        assert specs["pub"]["charset"] == "latin-1"

    def test_directories(self, server_dir: Path) -> None:
        directories = ServerConfig(server_dir=str(server_dir)).directories()
        by_path = {d.path: d for d in directories}
        assert set(by_path) == {"/", "/pub/"}
        assert by_path["/"].config.index_files == ("home.html",)
        assert by_path["/pub/"].charset == "latin-1"

    def test_unknown_directory_option(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("directories:\n  site:\n    location: .\n    listing: true\n")
        with pytest.raises(ConfigError, match="unknown options: listing"):
            ServerConfig(server_dir=str(tmp_path)).get_directory_specs()

    def test_missing_location_directory(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("directories:\n  site:\n    location: nowhere\n")
        with pytest.raises(ConfigError, match="does not exist"):
            ServerConfig(server_dir=str(tmp_path)).directories()


class TestServerFromConfig:
    """Tests for DirectoryServer(config=...)."""

    @pytest.mark.asyncio
    async def test_serves_configured_directories(self, server_dir: Path) -> None:
        server = DirectoryServer(config=ServerConfig(server_dir=str(server_dir)))
        assert [d.path for d in server.directories] == ["/pub/", "/"]

        messages: list[dict] = []

        async def send(message: dict) -> None:
            messages.append(message)

        async def receive() -> dict:
            return {"type": "http.request", "body": b""}

        scope = {"type": "http", "method": "GET", "path": "/", "headers": []}
        await server(scope, receive, send)
        assert messages[0]["status"] == 200
        assert messages[1]["body"] == b"home"
