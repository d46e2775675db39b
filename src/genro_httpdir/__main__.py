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
genro-httpdir CLI entry point.

Usage:
    genro-httpdir serve ./site              # Serve directories from site/config.yaml
    genro-httpdir serve ./site --port 9000  # Override port

The directory should contain a config.yaml with a ``directories`` section.
"""

from __future__ import annotations

import sys


def cmd_serve(argv: list[str]) -> int:
    """Run the directory server."""
    from .exceptions import ConfigError
    from .server import DirectoryServer
    from .server_config import ServerConfig

    config = ServerConfig(argv=argv)

    server_dir = config.server_dir
    if not server_dir.is_dir():
        print(f"Error: '{server_dir}' is not a directory.", file=sys.stderr)
        return 1

    try:
        server = DirectoryServer(config=config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not server.directories:
        print(f"Error: no directories configured in '{server_dir}'.", file=sys.stderr)
        return 1

    print("genro-httpdir starting...", flush=True)
    print(f"Server dir: {server_dir}", flush=True)
    print(f"Server: http://{config.server['host']}:{config.server['port']}", flush=True)
    for directory in server.directories:
        print(f"  {directory.path} -> {directory.location or 'custom mapper'}", flush=True)
    if config.server["reload"]:
        print("Mode: development (auto-reload enabled)", flush=True)
    print(flush=True)

    try:
        server.run()
    except KeyboardInterrupt:
        print("\nShutdown.")

    return 0


def main() -> int:
    """Main entry point."""
    if "--version" in sys.argv or "-v" in sys.argv:
        from . import __version__

        print(f"genro-httpdir {__version__}")
        return 0

    if "--help" in sys.argv or "-h" in sys.argv or len(sys.argv) == 1:
        print("Usage: genro-httpdir serve <server_dir> [options]")
        print()
        print("Arguments:")
        print("  server_dir        Directory holding config.yaml")
        print()
        print("Options:")
        print("  --host HOST       Server host (default: 127.0.0.1)")
        print("  --port PORT       Server port (default: 8000)")
        print("  --reload          Enable auto-reload")
        print("  --config FILE     Config file inside server_dir (default: config.yaml)")
        print("  --version, -v     Show version")
        print("  --help, -h        Show this help")
        return 0

    subcommand = sys.argv[1]
    if subcommand != "serve":
        print(f"Error: unknown subcommand '{subcommand}'", file=sys.stderr)
        return 1

    return cmd_serve(sys.argv[2:])


if __name__ == "__main__":
    sys.exit(main())
