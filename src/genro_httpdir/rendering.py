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
HTML page for directory listings.

One table row per entry: flags, user, group, size, mtime and a link. Rows are
sorted by raw entry name; an "(up)" row linking to ``../`` comes first unless
the listing is the site root. Symlinks show an arrow and their target.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from html import escape
from urllib.parse import quote

from .listing import DirEntry

__all__ = ["render_listing"]

LISTING_STYLE = "TD { padding: 0 10px; }"

UP_ROW = '<tr><td colspan="5">&nbsp;</td><td><a href="../">(up)</a></td></tr>'


def _cell(value: object) -> str:
    return "" if value is None else escape(str(value))


def render_row(entry: DirEntry) -> str:
    """Render one ``<tr>`` for entry."""
    symdest = f" &rarr; {_cell(entry.symlink_dest)}" if entry.is_symlink else ""
    href = quote(entry.name)
    return (
        f"<tr><td>{_cell(entry.flags)}</td>\n"
        f"    <td>{_cell(entry.user)}</td>\n"
        f"    <td>{_cell(entry.group)}</td>\n"
        f'    <td align="right">{_cell(entry.size_nice)}</td>\n'
        f"    <td>{_cell(entry.mtime_nice)}</td>\n"
        f'    <td><a href="{href}">{_cell(entry.name)}</a>{symdest}</td></tr>'
    )


def render_listing(
    dirname: str,
    entries: Mapping[str, DirEntry],
    up: bool = True,
) -> str:
    """
    Render a full HTML listing page.

    Args:
        dirname: Directory path shown in the title and heading.
        entries: ``{raw_name: DirEntry}`` as returned by list_directory.
        up: Prepend the "(up)" row linking to the parent directory.

    Returns:
        The page as a string; the caller encodes it.
    """
    rows: list[str] = [UP_ROW] if up else []
    rows.extend(render_row(entries[name]) for name in sorted(entries))
    title = escape(dirname)
    generated = time.strftime("%a %b %d %H:%M:%S %Y")
    table = "\n".join(rows)
    return (
        f"<html><head><title>{title}</title>\n"
        f"<style>{LISTING_STYLE}</style></head>\n"
        f"<body>\n"
        f"<h1>Directory {title}</h1>\n"
        f"<table>\n{table}\n</table>\n"
        f"<p><i>Generated {generated}</i></p>\n"
        f"</body></html>\n"
    )
