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

"""Directory listing with ``ls -l`` style enrichment.

``list_directory()`` reads a directory and returns ``{name: DirEntry}``. Each
DirEntry carries the raw ``lstat`` fields (``stat`` when symlinks are hidden)
plus the derived values a listing page or a template needs:

    ======================  =================================================
    flags                   permission string, e.g. ``drwxr-xr-x``
    user / group            owner names, numeric id when the lookup fails
    size_nice               files only, e.g. ``500  ``, ``2.0kB``, ``3.0MB``
    mtime_nice              ``YYYY-MM-DD HH:MM:SS`` in local time
    symlink_dest            symlinks only, the raw link target
    symlink_dest_exists     symlinks only, whether the target exists
    ======================  =================================================

Directory entries get a trailing ``/`` appended to their display ``name``;
the mapping key is always the raw filename.

Filtering happens in two steps:

- ``names``: predicate (or compiled regex) on the raw filename, applied
  before any syscall. Default skips hidden files.
- ``filter``: predicate on the DirEntry after stat and classification, before
  the (more expensive) enrichment.

POSIX only: owner and group names come from ``pwd`` and ``grp``.
"""

from __future__ import annotations

import grp
import logging
import os
import pwd
import re
import stat
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

__all__ = [
    "DirEntry",
    "EntryKind",
    "list_directory",
    "permission_string",
    "human_size",
    "format_mtime",
]

logger = logging.getLogger("genro_httpdir")

NamePredicate = Callable[[str], bool]
EntryFilter = Callable[["DirEntry"], bool]

STAT_FIELDS = (
    "dev", "ino", "mode", "nlink", "uid", "gid", "rdev",
    "size", "atime", "mtime", "ctime", "blksize", "blocks",
)

FILE_TYPE_LETTERS: dict[int, str] = {
    stat.S_IFSOCK: "s",
    stat.S_IFLNK: "l",
    stat.S_IFREG: "-",
    stat.S_IFBLK: "b",
    stat.S_IFDIR: "d",
    stat.S_IFCHR: "c",
    stat.S_IFIFO: "p",
}

PERMISSION_TRIPLETS = ("---", "--x", "-w-", "-wx", "r--", "r-x", "rw-", "rwx")

# (rwx mask, shift, special bit, mark when the execute bit is set)
PERMISSION_CLASSES = (
    (stat.S_IRWXU, 6, stat.S_ISUID, "s"),
    (stat.S_IRWXG, 3, stat.S_ISGID, "s"),
    (stat.S_IRWXO, 0, stat.S_ISVTX, "t"),
)

SIZE_UNITS = ("kB", "MB", "GB")


class EntryKind(Enum):
    """Classification of a directory entry."""

    FILE = "FILE"
    DIRECTORY = "DIRECTORY"
    SYMLINK = "SYMLINK"
    OTHER = "OTHER"


def permission_string(mode: int) -> str:
    """Render mode bits the way ``ls -l`` does.

    >>> permission_string(0o100644)
    '-rw-r--r--'
    >>> permission_string(0o104755)
    '-rwsr-xr-x'
    >>> permission_string(0o041777)
    'drwxrwxrwt'
    >>> permission_string(0o102644)
    '-rw-r-Sr--'
    """
    parts = [FILE_TYPE_LETTERS.get(stat.S_IFMT(mode), "?")]
    for mask, shift, special, mark in PERMISSION_CLASSES:
        triplet = PERMISSION_TRIPLETS[(mode & mask) >> shift]
        if mode & special:
            triplet = triplet[:2] + (mark if triplet[2] == "x" else mark.upper())
        parts.append(triplet)
    return "".join(parts)


def human_size(size: int) -> str:
    """Format a byte count with 0 or 1 decimals and a kB/MB/GB unit.

    Sizes up to 1024 bytes keep a two-space unit so that columns line up.

    >>> human_size(500)
    '500  '
    >>> human_size(2048)
    '2.0kB'
    >>> human_size(3145728)
    '3.0MB'
    """
    value = float(size)
    unit = "  "
    for next_unit in SIZE_UNITS:
        if value > 1024:
            value /= 1024
            unit = next_unit
    if value >= 100:
        return f"{value:.0f}{unit}"
    return f"{value:.1f}{unit}"


def format_mtime(mtime: float) -> str:
    """Local time as ``YYYY-MM-DD HH:MM:SS``."""
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(mtime))


class DirEntry:
    """One entry of a directory listing.

    Built from a stat result, then enriched in place by ``list_directory``.
    Stat fields missing on the platform are None; time fields are whole
    seconds.
    """

    __slots__ = (
        "name",
        "path",
        "kind",
        *STAT_FIELDS,
        "flags",
        "user",
        "group",
        "size_nice",
        "mtime_nice",
        "symlink_dest",
        "symlink_dest_exists",
    )

    def __init__(self, name: str, path: str, st: os.stat_result, kind: EntryKind) -> None:
        self.name = name
        self.path = path
        self.kind = kind
        for field in STAT_FIELDS:
            value = getattr(st, f"st_{field}", None)
            if field in ("atime", "mtime", "ctime") and value is not None:
                value = int(value)
            setattr(self, field, value)
        self.flags: str | None = None
        self.user: str | None = None
        self.group: str | None = None
        self.size_nice: str | None = None
        self.mtime_nice: str | None = None
        self.symlink_dest: str | None = None
        self.symlink_dest_exists: bool | None = None

    @classmethod
    def from_stat(cls, name: str, path: str, st: os.stat_result, hide_symlinks: bool = False) -> DirEntry:
        """Create an entry, classifying it from the stat mode."""
        mode = st.st_mode
        if not hide_symlinks and stat.S_ISLNK(mode):
            kind = EntryKind.SYMLINK
        elif stat.S_ISDIR(mode):
            kind = EntryKind.DIRECTORY
        elif stat.S_ISREG(mode):
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        return cls(name, path, st, kind)

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind is EntryKind.SYMLINK

    @property
    def is_other(self) -> bool:
        return self.kind is EntryKind.OTHER

    def as_dict(self) -> dict[str, Any]:
        """Plain dict view for templates: every field plus kind and is_* flags."""
        result: dict[str, Any] = {slot: getattr(self, slot) for slot in self.__slots__}
        result["kind"] = self.kind.value
        result["is_file"] = self.is_file
        result["is_directory"] = self.is_directory
        result["is_symlink"] = self.is_symlink
        result["is_other"] = self.is_other
        return result

    def __repr__(self) -> str:
        return f"DirEntry(name={self.name!r}, kind={self.kind.value}, flags={self.flags!r})"


def _skip_hidden(name: str) -> bool:
    return not name.startswith(".")


def _name_predicate(names: NamePredicate | re.Pattern[str] | None) -> NamePredicate:
    if names is None:
        return _skip_hidden
    if isinstance(names, re.Pattern):
        pattern = names
        return lambda name: pattern.search(name) is not None
    if callable(names):
        return names
    raise TypeError(f"list_directory(names) must be a regexp or callable, not {names!r}")


def _stat_entry(path: str, hide_symlinks: bool) -> os.stat_result | None:
    """stat (following links) or lstat; None when the entry cannot be stat-ed."""
    if hide_symlinks:
        try:
            return os.stat(path)
        except FileNotFoundError:
            # dangling symlink: fall back to the link itself, classified OTHER
            pass
        except OSError as e:
            logger.debug(f"Skipping {path}: {e}")
            return None
    try:
        return os.lstat(path)
    except OSError as e:
        logger.debug(f"Skipping {path}: {e}")
        return None


def _lookup_name(cache: dict[int, str], ident: int, lookup: Callable[[int], Any]) -> str:
    if ident not in cache:
        try:
            cache[ident] = lookup(ident)[0]
        except KeyError:
            cache[ident] = str(ident)
    return cache[ident]


def list_directory(
    dirname: str,
    names: NamePredicate | re.Pattern[str] | None = None,
    filter: EntryFilter | None = None,
    hide_symlinks: bool = False,
) -> dict[str, DirEntry]:
    """Read a directory and return its enriched entries.

    Args:
        dirname: Directory to read.
        names: Predicate or compiled regex on the raw filename. Default
            skips names starting with a dot.
        filter: Predicate on the stat-ed, classified DirEntry. Entries for
            which it returns False are dropped before enrichment.
        hide_symlinks: Follow symlinks (``stat``) instead of reporting them
            (``lstat``). Dangling links then show up as OTHER.

    Returns:
        ``{raw_name: DirEntry}``. Empty when the directory cannot be read;
        entries that cannot be stat-ed or whose link cannot be read are left
        out.

    Raises:
        TypeError: ``names`` or ``filter`` has the wrong type.
    """
    prefilter = _name_predicate(names)
    if filter is not None and not callable(filter):
        raise TypeError(f"list_directory(filter) must be callable, not {filter!r}")

    try:
        with os.scandir(dirname) as scanner:
            found = [entry.name for entry in scanner]
    except OSError as e:
        logger.warning(f"Cannot read directory {dirname}: {e}")
        return {}

    users: dict[int, str] = {}
    groups: dict[int, str] = {}
    dirlist: dict[str, DirEntry] = {}

    for name in found:
        if not prefilter(name):
            continue
        path = os.path.join(dirname, name)
        st = _stat_entry(path, hide_symlinks)
        if st is None:
            continue
        entry = DirEntry.from_stat(name, path, st, hide_symlinks=hide_symlinks)

        if filter is not None and not filter(entry):
            continue

        if entry.is_symlink:
            try:
                dest = os.readlink(path)
            except OSError as e:
                logger.debug(f"Skipping {path}: {e}")
                continue
            entry.symlink_dest = dest
            entry.symlink_dest_exists = os.path.exists(os.path.join(dirname, dest))
        elif entry.is_file:
            entry.size_nice = human_size(entry.size)
        elif entry.is_directory:
            entry.name += "/"

        entry.user = _lookup_name(users, entry.uid, pwd.getpwuid)
        entry.group = _lookup_name(groups, entry.gid, grp.getgrgid)
        entry.flags = permission_string(entry.mode)
        entry.mtime_nice = format_mtime(entry.mtime)

        dirlist[name] = entry

    return dirlist
