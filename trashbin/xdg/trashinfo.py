"""Reading and writing .trashinfo metadata files.

A trashinfo file is a tiny desktop-entry style document::

    [Trash Info]
    Path=/home/user/foo%20bar.txt
    DeletionDate=2023-01-01T00:00:00

``Path`` is percent-encoded (``/`` kept, space as ``%20``) and may be
relative to the volume root for external trash directories.
``DeletionDate`` is local time without offset.

Refs:
    https://specifications.freedesktop.org/trash-spec/trashspec-latest.html
    https://specifications.freedesktop.org/desktop-entry-spec/latest/ar01s03.html
"""

import logging
import os
from datetime import datetime
from typing import Callable, Iterable
from urllib.parse import quote, unquote

from pydantic import BaseModel

from ..errors import TrashInfoParseError
from ..models.trashdir import TrashDirectory

logger = logging.getLogger(__name__)

TRASH_HEADER = "[Trash Info]"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
TRASHINFO_SUFFIX = ".trashinfo"


def quote_path(path: str) -> str:
    """Percent-encode a path, leaving '/' alone and encoding ' ' as %20."""
    return quote(path, safe="/", errors="surrogateescape")


def unquote_path(value: str) -> str:
    return unquote(value, errors="surrogateescape")


class TrashInfo(BaseModel):
    path: str               # decoded; absolute, or relative to the volume root
    deletion_date: datetime

    def to_text(self) -> str:
        return (
            f"{TRASH_HEADER}\n"
            f"Path={quote_path(self.path)}\n"
            f"DeletionDate={self.deletion_date.strftime(TIME_FORMAT)}\n"
        )


def parse_trashinfo(lines: Iterable[str]) -> TrashInfo:
    """Parse trashinfo content from a text stream or a list of lines.

    Keys are only read after the ``[Trash Info]`` header, and any later
    group ends the parse. When a key occurs several times the first usable
    occurrence wins.
    """
    header_found = False
    path = None
    deletion_date = None

    for raw in lines:
        line = raw.rstrip("\r\n")

        if line == TRASH_HEADER:
            header_found = True
            continue
        if line.startswith("["):
            break
        if not header_found or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if key == "Path" and path is None:
            path = unquote_path(value)
        elif key == "DeletionDate" and deletion_date is None:
            try:
                deletion_date = datetime.strptime(value, TIME_FORMAT)
            except ValueError:
                continue

    if not header_found or path is None or deletion_date is None:
        raise TrashInfoParseError("unable to parse trashinfo")

    return TrashInfo(path=path, deletion_date=deletion_date)


def read_trashinfo(info_path: str) -> TrashInfo:
    with open(info_path, encoding="utf-8", errors="surrogateescape") as f:
        return parse_trashinfo(f)


def save_trashinfo(
    trash_dir: TrashDirectory,
    filename: str,
    info: TrashInfo,
) -> tuple[str, Callable[[], None]]:
    """Atomically create the .trashinfo for ``filename`` in ``trash_dir``.

    Tries ``filename``, ``filename_2``, ``filename_3``... and takes the first
    name that is free under files/ and can be created exclusively under
    info/. O_EXCL makes concurrent writers pick different names instead of
    overwriting each other.

    Returns the chosen name and a rollback that deletes the new file.
    """
    revision = 1
    while True:
        name = filename if revision == 1 else f"{filename}_{revision}"
        revision += 1

        # A trashed file without metadata would be overwritten by rename(2)
        if os.path.lexists(trash_dir.files_dir / name):
            continue

        info_path = trash_dir.info_dir / (name + TRASHINFO_SUFFIX)
        try:
            fd = os.open(info_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        except FileExistsError:
            continue
        break

    def rollback() -> None:
        os.remove(info_path)

    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as f:
            f.write(info.to_text())
    except OSError:
        rollback()
        raise

    logger.debug(f"Saved trashinfo: {info_path}")
    return name, rollback
