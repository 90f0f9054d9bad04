"""The ``directorysizes`` cache of a trash directory.

One line per trashed directory::

    <size in bytes> <mtime of the .trashinfo, unix seconds> <percent-encoded name>

An entry is valid only while its mtime equals the live mtime of the
directory's .trashinfo file. Lookups during a scan are collected separately
from the loaded entries, and the file written back is derived from both:
after a full scan only the entries seen in it are kept, after a filtered
scan the loaded entries are kept with the fresh results merged in.
"""

import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel

from ..errors import DirSizeCacheParseError
from ..utils.fs import dir_size
from .trashinfo import quote_path, unquote_path

logger = logging.getLogger(__name__)

CACHE_FILENAME = "directorysizes"


class DirSizeEntry(BaseModel):
    dir_name: str
    size: int
    mtime: int

    def to_line(self) -> str:
        return f"{self.size} {self.mtime} {quote_path(self.dir_name)}\n"


class DirSizeCache:
    def __init__(self, entries: Optional[dict[str, DirSizeEntry]] = None):
        self._stored: dict[str, DirSizeEntry] = dict(entries or {})
        # Entries confirmed or recomputed during the current scan
        self._results: dict[str, DirSizeEntry] = {}
        self._dropped: set[str] = set()
        self.updated = False

    @classmethod
    def load(cls, lines: Iterable[str]) -> "DirSizeCache":
        entries = {}
        for raw in lines:
            line = raw.rstrip("\r\n")
            if not line:
                continue
            cols = line.split(" ", 2)
            if len(cols) != 3:
                raise DirSizeCacheParseError(f"parse line: {line}")
            try:
                size = int(cols[0])
                mtime = int(cols[1])
            except ValueError as e:
                raise DirSizeCacheParseError(f"parse line: {line}") from e
            name = unquote_path(cols[2])
            entries[name] = DirSizeEntry(dir_name=name, size=size, mtime=mtime)
        return cls(entries)

    @classmethod
    def read(cls, path: Path) -> "DirSizeCache":
        """Load the cache file, treating a missing or broken file as empty."""
        try:
            with open(path, encoding="utf-8") as f:
                return cls.load(f)
        except FileNotFoundError:
            logger.debug(f"No directorysizes cache at {path}")
        except DirSizeCacheParseError as e:
            logger.warning(f"Failed to parse {path}, it will be recreated: {e}")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
        return cls()

    def lookup_or_compute(self, dir_name: str, path: str, mtime: int) -> Optional[int]:
        """Size of the trashed directory ``dir_name`` located at ``path``.

        ``mtime`` is the live mtime of its .trashinfo in unix seconds.
        Returns None when the size cannot be computed.
        """
        entry = self._stored.get(dir_name)
        if entry is not None and entry.mtime == mtime:
            self._results[dir_name] = entry
            return entry.size

        reason = "CACHE_NOT_HIT" if entry is None else "CACHE_STALE"
        logger.debug(f"Calculating directory size ({reason}): {path}")
        self.updated = True

        try:
            size = dir_size(path)
        except OSError as e:
            # The directory may be unreadable even though rename(2) worked
            logger.warning(f"Cannot calculate directory size of {path}: {e}")
            self._stored.pop(dir_name, None)
            self._results.pop(dir_name, None)
            self._dropped.add(dir_name)
            return None

        self._results[dir_name] = DirSizeEntry(dir_name=dir_name, size=size, mtime=mtime)
        return size

    def entries(self, truncate: bool) -> dict[str, DirSizeEntry]:
        """Entries to persist.

        ``truncate`` must only be set when the scan saw every trashed file;
        entries it did not see are then stale and dropped.
        """
        if truncate:
            return dict(self._results)
        merged = {k: v for k, v in self._stored.items() if k not in self._dropped}
        merged.update(self._results)
        return merged

    def needs_save(self, truncate: bool) -> bool:
        if self.updated:
            return True
        return truncate and bool(self._stored.keys() - self._results.keys())

    def to_text(self, truncate: bool) -> str:
        entries = self.entries(truncate)
        return "".join(entries[name].to_line() for name in sorted(entries))

    def save(self, trash_dir: Path, truncate: bool) -> None:
        """Write the cache via a temporary file and an atomic rename.

        The temporary file is first created in the system temp directory.
        Renaming it fails across devices (always for external trash), in
        which case it is copied into the trash directory and renamed there.
        """
        cache_path = Path(trash_dir) / CACHE_FILENAME
        fd, tmp_path = tempfile.mkstemp(prefix="directorysizes_trashbin_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.to_text(truncate))

            try:
                os.replace(tmp_path, cache_path)
                return
            except OSError as e:
                logger.debug(f"Rename of {tmp_path} failed, copying into {trash_dir}: {e}")

            dst_fd, dst_path = tempfile.mkstemp(prefix="directorysizes_trashbin_", dir=trash_dir)
            try:
                with os.fdopen(dst_fd, "w", encoding="utf-8") as dst, \
                        open(tmp_path, encoding="utf-8") as src:
                    shutil.copyfileobj(src, dst)
                os.replace(dst_path, cache_path)
            finally:
                with contextlib.suppress(FileNotFoundError):
                    os.remove(dst_path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp_path)
