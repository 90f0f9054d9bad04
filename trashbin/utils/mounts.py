"""Mount table access."""

import logging
import os
from typing import Callable

import psutil

logger = logging.getLogger(__name__)

# Pseudo filesystems that never hold a trash can
SKIP_FS_TYPES = frozenset({
    "autofs",
    "binfmt_misc",
    "bpf",
    "cgroup",
    "cgroup2",
    "configfs",
    "debugfs",
    "devpts",
    "devtmpfs",
    "fusectl",
    "hugetlbfs",
    "mqueue",
    "nsfs",
    "proc",
    "pstore",
    "securityfs",
    "sysfs",
    "tracefs",
})


def _is_read_only(opts: str) -> bool:
    return "ro" in opts.split(",")


def list_mount_points() -> list[str]:
    """Writable, real mount points in mount-table order, without duplicates.

    Raises OSError if the mount table cannot be read.
    """
    partitions = psutil.disk_partitions(all=True)

    mount_points = []
    seen = set()
    for part in partitions:
        if part.fstype in SKIP_FS_TYPES:
            continue
        if _is_read_only(part.opts):
            continue
        if part.mountpoint in seen:
            logger.debug(f"Duplicated mount point skipped: {part.mountpoint}")
            continue
        seen.add(part.mountpoint)
        mount_points.append(part.mountpoint)
    return mount_points


def find_mount_point(
    path: str,
    is_mount: Callable[[str], bool] = os.path.ismount,
    realpath: Callable[[str], str] = os.path.realpath,
) -> str:
    """Mount point holding ``path`` (same as ``df PATH``).

    Walks the symlink-resolved parents of ``path`` upwards until one is a
    mount point. The root directory always is.
    """
    if not path:
        raise ValueError("empty path has no mount point")

    candidate = realpath(os.path.dirname(path) or ".")
    while True:
        if candidate == os.sep:
            logger.debug(f"Root mount point detected for {path}")
            return candidate
        if candidate in ("", "."):
            raise ValueError(f"cannot determine mount point of {path!r}")
        if is_mount(candidate):
            return candidate
        candidate = os.path.dirname(candidate)
