"""Filesystem helpers shared by the catalog and the move engine."""

import os
import shutil
import stat


def disk_usage(st: os.stat_result) -> int:
    """Larger of apparent size and allocated blocks.

    Some filesystems do not report block counts, so neither value alone is
    reliable. Same as max(du -sB1, du -sb).
    """
    return max(st.st_size, getattr(st, "st_blocks", 0) * 512)


def _raise(err: OSError) -> None:
    raise err


def dir_size(path: str) -> int:
    """Recursive size of a directory, without following symlinks."""
    total = disk_usage(os.lstat(path))
    for root, dirs, files in os.walk(path, onerror=_raise):
        for name in dirs + files:
            total += disk_usage(os.lstat(os.path.join(root, name)))
    return total


def is_sub_path(parent: str, sub: str) -> bool:
    """True if ``sub`` is ``parent`` itself or lies underneath it."""
    rel = os.path.relpath(sub, parent)
    return rel != ".." and not rel.startswith(".." + os.sep)


def is_dot_path(path: str) -> bool:
    """True for '.', '..', './', '../.' and the like (same check as rm)."""
    base = os.path.basename(path.rstrip(os.sep))
    return base in (".", "..")


def has_sticky_bit(st: os.stat_result) -> bool:
    return bool(st.st_mode & stat.S_ISVTX)


def is_real_dir(path: str) -> bool:
    """Directory, and not a symlink to one."""
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        return False
    return stat.S_ISDIR(st.st_mode)


def copy_path(src: str, dst: str) -> None:
    """Recursively copy ``src`` to ``dst``, keeping symlinks as symlinks."""
    if is_real_dir(src):
        shutil.copytree(src, dst, symlinks=True)
    else:
        shutil.copy2(src, dst, follow_symlinks=False)


def remove_path(path: str) -> None:
    """Recursively remove a file or directory tree."""
    if is_real_dir(path):
        shutil.rmtree(path)
    else:
        os.unlink(path)
