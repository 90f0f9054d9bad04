"""freedesktop.org trash directory layout."""

from .environment import TrashEnvironment
from .trashdir import MountResolver
from .trashinfo import TrashInfo, parse_trashinfo, read_trashinfo, save_trashinfo
from .dirsizes import DirSizeCache, DirSizeEntry

__all__ = [
    "TrashEnvironment",
    "MountResolver",
    "TrashInfo",
    "parse_trashinfo",
    "read_trashinfo",
    "save_trashinfo",
    "DirSizeCache",
    "DirSizeEntry",
]
