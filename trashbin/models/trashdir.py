"""Trash directory models."""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class TrashDirKind(str, Enum):
    HOME = "home"                  # $XDG_DATA_HOME/Trash
    EXTERNAL = "external"          # $topdir/.Trash/$uid
    EXTERNAL_ALT = "external_alt"  # $topdir/.Trash-$uid
    MANUAL = "manual"              # any directory given explicitly


class TrashDirectory(BaseModel):
    root: Path  # base for relative paths stored in .trashinfo
    dir: Path   # holds files/ and info/
    kind: TrashDirKind

    model_config = {"frozen": True}

    @classmethod
    def manual(cls, dir: Path) -> "TrashDirectory":
        dir = Path(dir)
        return cls(root=dir.parent, dir=dir, kind=TrashDirKind.MANUAL)

    @property
    def info_dir(self) -> Path:
        return self.dir / "info"

    @property
    def files_dir(self) -> Path:
        return self.dir / "files"

    @property
    def dir_sizes_path(self) -> Path:
        return self.dir / "directorysizes"

    @property
    def use_relative_path(self) -> bool:
        """External trash stores paths relative to the volume root."""
        return self.kind in (TrashDirKind.EXTERNAL, TrashDirKind.EXTERNAL_ALT)

    def create_dirs(self) -> None:
        os.makedirs(self.info_dir, mode=0o700, exist_ok=True)
        os.makedirs(self.files_dir, mode=0o700, exist_ok=True)


class ResolvedTrash(BaseModel):
    """Outcome of looking up the trash directory for one path.

    ``home`` is always present as the fallback. ``external`` is set when the
    path lives on another device and a usable external trash was found;
    otherwise ``error`` explains why the external lookup failed.
    """
    home: TrashDirectory
    external: Optional[TrashDirectory] = None
    error: Optional[str] = None
