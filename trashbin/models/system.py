"""Trash directory statistics models."""

from typing import Optional

from pydantic import BaseModel, Field

from .common import TrashedFile
from .recovery import BatchResult
from .trashdir import TrashDirKind


class TrashDirInfo(BaseModel):
    dir: str
    root: str
    kind: TrashDirKind


class TrashDirSummary(BaseModel):
    trash_dir: str
    items: int = 0
    size: int = 0


class TrashSummary(BaseModel):
    trash_dirs: list[TrashDirSummary] = Field(default_factory=list)
    total_items: int = 0
    total_size: int = 0


class PruneDirReport(BaseModel):
    trash_dir: str
    files: list[TrashedFile] = Field(default_factory=list)
    total: Optional[int] = None    # size mode only
    deleted: Optional[int] = None  # size mode only
    removed: BatchResult = Field(default_factory=BatchResult)


class PruneReport(BaseModel):
    trash_dirs: list[PruneDirReport] = Field(default_factory=list)


class MetafixReport(BaseModel):
    found: int = 0
    deleted: int = 0
    failures: list[str] = Field(default_factory=list)
