"""Trash, restore and removal models."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .trashdir import TrashDirectory


class ConflictPolicy(str, Enum):
    FAIL = "fail"      # non-interactive: fail closed, never overwrite
    RENAME = "rename"  # always restore under a new unique name
    SKIP = "skip"      # always leave the trashed file where it is
    PROMPT = "prompt"  # ask a resolver callback for each conflict


class ConflictChoice(str, Enum):
    NEW_NAME = "new-name"
    SKIP = "skip"
    REPEAT_PREVIOUS = "repeat-prev"
    ABORT = "quit"


class OperationFailure(BaseModel):
    path: str
    trash_path: Optional[str] = None
    reason: str


class TrashFileResult(BaseModel):
    path: str
    trash_dir: TrashDirectory
    name: str  # final name under files/


class BatchResult(BaseModel):
    total: int = 0
    success: int = 0
    failures: list[OperationFailure] = Field(default_factory=list)

    def fail(self, path: str, reason: str, trash_path: Optional[str] = None) -> None:
        self.failures.append(OperationFailure(path=path, trash_path=trash_path, reason=reason))


class TrashBatchResult(BatchResult):
    trashed: list[TrashFileResult] = Field(default_factory=list)


class RestoredFile(BaseModel):
    original_path: str
    restored_path: str


class RestoreResult(BatchResult):
    restored: list[RestoredFile] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    aborted: bool = False


# Request bodies


class PutRequest(BaseModel):
    paths: list[str]
    force: bool = False  # ignore nonexistent files
    # rm(1)-like handling of directories; None uses the configured default
    rm_mode: Optional[bool] = None
    recursive: bool = False
    dir: bool = False  # with rm_mode, allow empty directories


class RestoreRequest(BaseModel):
    paths: list[str] = Field(default_factory=list)  # full original paths
    directory: Optional[Path] = None
    restore_to: Optional[Path] = None
    conflict: ConflictPolicy = ConflictPolicy.FAIL


class RestoreGroupRequest(BaseModel):
    deleted_at: datetime
    restore_to: Optional[Path] = None
    conflict: ConflictPolicy = ConflictPolicy.FAIL


class RemoveRequest(BaseModel):
    paths: list[str]  # full original paths


class PruneRequest(BaseModel):
    older_than_days: int = Field(default=0, ge=0)
    max_total_size: Optional[str] = None  # e.g. 5GB
    trash_dir: Optional[Path] = None
