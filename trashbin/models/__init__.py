"""Data models."""

from .common import Group, TrashedFile
from .trashdir import ResolvedTrash, TrashDirectory, TrashDirKind
from .scan import CatalogOptions, CatalogResult, QueryMode, SortBy
from .recovery import (
    BatchResult,
    ConflictChoice,
    ConflictPolicy,
    OperationFailure,
    RestoreResult,
    TrashBatchResult,
    TrashFileResult,
)
from .system import MetafixReport, PruneReport, TrashSummary

__all__ = [
    "Group",
    "TrashedFile",
    "ResolvedTrash",
    "TrashDirectory",
    "TrashDirKind",
    "CatalogOptions",
    "CatalogResult",
    "QueryMode",
    "SortBy",
    "BatchResult",
    "ConflictChoice",
    "ConflictPolicy",
    "OperationFailure",
    "RestoreResult",
    "TrashBatchResult",
    "TrashFileResult",
    "MetafixReport",
    "PruneReport",
    "TrashSummary",
]
