"""Exceptions raised by the trash engine."""

from typing import Any, Optional


class TrashError(Exception):
    """Base exception for trashbin."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(TrashError):
    """No trash directories were found, or no trashed file matched.

    This is an expected empty result rather than a failure. ``result`` holds
    whatever the scan did see (visited directories, orphaned metadata).
    """

    def __init__(self, what: str, result: Any = None):
        super().__init__(f"not found: {what}")
        self.what = what
        self.result = result


class TrashInfoParseError(TrashError, ValueError):
    """A .trashinfo file could not be parsed."""


class DirSizeCacheParseError(TrashError, ValueError):
    """A directorysizes file could not be parsed."""


class InvalidOptionError(TrashError, ValueError):
    """Bad filter syntax or an unusable path was supplied."""


class ConflictError(TrashError):
    """Two or more selected files would be restored to the same path."""

    def __init__(self, paths: list[str]):
        super().__init__(
            "canceled: restore conflict detected",
            details={"paths": paths},
        )
        self.paths = paths


class TrashDirError(TrashError):
    """The trash directory for a path could not be determined."""


class TrashOperationError(TrashError):
    """Every attempt to move a file into a trash directory failed."""

    def __init__(self, path: str, reasons: list[str]):
        super().__init__(
            f"cannot trash {path!r}: " + "; ".join(reasons),
            details={"path": path, "reasons": reasons},
        )
        self.path = path
        self.reasons = reasons
