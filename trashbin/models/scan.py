"""Catalog query models."""

import fnmatch
import re
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional, Pattern

from pydantic import BaseModel, ByteSize, Field, PrivateAttr, model_validator

from .common import TrashedFile


class SortBy(str, Enum):
    DATE = "date"
    SIZE = "size"
    NAME = "name"


class QueryMode(str, Enum):
    REGEX = "regex"      # any-of, re.search
    GLOB = "glob"        # any-of, whole path
    LITERAL = "literal"  # any-of, case-insensitive substring
    FULL = "full"        # exact path, case-sensitive


class CatalogOptions(BaseModel):
    """Everything that controls a catalog scan.

    Defaults select every trashed file in every trash directory, sorted by
    deletion date, oldest first, without computing sizes.
    """
    # Scan only this trash directory instead of discovering them
    trash_dir: Optional[Path] = None
    # Keep files originally located on or under this directory
    directory: Optional[Path] = None

    queries: list[str] = Field(default_factory=list)
    query_mode: QueryMode = QueryMode.REGEX

    sort_by: SortBy = SortBy.DATE
    ascending: bool = True

    newer_than_days: int = Field(default=0, ge=0)
    older_than_days: int = Field(default=0, ge=0)

    size_larger: Optional[ByteSize] = None
    size_smaller: Optional[ByteSize] = None

    with_size: bool = False
    limit_last: int = Field(default=0, ge=0)

    _patterns: list[Pattern[str]] = PrivateAttr(default_factory=list)
    _cutoff: Optional[datetime] = PrivateAttr(default=None)

    @model_validator(mode="after")
    def _validate(self) -> "CatalogOptions":
        if self.newer_than_days and self.older_than_days:
            raise ValueError("newer_than_days and older_than_days are mutually exclusive")
        if self.size_larger is not None and self.size_smaller is not None:
            raise ValueError("size_larger and size_smaller are mutually exclusive")

        patterns = []
        if self.query_mode == QueryMode.REGEX:
            for q in self.queries:
                try:
                    patterns.append(re.compile(q))
                except re.error as e:
                    raise ValueError(f"regex syntax in query is not valid: {q!r}: {e}") from e
        elif self.query_mode == QueryMode.GLOB:
            for q in self.queries:
                try:
                    patterns.append(re.compile(fnmatch.translate(q)))
                except re.error as e:
                    raise ValueError(f"glob syntax in query is not valid: {q!r}: {e}") from e
        self._patterns = patterns

        days = max(self.newer_than_days, self.older_than_days)
        if days:
            self._cutoff = datetime.now().replace(microsecond=0) - timedelta(days=days)
        return self

    @property
    def patterns(self) -> list[Pattern[str]]:
        return self._patterns

    @property
    def cutoff(self) -> Optional[datetime]:
        """Deletion-date boundary, computed once when the options are built."""
        return self._cutoff

    @property
    def newer(self) -> bool:
        return self.newer_than_days > 0

    @property
    def size_threshold(self) -> Optional[int]:
        if self.size_larger is not None:
            return int(self.size_larger)
        if self.size_smaller is not None:
            return int(self.size_smaller)
        return None

    @property
    def needs_size(self) -> bool:
        return self.with_size or self.size_threshold is not None or self.sort_by == SortBy.SIZE

    @property
    def unfiltered(self) -> bool:
        """True when the scan covers every trashed file."""
        return (
            not self.queries
            and self.size_threshold is None
            and self.cutoff is None
            and self.directory is None
        )


class CatalogResult(BaseModel):
    files: list[TrashedFile] = Field(default_factory=list)
    # .trashinfo exists but files/ has no counterpart
    orphans: list[TrashedFile] = Field(default_factory=list)
    trash_dirs: list[str] = Field(default_factory=list)
    files_by_trash_dir: dict[str, list[TrashedFile]] = Field(default_factory=dict)
    hit_by_path: dict[str, int] = Field(default_factory=dict)
    with_size: bool = False

    def hits(self, original_path: str) -> int:
        return self.hit_by_path.get(original_path, 0)
