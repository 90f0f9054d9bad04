"""Prune, summarise and repair trash directories."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ByteSize, TypeAdapter, ValidationError

from ..errors import InvalidOptionError, NotFoundError
from ..models.common import TrashedFile
from ..models.scan import CatalogOptions, CatalogResult, SortBy
from ..models.system import (
    MetafixReport,
    PruneDirReport,
    PruneReport,
    TrashDirSummary,
    TrashSummary,
)
from ..recovery.engine import MoveEngine
from .catalog import Catalog

logger = logging.getLogger(__name__)

_byte_size = TypeAdapter(ByteSize)


def parse_size(value: str) -> int:
    """Parse a human size such as ``5GB`` or ``10MiB`` into bytes."""
    try:
        return int(_byte_size.validate_python(value))
    except ValidationError as e:
        raise InvalidOptionError(f"size unit is invalid: {value!r}") from e


def select_prune(
    files: list[TrashedFile], max_total: int
) -> tuple[list[TrashedFile], int, int]:
    """Pick files to delete so the remaining total is at most ``max_total``.

    ``files`` must be sorted by size, smallest first. Files of unknown size
    are never selected and do not count towards the total. Once the running
    total exceeds the limit, that file and every larger one are selected.

    Returns ``(prune, deleted, total)``; ``prune`` is empty when the total
    already fits.
    """
    start = None
    deleted = 0
    total = 0
    for i, f in enumerate(files):
        if f.size is None:
            continue
        total += f.size
        if start is None and total > max_total:
            start = i
        if start is not None:
            deleted += f.size

    if start is None:
        return [], 0, total
    return [f for f in files[start:] if f.size is not None], deleted, total


class Maintenance:
    def __init__(self, catalog: Catalog, engine: MoveEngine):
        self.catalog = catalog
        self.engine = engine

    def prune(
        self,
        older_than_days: int = 0,
        max_total_size: Optional[str] = None,
        trash_dir: Optional[Path] = None,
    ) -> PruneReport:
        """Permanently delete old files, or the largest ones, per trash directory.

        With only ``older_than_days`` every file deleted before the cutoff
        goes. With ``max_total_size`` the largest files go until each trash
        directory fits; combined, recently deleted files are left out of the
        calculation and are never pruned.
        """
        if not older_than_days and not max_total_size:
            raise InvalidOptionError("either older_than_days or max_total_size is required")

        size_mode = bool(max_total_size)
        max_total = parse_size(max_total_size) if size_mode else 0

        options = CatalogOptions(
            trash_dir=trash_dir,
            sort_by=SortBy.SIZE if size_mode else SortBy.DATE,
            ascending=True,
            with_size=size_mode,
            older_than_days=older_than_days,
        )
        report = PruneReport()
        try:
            result = self.catalog.open(options)
        except NotFoundError as e:
            logger.info(f"Nothing to prune: {e.message}")
            return report

        for dir_name in result.trash_dirs:
            files = result.files_by_trash_dir.get(dir_name, [])
            if not files:
                continue

            dir_report = PruneDirReport(trash_dir=dir_name)
            if size_mode:
                files, deleted, total = select_prune(files, max_total)
                dir_report.total = total
                dir_report.deleted = deleted
                if not files:
                    logger.info(
                        f"Trash size {total} is within {max_total} in {dir_name}, nothing pruned"
                    )
                    report.trash_dirs.append(dir_report)
                    continue

            logger.info(f"Pruning {len(files)} files in {dir_name}")
            dir_report.files = files
            dir_report.removed = self.engine.delete_permanently(files)
            report.trash_dirs.append(dir_report)

        return report

    def summary(self) -> TrashSummary:
        """Item count and total known size of each trash directory."""
        try:
            result = self.catalog.open(CatalogOptions(with_size=True))
        except NotFoundError as e:
            result = e.result or CatalogResult()

        summary = TrashSummary()
        for dir_name in result.trash_dirs:
            files = result.files_by_trash_dir.get(dir_name, [])
            size = sum(f.size for f in files if f.size is not None)
            summary.trash_dirs.append(TrashDirSummary(trash_dir=dir_name, items=len(files), size=size))
            summary.total_items += len(files)
            summary.total_size += size
        return summary

    def orphans(self) -> list[TrashedFile]:
        try:
            result = self.catalog.open(CatalogOptions(sort_by=SortBy.NAME))
        except NotFoundError as e:
            result = e.result or CatalogResult()
        return result.orphans

    def metafix(self) -> MetafixReport:
        """Delete .trashinfo files that have no trashed file."""
        orphans = self.orphans()
        report = MetafixReport(found=len(orphans))
        for f in orphans:
            try:
                os.remove(f.trash_info_path)
            except OSError as e:
                logger.error(f"Cannot remove .trashinfo {f.trash_info_path}: {e}")
                report.failures.append(f.trash_info_path)
                continue
            report.deleted += 1
        if orphans:
            logger.info(f"Deleted {report.deleted} of {report.found} orphaned .trashinfo files")
        return report
