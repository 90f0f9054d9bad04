"""Centralized catalog filtering logic.

Filters run in this order and stop at the first failure: directory scope,
query, deletion date. Size filtering happens after sizes are computed,
see ``matches_size``.
"""

from typing import Optional

from ..models.common import TrashedFile
from ..models.scan import CatalogOptions, QueryMode, SortBy
from ..utils.fs import is_sub_path


def matches_directory(file: TrashedFile, options: CatalogOptions) -> bool:
    if options.directory is None:
        return True
    return is_sub_path(str(options.directory), file.original_path)


def matches_query(file: TrashedFile, options: CatalogOptions) -> bool:
    if not options.queries:
        return True

    path = file.original_path
    mode = options.query_mode
    if mode == QueryMode.FULL:
        return path in options.queries
    if mode == QueryMode.LITERAL:
        lowered = path.lower()
        return any(q.lower() in lowered for q in options.queries)
    if mode == QueryMode.REGEX:
        return any(p.search(path) for p in options.patterns)
    # glob
    return any(p.match(path) for p in options.patterns)


def matches_date(file: TrashedFile, options: CatalogOptions) -> bool:
    cutoff = options.cutoff
    if cutoff is None:
        return True
    if options.newer:
        return file.deleted_at >= cutoff
    return file.deleted_at <= cutoff


def matches_before_size(file: TrashedFile, options: CatalogOptions) -> bool:
    return (
        matches_directory(file, options)
        and matches_query(file, options)
        and matches_date(file, options)
    )


def matches_size(size: Optional[int], options: CatalogOptions) -> bool:
    """Size threshold. Unknown sizes never pass an active size filter."""
    threshold = options.size_threshold
    if threshold is None:
        return True
    if size is None:
        return False
    if options.size_larger is not None:
        return size >= threshold
    return size <= threshold


_SORT_KEYS = {
    SortBy.DATE: lambda f: f.deleted_at,
    # unknown sizes sort below every known size
    SortBy.SIZE: lambda f: -1 if f.size is None else f.size,
    SortBy.NAME: lambda f: f.original_path,
}


def sort_files(files: list[TrashedFile], sort_by: SortBy, ascending: bool) -> list[TrashedFile]:
    return sorted(files, key=_SORT_KEYS[sort_by], reverse=not ascending)
