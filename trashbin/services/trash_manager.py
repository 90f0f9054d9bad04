"""Wires the catalog, move engine and maintenance together for the API."""

import logging
from typing import Optional, TypeVar

from ..config import settings
from ..errors import InvalidOptionError, NotFoundError
from ..models.common import Group, TrashedFile
from ..models.recovery import (
    BatchResult,
    PutRequest,
    RemoveRequest,
    RestoreGroupRequest,
    RestoreRequest,
    RestoreResult,
    TrashBatchResult,
)
from ..models.scan import CatalogOptions, CatalogResult, QueryMode
from ..models.system import TrashDirInfo
from ..recovery.engine import MoveEngine
from ..xdg.environment import TrashEnvironment
from ..xdg.trashdir import MountResolver
from .catalog import Catalog, to_groups
from .maintenance import Maintenance

logger = logging.getLogger(__name__)

B = TypeVar("B", bound=BatchResult)


class TrashManager:
    def __init__(self, env: TrashEnvironment, resolver: Optional[MountResolver] = None):
        self.env = env
        self.resolver = resolver or MountResolver(env)
        self.catalog = Catalog(env, self.resolver)
        self.engine = MoveEngine(env, self.resolver)
        self.maintenance = Maintenance(self.catalog, self.engine)

    def trash_dirs(self) -> list[TrashDirInfo]:
        return [
            TrashDirInfo(dir=str(d.dir), root=str(d.root), kind=d.kind)
            for d in self.resolver.enumerate_all()
        ]

    def find(self, options: CatalogOptions) -> CatalogResult:
        return self.catalog.open(options)

    def groups(self, options: CatalogOptions) -> list[Group]:
        return to_groups(self.catalog.open(options).files)

    def put(self, request: PutRequest) -> TrashBatchResult:
        rm_mode = self.env.put_rm_mode if request.rm_mode is None else request.rm_mode
        return self.engine.trash_many(
            request.paths,
            force=request.force,
            rm_mode=rm_mode,
            recursive=request.recursive,
            empty_dir=request.dir,
        )

    def restore(self, request: RestoreRequest) -> RestoreResult:
        files, missing = self._select(request.paths, request.directory)
        result = self.engine.restore_many(files, request.restore_to, request.conflict)
        return _report_missing(result, missing)

    def restore_group(self, request: RestoreGroupRequest) -> RestoreResult:
        deleted_at = request.deleted_at
        if deleted_at.tzinfo is not None:
            # .trashinfo dates are local time without zone
            deleted_at = deleted_at.astimezone().replace(tzinfo=None)

        for group in to_groups(self.catalog.open().files):
            if group.deleted_at == deleted_at:
                logger.info(f"Restoring group of {len(group.files)} files deleted at {deleted_at}")
                return self.engine.restore_many(group.files, request.restore_to, request.conflict)
        raise NotFoundError(f"group deleted at {deleted_at.isoformat()}")

    def remove(self, request: RemoveRequest) -> BatchResult:
        files, missing = self._select(request.paths, None)
        return _report_missing(self.engine.delete_permanently(files), missing)

    def _select(self, paths: list[str], directory) -> tuple[list[TrashedFile], list[str]]:
        """Trashed files matching the exact ``paths``, plus the paths that matched nothing."""
        if not paths and directory is None:
            raise InvalidOptionError("either paths or directory is required")
        options = CatalogOptions(
            queries=paths,
            query_mode=QueryMode.FULL,
            directory=directory,
        )
        try:
            result = self.catalog.open(options)
        except NotFoundError:
            if not paths:
                raise
            result = CatalogResult()

        missing = [p for p in paths if not result.hits(p)]
        for path in missing:
            logger.warning(f"Not found in trash: {path}")
        return result.files, missing


def _report_missing(result: B, missing: list[str]) -> B:
    result.total += len(missing)
    for path in missing:
        result.fail(path, "not found in trash")
    return result


_manager: Optional[TrashManager] = None


def get_trash_manager() -> TrashManager:
    """Shared manager built from the application settings on first use."""
    global _manager
    if _manager is None:
        env = TrashEnvironment.from_settings(settings)
        logger.debug(f"Home trash: {env.home_trash_dir}")
        _manager = TrashManager(env)
    return _manager
