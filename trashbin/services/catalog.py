"""Scanning trash directories into a filtered, sorted catalog."""

import logging
import os
import stat
from collections import Counter
from pathlib import Path
from typing import Optional

from ..errors import InvalidOptionError, NotFoundError, TrashInfoParseError
from ..models.common import MULTIPLE_DIRECTORIES, Group, TrashedFile
from ..models.scan import CatalogOptions, CatalogResult
from ..models.trashdir import TrashDirectory
from ..xdg.dirsizes import DirSizeCache
from ..xdg.environment import TrashEnvironment
from ..xdg.trashdir import MountResolver
from ..xdg.trashinfo import TRASHINFO_SUFFIX, read_trashinfo
from .filters import matches_before_size, matches_size, sort_files

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(self, env: TrashEnvironment, resolver: Optional[MountResolver] = None):
        self.env = env
        self.resolver = resolver or MountResolver(env)

    def open(self, options: Optional[CatalogOptions] = None) -> CatalogResult:
        """Scan the trash and return the files matching ``options``.

        Raises InvalidOptionError before touching any trash directory when
        the options name unusable paths, and NotFoundError when there is no
        trash directory or no file matched. Unreadable trash directories
        and broken .trashinfo files are logged and skipped.
        """
        options = self._prepare(options or CatalogOptions())
        trash_dirs = self._trash_dirs(options)

        result = CatalogResult(with_size=options.needs_size)
        hits: Counter[str] = Counter()

        for trash_dir in trash_dirs:
            logger.debug(f"Reading trash directory {trash_dir.dir}")
            files = self._scan_trash_dir(trash_dir, options, result)
            if files is None:
                continue

            result.trash_dirs.append(str(trash_dir.dir))
            logger.debug(f"Found {len(files)} trashed files in {trash_dir.dir}")
            if files:
                files = sort_files(files, options.sort_by, options.ascending)
                result.files_by_trash_dir[str(trash_dir.dir)] = files
                result.files.extend(files)
                hits.update(f.original_path for f in files)

        result.hit_by_path = dict(hits)

        if not result.files:
            raise NotFoundError("trashed files", result)

        result.files = sort_files(result.files, options.sort_by, options.ascending)
        if options.limit_last and len(result.files) > options.limit_last:
            result.files = result.files[-options.limit_last:]

        return result

    def _prepare(self, options: CatalogOptions) -> CatalogOptions:
        update = {}

        if options.directory is not None:
            update["directory"] = Path(os.path.abspath(options.directory))

        if options.trash_dir is not None:
            trash_dir = options.trash_dir
            if not trash_dir.is_absolute():
                raise InvalidOptionError("trash_dir is not absolute path")
            if not trash_dir.exists():
                raise InvalidOptionError(f"trash_dir must be an existing directory: {trash_dir}")
            if not trash_dir.is_dir():
                raise InvalidOptionError(f"trash_dir must be a directory: {trash_dir}")
            update["trash_dir"] = Path(os.path.normpath(trash_dir))

        return options.model_copy(update=update) if update else options

    def _trash_dirs(self, options: CatalogOptions) -> list[TrashDirectory]:
        if options.trash_dir is not None:
            logger.debug(f"Using manual trash directory {options.trash_dir}")
            return [TrashDirectory.manual(options.trash_dir)]

        trash_dirs = self.resolver.enumerate_all()
        if not trash_dirs:
            raise NotFoundError("trash directories", CatalogResult())
        logger.debug(f"Found {len(trash_dirs)} trash directories")
        return trash_dirs

    def _scan_trash_dir(
        self,
        trash_dir: TrashDirectory,
        options: CatalogOptions,
        result: CatalogResult,
    ) -> Optional[list[TrashedFile]]:
        """Matching files of one trash directory, or None if it is unusable.

        Orphaned metadata is appended to ``result.orphans`` regardless of
        the filters.
        """
        try:
            # key: name under files/, value: is a directory
            file_entries = {
                e.name: e.is_dir(follow_symlinks=False)
                for e in os.scandir(trash_dir.files_dir)
            }
            info_entries = sorted(
                (e for e in os.scandir(trash_dir.info_dir)
                 if e.name.endswith(TRASHINFO_SUFFIX) and e.is_file(follow_symlinks=False)),
                key=lambda e: e.name,
            )
        except FileNotFoundError:
            logger.debug(f"No files/ or info/ in {trash_dir.dir}, skipped")
            return None
        except OSError as e:
            logger.warning(f"Cannot read trash directory {trash_dir.dir}, skipped: {e}")
            return None

        cache = DirSizeCache.read(trash_dir.dir_sizes_path) if options.needs_size else None

        files = []
        for ent in info_entries:
            if ent.name.startswith("._"):
                # macOS resource fork
                logger.debug(f"Skipped resource fork {ent.path}")
                continue

            try:
                info = read_trashinfo(ent.path)
            except TrashInfoParseError as e:
                logger.warning(f"Failed to parse {ent.path}, skipped: {e}")
                continue
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to open {ent.path}, skipped: {e}")
                continue

            original_path = info.path
            if not os.path.isabs(original_path):
                original_path = os.path.join(trash_dir.root, original_path)
            original_path = os.path.normpath(original_path)

            trash_name = ent.name[: -len(TRASHINFO_SUFFIX)]
            file = TrashedFile(
                name=os.path.basename(original_path),
                original_path=original_path,
                trash_path=str(trash_dir.files_dir / trash_name),
                trash_info_path=ent.path,
                deleted_at=info.deletion_date,
                is_dir=file_entries.get(trash_name, False),
            )

            if trash_name not in file_entries:
                logger.debug(f"No trashed file for {ent.path}, listed as orphan")
                result.orphans.append(file)
                continue

            if not matches_before_size(file, options):
                continue

            if cache is not None:
                file = self._with_size(file, trash_name, cache)

            if not matches_size(file.size, options):
                continue

            files.append(file)

        if cache is not None and cache.needs_save(options.unfiltered):
            logger.debug(f"Saving directorysizes cache (truncate={options.unfiltered})")
            try:
                cache.save(trash_dir.dir, truncate=options.unfiltered)
            except OSError as e:
                logger.warning(f"Failed to save {trash_dir.dir_sizes_path}: {e}")

        return files

    def _with_size(self, file: TrashedFile, trash_name: str, cache: DirSizeCache) -> TrashedFile:
        try:
            st = os.lstat(file.trash_path)
        except OSError as e:
            logger.warning(f"Cannot lstat {file.trash_path} for its size: {e}")
            return file

        is_dir = stat.S_ISDIR(st.st_mode)
        update = {"mode": st.st_mode, "is_dir": is_dir}
        if not is_dir:
            update["size"] = st.st_size
            return file.model_copy(update=update)

        # A changed .trashinfo mtime marks the cached size as stale
        try:
            info_mtime = int(os.stat(file.trash_info_path).st_mtime)
        except OSError as e:
            logger.warning(f"Cannot stat {file.trash_info_path} for directory size: {e}")
            return file.model_copy(update=update)

        update["size"] = cache.lookup_or_compute(trash_name, file.trash_path, info_mtime)
        return file.model_copy(update=update)


def to_groups(files: list[TrashedFile]) -> list[Group]:
    """Group files by deletion time, most recent first.

    Deletion dates have one-second resolution, so separate operations done
    within the same second end up in the same group.
    """
    by_deleted_at: dict = {}
    for file in files:
        by_deleted_at.setdefault(file.deleted_at, []).append(file)

    groups = []
    for deleted_at, members in by_deleted_at.items():
        dirs = {os.path.dirname(f.original_path) for f in members}
        common = len(dirs) == 1
        groups.append(Group(
            dir=os.path.dirname(members[0].original_path) if common else MULTIPLE_DIRECTORIES,
            is_dir_common=common,
            deleted_at=deleted_at,
            files=members,
        ))

    groups.sort(key=lambda g: g.deleted_at, reverse=True)
    return groups
