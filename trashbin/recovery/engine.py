"""Move files into the trash, back out of it, or delete them for good."""

import logging
import os
import uuid
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..errors import ConflictError, InvalidOptionError, TrashError, TrashOperationError
from ..models.common import TrashedFile
from ..models.recovery import (
    BatchResult,
    ConflictChoice,
    ConflictPolicy,
    RestoredFile,
    RestoreResult,
    TrashBatchResult,
    TrashFileResult,
)
from ..models.trashdir import TrashDirectory
from ..utils.fs import copy_path, is_dot_path, is_real_dir, is_sub_path, remove_path
from ..xdg.environment import TrashEnvironment
from ..xdg.trashdir import MountResolver
from ..xdg.trashinfo import TrashInfo, save_trashinfo

logger = logging.getLogger(__name__)

# (file, conflicting restore path, whether repeat-previous is possible) -> choice
ConflictResolver = Callable[[TrashedFile, str, bool], ConflictChoice]


class MoveEngine:
    def __init__(self, env: TrashEnvironment, resolver: Optional[MountResolver] = None):
        self.env = env
        self.resolver = resolver or MountResolver(env)

    # Trash

    def trash(self, path: str, deleted_at: Optional[datetime] = None) -> TrashFileResult:
        """Move ``path`` into the trash directory that belongs to it.

        An external trash on the file's own volume is tried first, using
        rename(2) only. The home trash follows when the file shares its
        device, or as a fallback when copying is allowed. The first attempt
        that succeeds wins; if none does, TrashOperationError lists why each
        one failed.
        """
        path = os.path.abspath(path)
        deleted_at = deleted_at or datetime.now().replace(microsecond=0)

        logger.debug(f"Looking up trash directory for {path}")
        resolved = self.resolver.resolve(path)
        fallback = self.env.home_fallback_copy

        if resolved.error and not fallback:
            raise TrashOperationError(path, [f"lookup trash directory: {resolved.error}"])
        if resolved.error:
            logger.debug(f"Falling back to home trash: {resolved.error}")

        attempts: list[tuple[TrashDirectory, bool]] = []
        if resolved.external is not None:
            attempts.append((resolved.external, False))
            if fallback:
                attempts.append((resolved.home, True))
        else:
            attempts.append((resolved.home, fallback))

        reasons = []
        for trash_dir, allow_copy in attempts:
            try:
                name = self.trash_one(path, trash_dir, allow_copy, deleted_at)
            except OSError as e:
                logger.debug(f"Trashing {path} into {trash_dir.dir} failed: {e}")
                reasons.append(f"{trash_dir.kind.value} trash {trash_dir.dir}: {e}")
                continue
            logger.info(f"Trashed {path} to {trash_dir.dir}")
            return TrashFileResult(path=path, trash_dir=trash_dir, name=name)

        raise TrashOperationError(path, reasons)

    def trash_one(
        self,
        path: str,
        trash_dir: TrashDirectory,
        allow_copy_fallback: bool,
        deleted_at: Optional[datetime] = None,
    ) -> str:
        """Move ``path`` into ``trash_dir`` and return its name under files/.

        The .trashinfo is written before the move, so an interruption leaves
        at most an orphaned record. When the move fails the record is rolled
        back and the OSError propagates.
        """
        deleted_at = deleted_at or datetime.now().replace(microsecond=0)
        trash_dir.create_dirs()

        info_path = path
        if trash_dir.use_relative_path:
            rel = os.path.relpath(path, trash_dir.root)
            # Paths outside the root must stay absolute
            if is_sub_path(str(trash_dir.root), path) and rel != ".":
                info_path = rel

        name, rollback = save_trashinfo(
            trash_dir,
            os.path.basename(path),
            TrashInfo(path=info_path, deletion_date=deleted_at),
        )
        dst = str(trash_dir.files_dir / name)

        logger.debug(f"rename(2) {path} -> {dst}")
        try:
            os.rename(path, dst)
            return name
        except OSError as e:
            if not allow_copy_fallback:
                _rollback(rollback)
                raise
            logger.debug(f"rename(2) failed, copying instead: {e}")

        try:
            copy_path(path, dst)
        except OSError:
            _rollback(rollback)
            _discard(dst)
            raise

        # The copy is complete, so the record stays even if the source
        # cannot be fully removed.
        remove_path(path)
        return name

    def trash_many(
        self,
        paths: Iterable[str],
        force: bool = False,
        rm_mode: bool = False,
        recursive: bool = False,
        empty_dir: bool = False,
    ) -> TrashBatchResult:
        """Trash several paths, sharing one deletion time.

        Failures are collected and do not stop the batch. With ``force``
        nonexistent paths are ignored. With ``rm_mode`` directories are
        refused the way rm(1) refuses them: unless ``recursive`` is set, or
        ``empty_dir`` is set and the directory is empty.
        """
        result = TrashBatchResult()
        deleted_at = datetime.now().replace(microsecond=0)

        for path in paths:
            if is_dot_path(path):
                result.total += 1
                result.fail(path, "refusing to remove '.' or '..' directory")
                continue
            if not os.path.lexists(path):
                if not force:
                    result.total += 1
                    result.fail(path, "No such file or directory")
                continue

            if rm_mode:
                refusal = _rm_refusal(path, recursive, empty_dir)
                if refusal:
                    result.total += 1
                    result.fail(path, refusal)
                    continue

            result.total += 1
            try:
                trashed = self.trash(path, deleted_at)
            except TrashError as e:
                logger.error(e.message)
                result.fail(path, e.message)
                continue
            result.success += 1
            result.trashed.append(trashed)

        return result

    # Restore

    def restore_many(
        self,
        files: list[TrashedFile],
        restore_to: Optional[Path] = None,
        policy: ConflictPolicy = ConflictPolicy.FAIL,
        resolver: Optional[ConflictResolver] = None,
    ) -> RestoreResult:
        """Move trashed files back to their original (or an override) location.

        With the FAIL policy the whole batch is refused up front if two
        files would land on the same path, and a file whose destination
        already exists is reported as failed. The other policies decide per
        conflict: restore under a new name, skip, or ask ``resolver``.
        """
        if policy == ConflictPolicy.PROMPT and resolver is None:
            raise InvalidOptionError("prompt policy requires a conflict resolver")
        restore_to = check_restore_to(restore_to)

        targets = [(f, restore_path(f, restore_to)) for f in files]
        if policy == ConflictPolicy.FAIL:
            check_restore_conflicts(t for _, t in targets)

        result = RestoreResult(total=len(files))
        previous: Optional[ConflictChoice] = None
        repeat = False

        for file, target in targets:
            # rename(2) would silently replace an existing file
            if os.path.lexists(target):
                if policy == ConflictPolicy.FAIL:
                    result.fail(file.original_path, "restore path already exists", file.trash_path)
                    continue

                if policy == ConflictPolicy.RENAME:
                    choice = ConflictChoice.NEW_NAME
                elif policy == ConflictPolicy.SKIP:
                    choice = ConflictChoice.SKIP
                elif repeat:
                    choice = previous
                else:
                    choice = resolver(file, target, previous is not None)
                    if choice == ConflictChoice.REPEAT_PREVIOUS:
                        repeat = True
                        choice = previous or ConflictChoice.SKIP

                if choice == ConflictChoice.ABORT:
                    result.aborted = True
                    break
                previous = choice
                if choice == ConflictChoice.SKIP:
                    result.skipped.append(file.original_path)
                    continue
                target = f"{target}.{uuid.uuid4().hex[:12]}"
                logger.info(f"Restoring {file.original_path} to {target}")

            try:
                os.makedirs(os.path.dirname(target), exist_ok=True)
            except OSError as e:
                result.fail(file.original_path, f"mkdir restore path: {e}", file.trash_path)
                continue

            try:
                self._move_back(file, target)
            except OSError as e:
                result.fail(file.original_path, str(e), file.trash_path)
                continue

            try:
                os.remove(file.trash_info_path)
            except OSError as e:
                logger.warning(f"Restored {target} but cannot delete {file.trash_info_path}: {e}")

            result.success += 1
            result.restored.append(RestoredFile(original_path=file.original_path, restored_path=target))

        return result

    def _move_back(self, file: TrashedFile, target: str) -> None:
        logger.debug(f"rename(2) {file.trash_path} -> {target}")
        try:
            os.rename(file.trash_path, target)
            return
        except OSError as e:
            logger.debug(f"rename(2) failed, copying instead: {e}")

        try:
            copy_path(file.trash_path, target)
        except OSError as e:
            _discard(target)
            raise OSError(e.errno, f"fallback copy: {e}") from e

        try:
            remove_path(file.trash_path)
        except OSError as e:
            logger.warning(f"Restored {target} but cannot delete trashed file {file.trash_path}: {e}")

    # Remove

    def delete_permanently(self, files: list[TrashedFile]) -> BatchResult:
        result = BatchResult(total=len(files))
        for file in files:
            logger.debug(f"Removing {file.trash_path}")
            try:
                remove_path(file.trash_path)
            except FileNotFoundError:
                pass
            except OSError as e:
                result.fail(file.original_path, f"remove: {e}", file.trash_path)
                continue

            try:
                os.remove(file.trash_info_path)
            except OSError as e:
                logger.warning(f"Removed {file.trash_path} but cannot delete {file.trash_info_path}: {e}")
            result.success += 1
        return result


def restore_path(file: TrashedFile, restore_to: Optional[Path]) -> str:
    if restore_to is None:
        return file.original_path
    return os.path.join(str(restore_to), file.original_path.lstrip(os.sep))


def check_restore_to(restore_to: Optional[Path]) -> Optional[Path]:
    if restore_to is None:
        return None
    if not os.path.isdir(restore_to):
        raise InvalidOptionError(f"restore_to must be an existing directory: {restore_to}")
    return Path(os.path.abspath(restore_to))


def check_restore_conflicts(targets: Iterable[str]) -> None:
    counts = Counter(targets)
    conflicts = sorted(path for path, n in counts.items() if n >= 2)
    for path in conflicts:
        logger.error(f"Conflicting restore of {counts[path]} files to {path}")
    if conflicts:
        raise ConflictError(conflicts)


def _rollback(rollback: Callable[[], None]) -> None:
    try:
        rollback()
    except OSError as e:
        logger.warning(f"Failed to roll back trashinfo: {e}")


def _discard(path: str) -> None:
    """Remove a partial copy left by a failed fallback copy."""
    if not os.path.lexists(path):
        return
    try:
        remove_path(path)
    except OSError as e:
        logger.warning(f"Failed to remove partial copy {path}: {e}")


def _rm_refusal(path: str, recursive: bool, empty_dir: bool) -> Optional[str]:
    """Why rm(1) would refuse ``path`` without -r, or None if it would not."""
    if recursive or not is_real_dir(path):
        return None
    if not empty_dir:
        return "Is a directory"
    try:
        with os.scandir(path) as it:
            if next(it, None) is not None:
                return "Directory not empty"
    except OSError as e:
        return f"check dir empty: {e}"
    return None
