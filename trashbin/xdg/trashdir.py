"""Locating trash directories across mounted volumes.

Three kinds of trash directory are recognised:

1. the home trash, ``$XDG_DATA_HOME/Trash``;
2. ``$topdir/.Trash/$uid`` on other volumes, where ``$topdir/.Trash`` is
   created by an administrator with the sticky bit set;
3. ``$topdir/.Trash-$uid``, created on demand.
"""

import logging
import os
import stat
from pathlib import Path
from typing import Callable

from ..errors import TrashDirError
from ..models.trashdir import ResolvedTrash, TrashDirectory, TrashDirKind
from ..utils.fs import has_sticky_bit
from ..utils.mounts import find_mount_point, list_mount_points
from .environment import TrashEnvironment

logger = logging.getLogger(__name__)


class MountResolver:
    def __init__(
        self,
        env: TrashEnvironment,
        list_mounts: Callable[[], list[str]] = list_mount_points,
        is_mount: Callable[[str], bool] = os.path.ismount,
        realpath: Callable[[str], str] = os.path.realpath,
    ):
        self.env = env
        self._list_mounts = list_mounts
        self._is_mount = is_mount
        self._realpath = realpath

    def home_trash(self) -> TrashDirectory:
        return TrashDirectory(
            root=self.env.data_home,
            dir=self.env.home_trash_dir,
            kind=TrashDirKind.HOME,
        )

    def enumerate_all(self) -> list[TrashDirectory]:
        """Existing trash directories: the home trash first, then per mount.

        Nothing is created here. The files/ and info/ subdirectories are not
        checked.
        """
        found: list[TrashDirectory] = []

        home = self.home_trash()
        if home.dir.is_dir():
            found.append(home)
            logger.debug(f"Found home trash: {home.dir}")

        if self.env.only_home_trash:
            return found

        try:
            top_dirs = self._list_mounts()
        except OSError as e:
            logger.warning(f"Failed to read mount points, external trash is not used: {e}")
            return found

        seen = {d.dir for d in found}
        for top_dir in top_dirs:
            for trash_dir in self._existing_external(Path(top_dir)):
                if trash_dir.dir in seen:
                    continue
                seen.add(trash_dir.dir)
                found.append(trash_dir)
        return found

    def _existing_external(self, top_dir: Path) -> list[TrashDirectory]:
        found = []

        uid_dir = top_dir / ".Trash" / str(self.env.uid)
        try:
            self._check_shared_trash(top_dir)
            if uid_dir.is_dir():
                found.append(TrashDirectory(root=top_dir, dir=uid_dir, kind=TrashDirKind.EXTERNAL))
                logger.debug(f"Found external trash: {uid_dir}")
        except TrashDirError as e:
            if os.path.lexists(uid_dir):
                logger.warning(f"Ignored {uid_dir}: {e}")
        except OSError as e:
            logger.debug(f"Cannot inspect {top_dir}/.Trash: {e}")

        alt_dir = top_dir / f".Trash-{self.env.uid}"
        try:
            if alt_dir.is_dir():
                found.append(TrashDirectory(root=top_dir, dir=alt_dir, kind=TrashDirKind.EXTERNAL_ALT))
                logger.debug(f"Found external alternative trash: {alt_dir}")
        except OSError as e:
            logger.debug(f"Cannot inspect {alt_dir}: {e}")

        return found

    def resolve(self, path: str) -> ResolvedTrash:
        """Trash directory to use for ``path``, with the home trash as fallback.

        Files on the home trash's device always go to the home trash. Others
        use an external trash on their own volume when one is usable; if
        none is, ``error`` says why and the caller decides whether falling
        back to the home trash is acceptable.
        """
        home = self.home_trash()
        if self.env.only_home_trash:
            return ResolvedTrash(home=home)

        if self._same_device_as_home(path):
            return ResolvedTrash(home=home)

        try:
            top_dir = find_mount_point(path, self._is_mount, self._realpath)
        except (OSError, ValueError) as e:
            return ResolvedTrash(home=home, error=f"get mount point: {e}")

        top = Path(top_dir)
        attempts = [
            (TrashDirKind.EXTERNAL, self._use_external_trash),
            (TrashDirKind.EXTERNAL_ALT, self._use_external_trash_alt),
        ]
        error = None
        for kind, use_trash in attempts:
            try:
                trash_dir = use_trash(top)
            except (OSError, TrashDirError) as e:
                logger.debug(f"{kind.value} trash unusable on {top}: {e}")
                error = e
                continue
            return ResolvedTrash(
                home=home,
                external=TrashDirectory(root=top, dir=trash_dir, kind=kind),
            )

        return ResolvedTrash(home=home, error=f"external trash: {error}")

    def _same_device_as_home(self, path: str) -> bool:
        try:
            # do not follow the symlink itself
            st = os.lstat(path)
        except OSError as e:
            raise TrashDirError(f"home trash: {e}") from e

        trash_dir = self.env.home_trash_dir
        try:
            trash_st = os.stat(trash_dir)
        except FileNotFoundError:
            try:
                os.makedirs(trash_dir, mode=0o700, exist_ok=True)
                trash_st = os.stat(trash_dir)
            except OSError as e:
                raise TrashDirError(f"create home trash {trash_dir}: {e}") from e
        except OSError as e:
            raise TrashDirError(f"stat home trash {trash_dir}: {e}") from e

        return st.st_dev == trash_st.st_dev

    def _check_shared_trash(self, top_dir: Path) -> Path:
        """Validate ``$topdir/.Trash``: a real directory with the sticky bit."""
        shared = top_dir / ".Trash"
        try:
            st = os.lstat(shared)
        except FileNotFoundError:
            raise TrashDirError(".Trash not found")
        if stat.S_ISLNK(st.st_mode):
            raise TrashDirError(".Trash is symlink")
        if not stat.S_ISDIR(st.st_mode):
            raise TrashDirError(".Trash is not directory")
        if not has_sticky_bit(st):
            raise TrashDirError(".Trash sticky bit not set")
        return shared

    def _use_external_trash(self, top_dir: Path) -> Path:
        trash_dir = self._check_shared_trash(top_dir) / str(self.env.uid)
        os.makedirs(trash_dir, mode=0o700, exist_ok=True)
        return trash_dir

    def _use_external_trash_alt(self, top_dir: Path) -> Path:
        trash_dir = top_dir / f".Trash-{self.env.uid}"
        os.makedirs(trash_dir, mode=0o700, exist_ok=True)
        return trash_dir
