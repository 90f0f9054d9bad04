from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest

from trashbin.xdg.environment import TrashEnvironment
from trashbin.xdg.trashdir import MountResolver
from trashbin.xdg.trashinfo import TrashInfo


@pytest.fixture
def env(tmp_path) -> TrashEnvironment:
    home = tmp_path / "home"
    data_home = home / ".local" / "share"
    home.mkdir()
    return TrashEnvironment(
        home=home,
        data_home=data_home,
        home_trash_dir=data_home / "Trash",
        uid=1000,
    )


@pytest.fixture
def resolver(env) -> MountResolver:
    # No external volumes: only the home trash is discovered
    return MountResolver(env, list_mounts=lambda: [])


@pytest.fixture
def home_trash(env) -> Path:
    trash = env.home_trash_dir
    (trash / "files").mkdir(parents=True)
    (trash / "info").mkdir(parents=True)
    return trash


def add_trashed(
    trash: Path,
    name: str,
    original_path: str,
    deleted_at: datetime,
    content: Optional[str] = "x",
    is_dir: bool = False,
) -> Path:
    """Put an entry into ``trash`` the way a trash-in would leave it.

    With ``content=None`` only the .trashinfo is written (an orphan).
    """
    info = TrashInfo(path=original_path, deletion_date=deleted_at)
    (trash / "info" / f"{name}.trashinfo").write_text(info.to_text())

    target = trash / "files" / name
    if content is None:
        return target
    if is_dir:
        target.mkdir()
        (target / "inner.txt").write_text(content)
    else:
        target.write_text(content)
    return target
