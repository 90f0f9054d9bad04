"""Process environment resolved once at startup."""

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel

from ..config import Settings


class TrashEnvironment(BaseModel):
    home: Path                 # $HOME
    data_home: Path            # $XDG_DATA_HOME
    home_trash_dir: Path       # $XDG_DATA_HOME/Trash unless overridden
    uid: int
    only_home_trash: bool = False
    home_fallback_copy: bool = False
    put_rm_mode: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        environ: Optional[Mapping[str, str]] = None,
        uid: Optional[int] = None,
    ) -> "TrashEnvironment":
        environ = os.environ if environ is None else environ

        home = Path(environ.get("HOME") or Path.home())
        data_home = home / ".local" / "share"
        if environ.get("XDG_DATA_HOME"):
            data_home = Path(environ["XDG_DATA_HOME"]).absolute()

        home_trash_dir = data_home / "Trash"
        if settings.home_trash_dir is not None:
            home_trash_dir = settings.home_trash_dir
            os.makedirs(home_trash_dir, mode=0o700, exist_ok=True)

        return cls(
            home=home,
            data_home=data_home,
            home_trash_dir=home_trash_dir,
            uid=os.getuid() if uid is None else uid,
            only_home_trash=settings.only_home_trash,
            # Copying is the only way into the home trash from other devices
            home_fallback_copy=settings.home_fallback_copy or settings.only_home_trash,
            put_rm_mode=settings.put_rm_mode,
        )
