"""Application settings."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 8788
    debug: bool = False

    # Use only the trash can in the home directory, never an external one
    only_home_trash: bool = False
    # Copy+delete into the home trash when rename(2) fails (cross-device)
    home_fallback_copy: bool = False
    # Default: $XDG_DATA_HOME/Trash
    home_trash_dir: Optional[Path] = None
    # rm(1)-like put: refuse directories unless recursive, or empty with dir
    put_rm_mode: bool = False

    model_config = {"env_prefix": "TRASHBIN_"}

    @field_validator("home_trash_dir", mode="before")
    @classmethod
    def _absolute_trash_dir(cls, v):
        # An empty override means "not set"
        if v is None or not str(v).strip():
            return None
        return Path(v).expanduser().absolute()


settings = Settings()
