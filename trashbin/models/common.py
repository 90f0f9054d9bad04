"""Core shared models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

MULTIPLE_DIRECTORIES = "(multiple directories)"


class TrashedFile(BaseModel):
    name: str                 # .vimrc
    original_path: str        # /home/user/.vimrc
    trash_path: str           # ~/.local/share/Trash/files/.vimrc
    trash_info_path: str      # ~/.local/share/Trash/info/.vimrc.trashinfo
    deleted_at: datetime      # local time, second precision
    is_dir: bool = False
    size: Optional[int] = None  # None when it could not be determined
    mode: Optional[int] = None

    model_config = {"frozen": True}


class Group(BaseModel):
    """Files trashed within the same second."""
    dir: str
    is_dir_common: bool = True
    deleted_at: datetime
    files: list[TrashedFile] = Field(default_factory=list)
