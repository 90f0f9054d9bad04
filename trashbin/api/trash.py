"""Trash listing API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..errors import TrashError
from ..models.scan import CatalogOptions
from .deps import TrashManager, get_trash_manager, http_error

router = APIRouter(prefix="/trash", tags=["trash"])


@router.get("/dirs")
def list_trash_dirs(manager: TrashManager = Depends(get_trash_manager)):
    return manager.trash_dirs()


@router.post("/find")
def find_trashed_files(
    options: Optional[CatalogOptions] = None,
    manager: TrashManager = Depends(get_trash_manager),
):
    try:
        return manager.find(options or CatalogOptions())
    except TrashError as e:
        raise http_error(e)


@router.post("/groups")
def list_groups(
    options: Optional[CatalogOptions] = None,
    manager: TrashManager = Depends(get_trash_manager),
):
    """Trashed files grouped by deletion time, most recent first."""
    try:
        return manager.groups(options or CatalogOptions())
    except TrashError as e:
        raise http_error(e)


@router.get("/orphans")
def list_orphans(manager: TrashManager = Depends(get_trash_manager)):
    return manager.maintenance.orphans()


@router.get("/summary")
def trash_summary(manager: TrashManager = Depends(get_trash_manager)):
    return manager.maintenance.summary()
