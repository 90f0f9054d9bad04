"""Trash, restore and removal API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from ..errors import TrashError
from ..models.recovery import (
    ConflictPolicy,
    PruneRequest,
    PutRequest,
    RemoveRequest,
    RestoreGroupRequest,
    RestoreRequest,
)
from .deps import TrashManager, get_trash_manager, http_error

router = APIRouter(prefix="/ops", tags=["operations"])


def _check_policy(policy: ConflictPolicy) -> None:
    # Nobody can answer a prompt over HTTP
    if policy == ConflictPolicy.PROMPT:
        raise HTTPException(status_code=422, detail="conflict policy must be fail, rename or skip")


@router.post("/put")
def put_files(request: PutRequest, manager: TrashManager = Depends(get_trash_manager)):
    return manager.put(request)


@router.post("/restore")
def restore_files(request: RestoreRequest, manager: TrashManager = Depends(get_trash_manager)):
    _check_policy(request.conflict)
    try:
        return manager.restore(request)
    except TrashError as e:
        raise http_error(e)


@router.post("/restore-group")
def restore_group(request: RestoreGroupRequest, manager: TrashManager = Depends(get_trash_manager)):
    _check_policy(request.conflict)
    try:
        return manager.restore_group(request)
    except TrashError as e:
        raise http_error(e)


@router.post("/remove")
def remove_files(request: RemoveRequest, manager: TrashManager = Depends(get_trash_manager)):
    """Delete trashed files permanently."""
    try:
        return manager.remove(request)
    except TrashError as e:
        raise http_error(e)


@router.post("/prune")
def prune_trash(request: PruneRequest, manager: TrashManager = Depends(get_trash_manager)):
    try:
        return manager.maintenance.prune(
            older_than_days=request.older_than_days,
            max_total_size=request.max_total_size,
            trash_dir=request.trash_dir,
        )
    except TrashError as e:
        raise http_error(e)


@router.post("/metafix")
def fix_metadata(manager: TrashManager = Depends(get_trash_manager)):
    return manager.maintenance.metafix()
