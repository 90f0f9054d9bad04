"""System info API endpoints."""

from fastapi import APIRouter, Depends

from .deps import TrashManager, get_trash_manager

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/info")
def get_system_info(manager: TrashManager = Depends(get_trash_manager)):
    env = manager.env
    return {
        "home_trash_dir": str(env.home_trash_dir),
        "uid": env.uid,
        "only_home_trash": env.only_home_trash,
        "home_fallback_copy": env.home_fallback_copy,
    }
