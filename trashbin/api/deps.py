"""Shared dependencies for the API routers."""

from fastapi import HTTPException

from ..errors import ConflictError, InvalidOptionError, NotFoundError, TrashError
from ..services.trash_manager import TrashManager, get_trash_manager

__all__ = ["TrashManager", "get_trash_manager", "http_error"]


def http_error(e: TrashError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail={"message": e.message, "paths": e.paths})
    if isinstance(e, InvalidOptionError):
        return HTTPException(status_code=422, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)
