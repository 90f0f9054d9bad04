"""Aggregate all API sub-routers."""

from fastapi import APIRouter

from . import system, trash, operations

api_router = APIRouter()

api_router.include_router(system.router)
api_router.include_router(trash.router)
api_router.include_router(operations.router)
