"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from .config import settings
from .api.router import api_router

# Configure logging for our modules
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s: %(message)s")
if settings.debug:
    logging.getLogger("trashbin").setLevel(logging.DEBUG)


def create_app() -> FastAPI:
    app = FastAPI(
        title="trashbin",
        version="0.1.0",
        description="freedesktop.org trash can manager",
    )

    app.include_router(api_router, prefix="/api")

    return app
