"""
FastAPI application entry point for the course portal.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portal.config import get_settings
from portal.dependencies import get_portal_service, get_user_service
from portal.errors import PortalError
from portal.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_settings().seed_demo_data:
        get_user_service().initialize_users()
        get_portal_service().initialize_data()
    yield


async def handle_portal_error(request: Request, exc: PortalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled portal error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Course Portal Backend", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(PortalError, handle_portal_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
