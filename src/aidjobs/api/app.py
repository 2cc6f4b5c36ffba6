from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aidjobs.api.routes import http_error
from aidjobs.api.routes import router as api_router
from aidjobs.config import get_settings
from aidjobs.db.init import init_database
from aidjobs.errors import AidJobsError
from aidjobs.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        init_database()
        logger.info("AidJobs API ready env=%s", settings.app_env)
        yield

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AidJobsError)
    async def _aidjobs_error(request: Request, exc: AidJobsError) -> JSONResponse:
        error = http_error(exc)
        logger.warning("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse({"detail": error.detail}, status_code=error.status_code)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "environment": settings.app_env})

    app.include_router(api_router)
    return app
