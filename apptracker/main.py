"""FastAPI entry point for the application tracker."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from apptracker.config import Settings, settings
from apptracker.models.application import ApiResponse
from apptracker.routers import api, ui
from apptracker.store import ApplicationNotFound, ApplicationStore, StoreError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, message: str) -> PlainTextResponse | JSONResponse:
    if request.url.path.startswith("/api"):
        body = ApiResponse(success=False, message=message).model_dump(exclude_none=True)
        return JSONResponse(body, status_code=status_code)
    return PlainTextResponse(message, status_code=status_code)


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    store = ApplicationStore(config.applications_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting application tracker on %s:%d", config.host, config.port)
        store.initialize()
        yield
        logger.info("Application tracker stopped")

    app = FastAPI(
        title="Application Tracker",
        description="Track job applications through a JSON API and htmx UI",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = config
    app.state.templates = ui.build_templates(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        logger.warning("%s (status: %d)", exc.detail, exc.status_code)
        return _error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(ApplicationNotFound)
    async def not_found(request: Request, exc: ApplicationNotFound):
        logger.warning("Application not found: %s", exc.app_id)
        return _error_response(request, 404, "Application not found")

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(request, 500, f"Storage failure: {exc}")

    # Register routers
    app.include_router(api.router)
    app.include_router(ui.router)

    if config.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(config.static_dir)), name="static")

    return app


app = create_app()


def run() -> None:
    uvicorn.run(
        "apptracker.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
