from __future__ import annotations
import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .api import register_error_handlers, router
from .config import Settings, settings as default_settings
from .logging_config import configure_logging
from .metrics import metrics
from .service import TaskService, build_task_service

logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None, task_service: Optional[TaskService] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Set once here, read-only for the lifetime of the app
        app.state.task_service = task_service or await build_task_service(settings)
        yield
        await app.state.task_service.close()

    app = FastAPI(title="KC API", version="0.1.0", lifespan=lifespan)
    register_error_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response

    @app.get("/")
    async def root():
        return {"service": settings.app_name, "status": "running"}

    @app.get("/health")
    async def health(request: Request):
        return {"status": "healthy", **(await request.app.state.task_service.health())}

    @app.get("/metrics", response_class=PlainTextResponse)
    async def prometheus_metrics():
        return await metrics.render_prometheus()

    app.include_router(router)
    return app


app = create_app()
