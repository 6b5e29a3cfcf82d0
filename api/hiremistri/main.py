from contextlib import asynccontextmanager
import logging
import os
import time
from typing import Any, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from hiremistri.api.deps import build_job_service
from hiremistri.api.router import api_router
from hiremistri.core.config import get_settings
from hiremistri.core.telemetry import setup_tracing, shutdown_tracing
from hiremistri.services.notifications import get_dispatcher
from hiremistri.services.repository import get_repository
from hiremistri.services.scheduler import PeriodicTask

settings = get_settings()
logger = logging.getLogger(__name__)


def _resolve(app: FastAPI, dependency: Callable[[], Any]) -> Any:
    return app.dependency_overrides.get(dependency, dependency)()


@asynccontextmanager
async def lifespan(app: FastAPI):
    current = get_settings()
    tracer_provider = setup_tracing(current)
    dispatcher = _resolve(app, get_dispatcher)
    dispatcher.start()

    sweep: PeriodicTask | None = None
    if current.expiration_sweep_enabled:
        jobs = build_job_service(_resolve(app, get_repository), current, dispatcher)
        sweep = PeriodicTask(
            "expiration_sweep",
            current.expiration_sweep_interval_seconds,
            jobs.expire_due_jobs,
        )
        sweep.start()
        logger.info("expiration sweep scheduled every %.0fs", current.expiration_sweep_interval_seconds)

    try:
        yield
    finally:
        if sweep is not None:
            await sweep.stop()
        await dispatcher.stop()
        get_dispatcher.cache_clear()
        shutdown_tracing(tracer_provider)
        # Ensure asyncpg pool shuts down on app teardown.
        await get_repository().close()
        get_repository.cache_clear()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error method=%s path=%s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "internal server error"})


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
