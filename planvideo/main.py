from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI
from starlette.requests import Request

from planvideo.api.deps import get_job_manager
from planvideo.api.router import api_router
from planvideo.core.config import get_settings
from planvideo.core.telemetry import TelemetryRuntime, configure_logging, setup_telemetry, shutdown_telemetry

configure_logging()
settings = get_settings()
_telemetry_runtime: TelemetryRuntime | None = None
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    try:
        yield
    finally:
        # Stops any polling task still owned by the live manager.
        await get_job_manager().aclose()
        get_job_manager.cache_clear()
        if _telemetry_runtime is not None:
            shutdown_telemetry(_telemetry_runtime)


app = FastAPI(title=settings.app_name, lifespan=lifespan)
_telemetry_runtime = setup_telemetry(settings, app=app)


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


app.include_router(api_router)
