import asyncio

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from clip_api import evaluation, system
from clip_api.__version__ import __version__
from clip_api.config import get_settings
from clip_api.constants import API_PREFIX, APP_DESCRIPTION, APP_NAME, APP_TITLE
from clip_api.core.cors import CORSHeadersMiddleware
from clip_api.core.exception_handler import (
    http_exception_handler,
    request_validation_exception_handler,
    service_exception_handler,
    unhandled_exception_handler,
)
from clip_api.core.exceptions import ServiceError
from clip_api.core.observability import PrometheusMiddleware, get_metrics_middleware, metrics_endpoint
from clip_api.log import get_logger, setup_logging

settings = get_settings()

setup_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(
    title=APP_TITLE,
    version=__version__,
    debug=settings.debug,
    docs_url=f"{API_PREFIX}/docs",
    redoc_url=f"{API_PREFIX}/redoc",
    openapi_url=f"{API_PREFIX}/openapi.json",
    description=APP_DESCRIPTION,
)

if settings.observability.enable_metrics:
    app.add_middleware(PrometheusMiddleware, app_name=APP_NAME)
    app.add_route("/metrics", metrics_endpoint)

# Added last so it wraps everything, including error responses
app.add_middleware(CORSHeadersMiddleware)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(ServiceError, service_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(evaluation.router)
app.include_router(system.router)

if not settings.token_configured:
    logger.warning("HUGGINGFACE_TOKEN is not set; evaluation endpoints will answer 500")


@app.on_event("startup")
async def startup_event():
    """Start periodic system metrics updates"""
    if not settings.observability.enable_metrics:
        return

    async def update_metrics_task():
        """Update system metrics every 10 seconds"""
        while True:
            try:
                get_metrics_middleware().update_system_metrics()
            except RuntimeError as e:
                logger.debug(f"System metrics unavailable: {e}")
            await asyncio.sleep(10)

    asyncio.create_task(update_metrics_task())


def serve() -> None:
    """Run the API with uvicorn using the configured host and port"""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower(), log_config=None)


if __name__ == "__main__":
    serve()
