import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crm_api.api.errors import service_error_handler
from crm_api.api.routes import router as api_router
from crm_api.core.config import get_settings
from crm_api.core.database import create_schema
from crm_api.errors import ServiceError
from crm_api.logging import configure_logging
from crm_api.middleware.request_context import CORRELATION_HEADER, RequestContextMiddleware
from crm_api.middleware.request_logging import RequestLoggingMiddleware
from crm_api.otel import instrument_app, setup_otel

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("crm_api.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_settings().auto_create_schema:
        create_schema()
        logger.info("schema.created")
    logger.info("system.started")
    yield
    logger.info("system.stopped")


app = FastAPI(title=settings.app_name, version="0.1.0", debug=settings.app_debug, lifespan=lifespan)
app.add_exception_handler(ServiceError, service_error_handler)  # type: ignore[arg-type]

# Starlette runs the last-added middleware first: CORS, then the request context, then request logging.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER],
)
app.include_router(api_router)

setup_otel(settings)
instrument_app(app)
