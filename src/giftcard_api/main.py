import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from giftcard_api.api.middleware.error_handler import (
    handle_app_error,
    handle_generic_error,
    handle_http_exception,
    handle_integrity_error,
    handle_validation_error,
)
from giftcard_api.api.middleware.logging import RequestLoggingMiddleware, configure_logging
from giftcard_api.api.routes import router as api_router
from giftcard_api.api.routes.health import router as health_router
from giftcard_api.config import settings
from giftcard_api.core.exceptions import AppError
from giftcard_api.db.session import dispose_engine
from giftcard_api.worker.queue import JobQueue

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.log_level, json_output=settings.log_json)
    app.state.job_queue = await JobQueue.connect(settings.redis_url)
    logger.info(f"Gift card API started ({settings.app_env})")
    yield
    # Shutdown
    await app.state.job_queue.close()
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="THNX Digital Gift Card API",
        description="Merchant gift cards: issuance, purchase, QR redemption and administration",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(api_router)

    return app


app = create_app()
