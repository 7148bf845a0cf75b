"""
FastAPI application for IntelliBook

Owner dashboard and public storefront for appointment booking
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from intellibook.api.middleware.rate_limit_middleware import RateLimitMiddleware
from intellibook.api.v1.router import api_v1_router
from intellibook.config.settings import Settings, get_settings
from intellibook.core.context import BookingContext
from intellibook.core.error_handlers import register_exception_handlers
from intellibook.core.middleware import correlation_id_middleware, request_logging_middleware
from intellibook.core.monitoring import health_router
from intellibook.utils.my_logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, context: Optional[BookingContext] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        # Startup
        setup_logging(settings=settings)
        runtime = context or BookingContext.create(settings)
        app.state.context = runtime

        routes = [route for route in app.routes if isinstance(route, APIRoute)]
        logger.info(
            f"{settings.APP_NAME} API starting: {len(routes)} routes, "
            f"database={runtime.database.dialect}, lock={runtime.booking_lock.name}, "
            f"email={runtime.notifier.email_service.provider}"
        )

        yield

        # Shutdown
        logger.info(f"{settings.APP_NAME} API shutting down...")
        if context is None:
            runtime.close()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Appointment booking with a public storefront",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(RateLimitMiddleware, requests_per_second=settings.PUBLIC_RATE_LIMIT_PER_SECOND)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Add custom middleware
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": f"{settings.APP_NAME} API",
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run(
        "intellibook.main:app",
        host=_settings.HOST,
        port=_settings.PORT,
        reload=_settings.DEBUG,
        log_level=_settings.LOG_LEVEL.lower()
    )
