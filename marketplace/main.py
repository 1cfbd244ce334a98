"""
FastAPI application for the bookkeeping marketplace

Appointment negotiation and availability; e-mails go out through the Celery worker
"""
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from marketplace.config.settings import get_settings
from marketplace.core.exceptions import register_exception_handlers
from marketplace.core.middleware import correlation_id_middleware, request_logging_middleware
from marketplace.core.monitoring import health_router
from marketplace.api.v1.router import api_v1_router
from marketplace.utils.my_logging import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()
    logger.info(f"{settings.APP_NAME} starting up...")

    routes = []
    for route in app.routes:
        if isinstance(route, APIRoute):
            for method in route.methods:
                routes.append((route.path, method))

    routes.sort()
    for path, method in routes:
        logger.debug(f"  {method:8} {path}")
    logger.info(f"Total routes registered: {len(routes)}")

    yield

    # Shutdown
    logger.info(f"{settings.APP_NAME} shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Appointment negotiation between customers and bookkeeping professionals",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

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
            "service": settings.APP_NAME,
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
    uvicorn.run(
        "marketplace.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
