"""Storefront Auth - FastAPI application factory.

Run with: uvicorn storefront_auth.main:create_app --factory
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront_auth.api import auth_router, health_router
from storefront_auth.container import AuthContainer
from storefront_auth.core import get_settings, setup_logging
from storefront_auth.core.logging import get_logger
from storefront_auth.middleware import AuthGateMiddleware

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    container: AuthContainer = app.state.container
    settings = container.settings

    setup_logging(level=settings.log_level, format_type=settings.log_format)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    # Creates both schemas and starts the expired-token purge loop
    await container.startup()

    yield

    logger.info("Shutting down...")
    await container.shutdown()


def create_app(container: AuthContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without a container, settings are read from the environment; a missing
    JWT_SECRET_KEY stops the process here.
    """
    if container is None:
        container = AuthContainer.from_settings(get_settings())
    settings = container.settings

    app = FastAPI(
        title=settings.app_name,
        description="Session token authentication for the storefront API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.container = container

    # Every /auth/* and /api/* request except /auth/login needs a live session
    app.add_middleware(AuthGateMiddleware, gate=container.gate)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on 401 responses from the gate too.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)

    return app
