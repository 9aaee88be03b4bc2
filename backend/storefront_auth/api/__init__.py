# Storefront Auth API routers
from storefront_auth.api.auth import router as auth_router
from storefront_auth.api.health import router as health_router

__all__ = ["auth_router", "health_router"]
