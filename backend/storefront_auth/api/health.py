"""Health check endpoint."""

from fastapi import APIRouter, Depends

from storefront_auth.api.deps import get_container
from storefront_auth.container import AuthContainer
from storefront_auth.core.database import check_db_connection
from storefront_auth.schemas.auth import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(container: AuthContainer = Depends(get_container)) -> HealthResponse:
    """Report whether the session store is reachable."""
    store_ok = await check_db_connection(container.store.session_factory)
    return HealthResponse(
        status="healthy" if store_ok else "degraded",
        session_store="connected" if store_ok else "unreachable",
    )
