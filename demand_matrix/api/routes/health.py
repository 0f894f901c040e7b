"""Health check endpoints."""

from fastapi import APIRouter, Depends

from demand_matrix.core.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Liveness probe naming the service that answered."""

    return {"status": "ok", "service": settings.app_name}
