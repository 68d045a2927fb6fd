from fastapi import APIRouter

from src.dependencies import SettingsDep
from src.schemas.api.health import PingResponse

router = APIRouter(tags=["health"])


@router.get("/ping", response_model=PingResponse)
async def ping(settings: SettingsDep):
    """Liveness check."""
    return PingResponse(version=settings.app_version)
