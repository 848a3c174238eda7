"""健康检查 API."""

from fastapi import APIRouter, Depends

from rss_shell.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> dict:
    """健康检查."""
    return {
        "status": "ok",
        "version": f"{settings.app.name} {settings.app.version}",
    }
