from fastapi import APIRouter

from ...core.config import settings

router = APIRouter()


@router.get("/app", summary="프런트에서 사용할 앱 정보")
async def app_config() -> dict[str, str]:
    return {
        "name": settings.project_name,
        "description": settings.project_description,
        "version": settings.project_version,
    }
