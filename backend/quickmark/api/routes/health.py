import logging

from fastapi import APIRouter

from ...db.mongo import MongoConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="애플리케이션 헬스체크")
async def healthcheck() -> dict[str, str]:
    # DB가 응답하지 않아도 프로세스 자체는 살아 있으므로 200 유지
    database = "ok" if await MongoConnectionManager.ping() else "unavailable"
    return {"status": "ok", "database": database}
