from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from .core.config import settings
from .core.rate_limit import InMemoryLoginAttemptStore, LoginRateLimiter, RedisLoginAttemptStore
from .core.security import get_client_ip
from .db.mongo import MongoConnectionManager
from .db.redis import RedisConnectionManager

_login_rate_limiter: LoginRateLimiter | None = None


async def get_mongo_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    db = MongoConnectionManager.get_database()
    yield db


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """메타데이터 수집용 아웃바운드 HTTP 클라이언트 (요청 단위, 리다이렉트는 서비스에서 처리)"""
    async with httpx.AsyncClient(timeout=settings.metadata_timeout_seconds, follow_redirects=False) as client:
        yield client


def build_login_rate_limiter() -> LoginRateLimiter:
    if settings.login_attempts_backend == "redis":
        store = RedisLoginAttemptStore(RedisConnectionManager.get_client())
    else:
        store = InMemoryLoginAttemptStore()
    return LoginRateLimiter(
        store,
        max_attempts=settings.login_max_attempts,
        block_seconds=settings.login_block_minutes * 60,
        reset_seconds=settings.login_reset_minutes * 60,
    )


def get_login_rate_limiter() -> LoginRateLimiter:
    # 프로세스 전역 싱글톤
    global _login_rate_limiter
    if _login_rate_limiter is None:
        _login_rate_limiter = build_login_rate_limiter()
    return _login_rate_limiter


async def check_login_block(
    request: Request,
    limiter: LoginRateLimiter = Depends(get_login_rate_limiter),
) -> LoginRateLimiter:
    # 요청 본문 검증보다 먼저 해석되므로 차단된 IP는 본문과 무관하게 429
    await limiter.check(get_client_ip(request))
    return limiter
