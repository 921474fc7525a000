from redis.asyncio import Redis

from ..core.config import settings


class RedisConnectionManager:
    """로그인 시도 저장소를 Redis로 설정한 경우에만 사용"""

    client: Redis | None = None

    @classmethod
    def get_client(cls) -> Redis:
        if cls.client is None:
            cls.client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        return cls.client

    @classmethod
    async def close(cls) -> None:
        if cls.client:
            await cls.client.aclose()
            cls.client = None
