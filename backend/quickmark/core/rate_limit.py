"""IP 기반 관리자 로그인 실패 제한

실패 횟수가 한도에 도달한 IP는 일정 시간 동안 차단된다. 기본 저장소는 프로세스 메모리이며
재시작 시 초기화된다. 여러 워커가 상태를 공유해야 하면 Redis 저장소를 사용한다.
"""
from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Protocol

from fastapi import HTTPException, status
from redis.asyncio import Redis

logger = logging.getLogger(__name__)

ATTEMPT_KEY_PREFIX = "auth:login-attempts:"


@dataclass
class LoginAttempt:
    count: int = 0
    last_attempt: float = 0.0
    blocked_until: float | None = None

    def is_blocked(self, now: float) -> bool:
        return self.blocked_until is not None and now < self.blocked_until


class LoginBlockedError(HTTPException):
    def __init__(self, remaining_seconds: float):
        minutes = max(1, math.ceil(remaining_seconds / 60))
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"IP가 차단되었습니다. {minutes}분 후에 다시 시도하세요.",
            headers={"Retry-After": str(max(1, math.ceil(remaining_seconds)))},
        )


class LoginAttemptStore(Protocol):
    async def get(self, ip: str) -> LoginAttempt | None: ...

    async def save(self, ip: str, attempt: LoginAttempt, ttl: float) -> None: ...

    async def delete(self, ip: str) -> None: ...

    async def sweep(self, now: float, reset_seconds: float) -> None: ...


class InMemoryLoginAttemptStore:
    def __init__(self) -> None:
        self._attempts: dict[str, LoginAttempt] = {}

    def __len__(self) -> int:
        return len(self._attempts)

    async def get(self, ip: str) -> LoginAttempt | None:
        return self._attempts.get(ip)

    async def save(self, ip: str, attempt: LoginAttempt, ttl: float) -> None:
        self._attempts[ip] = attempt

    async def delete(self, ip: str) -> None:
        self._attempts.pop(ip, None)

    async def sweep(self, now: float, reset_seconds: float) -> None:
        for ip, attempt in list(self._attempts.items()):
            if attempt.blocked_until is not None:
                if now > attempt.blocked_until:
                    del self._attempts[ip]
            elif now - attempt.last_attempt > reset_seconds:
                del self._attempts[ip]


class RedisLoginAttemptStore:
    """만료는 키 TTL로 처리하므로 sweep은 하지 않는다."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @staticmethod
    def _key(ip: str) -> str:
        return f"{ATTEMPT_KEY_PREFIX}{ip}"

    async def get(self, ip: str) -> LoginAttempt | None:
        raw = await self._redis.get(self._key(ip))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("손상된 로그인 시도 기록을 무시합니다: %s", ip)
            return None
        return LoginAttempt(
            count=int(data.get("count", 0)),
            last_attempt=float(data.get("last_attempt", 0.0)),
            blocked_until=data.get("blocked_until"),
        )

    async def save(self, ip: str, attempt: LoginAttempt, ttl: float) -> None:
        await self._redis.set(self._key(ip), json.dumps(asdict(attempt)), ex=max(1, math.ceil(ttl)))

    async def delete(self, ip: str) -> None:
        await self._redis.delete(self._key(ip))

    async def sweep(self, now: float, reset_seconds: float) -> None:
        return None


class LoginRateLimiter:
    def __init__(
        self,
        store: LoginAttemptStore,
        *,
        max_attempts: int = 3,
        block_seconds: float = 3 * 60 * 60,
        reset_seconds: float = 3 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.block_seconds = block_seconds
        self.reset_seconds = reset_seconds
        self._clock = clock

    async def check(self, ip: str) -> None:
        """오래된 기록을 정리한 뒤 차단된 IP면 429"""
        now = self._clock()
        await self.store.sweep(now, self.reset_seconds)
        attempt = await self.store.get(ip)
        if attempt is not None and attempt.is_blocked(now):
            raise LoginBlockedError(attempt.blocked_until - now)

    async def register_failure(self, ip: str) -> int:
        """실패 기록 후 남은 시도 횟수를 반환"""
        now = self._clock()
        attempt = await self.store.get(ip) or LoginAttempt()
        count = attempt.count + 1
        blocked_until = now + self.block_seconds if count >= self.max_attempts else None
        updated = LoginAttempt(count=count, last_attempt=now, blocked_until=blocked_until)
        await self.store.save(ip, updated, self.block_seconds if blocked_until else self.reset_seconds)
        if blocked_until:
            logger.warning("로그인 실패 한도 초과로 IP 차단: count=%d", count)
        return max(0, self.max_attempts - count)

    async def register_success(self, ip: str) -> None:
        await self.store.delete(ip)
