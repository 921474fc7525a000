import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt
from fastapi import HTTPException, Request, status

from .config import settings

logger = logging.getLogger(__name__)

ADMIN_SUBJECT = "admin"

# 이 값들이 설정된 동안에는 x-api-key 인증을 받지 않는다
INSECURE_API_KEYS = {"", "change-me"}

WEAK_PASSWORDS = {
    "admin123",
    "password",
    "123456",
    "admin",
    "root",
    "password123",
    "123456789",
    "qwerty",
    "abc123",
}


class TokenError(HTTPException):
    def __init__(self, detail: str = "토큰이 유효하지 않습니다."):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def secrets_match(provided: str | None, expected: str) -> bool:
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def verify_admin_password(password: str) -> bool:
    return secrets_match(password, settings.admin_password)


def verify_api_key(api_key: str | None) -> bool:
    if settings.api_key in INSECURE_API_KEYS:
        return False
    return secrets_match(api_key, settings.api_key)


def is_weak_password(password: str) -> bool:
    return password.lower() in WEAK_PASSWORDS


def warn_insecure_settings() -> None:
    """기본값/약한 비밀번호 사용 시 경고 로그"""
    if not settings.admin_password:
        logger.warning("ADMIN_PASSWORD가 설정되지 않아 관리자 로그인이 비활성화됩니다.")
    elif is_weak_password(settings.admin_password):
        logger.warning("보안 경고: 약한 관리자 비밀번호를 사용 중입니다. 운영 환경에서는 강한 비밀번호를 설정하세요.")
    if settings.api_key in INSECURE_API_KEYS:
        logger.warning("보안 경고: API_KEY가 기본값이므로 x-api-key 인증이 비활성화됩니다. 세션 토큰만 허용됩니다.")
    if settings.jwt_secret_key == "change-me":
        logger.warning("보안 경고: JWT_SECRET_KEY가 기본값입니다.")


def get_client_ip(request: Request) -> str:
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def mask_ip(ip: str) -> str:
    """로그용 IP 일부 마스킹 (1.2.3.4 -> 1.2.x.x)"""
    return re.sub(r"\d+\.\d+$", "x.x", ip)


def create_session_token(subject: str = ADMIN_SUBJECT, extra: dict[str, Any] | None = None) -> tuple[str, datetime]:
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=settings.session_expire_minutes)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "type": "session",
        "jti": uuid4().hex,
    }
    if extra:
        payload.update(extra)
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_session_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:  # includes ExpiredSignatureError, DecodeError
        raise TokenError(detail="세션이 만료되었거나 유효하지 않습니다.") from exc

    if payload.get("type") != "session" or payload.get("sub") != ADMIN_SUBJECT:
        raise TokenError(detail="관리자 세션 토큰이 아닙니다.")
    return payload
