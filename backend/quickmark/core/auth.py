from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from .security import decode_session_token, verify_api_key

api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)
http_bearer = HTTPBearer(auto_error=False)


async def get_session_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> dict:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="인증 정보가 필요합니다.")
    return decode_session_token(credentials.credentials)


async def require_api_access(
    api_key: str | None = Depends(api_key_header),
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> str:
    """x-api-key 공유 비밀 또는 관리자 세션 토큰 중 하나로 인증"""
    if api_key is not None:
        if verify_api_key(api_key):
            return "api-key"
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="인증되지 않은 접근입니다.")
    if credentials is not None:
        decode_session_token(credentials.credentials)
        return "session"
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="인증되지 않은 접근입니다.")
