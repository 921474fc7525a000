import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...core.auth import get_session_payload
from ...core.config import settings
from ...core.rate_limit import LoginRateLimiter
from ...core.security import create_session_token, get_client_ip, mask_ip, verify_admin_password
from ...dependencies import check_login_block
from ...schemas import LoginResponse, PasswordLogin, SessionStatus, VerifyAdminResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _authenticate_admin(request: Request, payload: PasswordLogin, limiter: LoginRateLimiter) -> None:
    """입력 검사 -> 비밀번호 비교 (차단 확인은 check_login_block에서 수행)"""
    client_ip = get_client_ip(request)
    user_agent = (request.headers.get("user-agent") or "unknown")[:100]

    if not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="비밀번호를 입력하세요.")

    if not settings.admin_password:
        logger.error("관리자 비밀번호가 설정되지 않았습니다.")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="서버 설정 오류입니다.")

    if verify_admin_password(payload.password):
        await limiter.register_success(client_ip)
        logger.info("관리자 로그인 성공: ip=%s ua=%s", mask_ip(client_ip), user_agent)
        return

    remaining = await limiter.register_failure(client_ip)
    logger.warning("관리자 로그인 실패: ip=%s ua=%s remaining=%d", mask_ip(client_ip), user_agent, remaining)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=f"비밀번호가 올바르지 않습니다. 남은 시도 횟수: {remaining}",
    )


@router.post("/simple-login", response_model=LoginResponse)
async def simple_login(
    payload: PasswordLogin,
    request: Request,
    limiter: LoginRateLimiter = Depends(check_login_block),
) -> LoginResponse:
    await _authenticate_admin(request, payload, limiter)
    token, _expires_at = create_session_token()
    return LoginResponse(
        message="인증되었습니다.",
        timestamp=datetime.now(timezone.utc),
        access_token=token,
        expires_in=settings.session_expire_minutes * 60,
    )


@router.post("/verify-admin", response_model=VerifyAdminResponse)
async def verify_admin(
    payload: PasswordLogin,
    request: Request,
    limiter: LoginRateLimiter = Depends(check_login_block),
) -> VerifyAdminResponse:
    await _authenticate_admin(request, payload, limiter)
    return VerifyAdminResponse(message="인증되었습니다.", timestamp=datetime.now(timezone.utc))


@router.get("/session", response_model=SessionStatus)
async def session_status(token_payload: dict = Depends(get_session_payload)) -> SessionStatus:
    return SessionStatus(expires_at=datetime.fromtimestamp(token_payload["exp"], tz=timezone.utc))
