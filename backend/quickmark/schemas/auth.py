from datetime import datetime

from pydantic import BaseModel


class PasswordLogin(BaseModel):
    # 차단 여부를 먼저 확인해야 하므로 누락은 라우트에서 검사
    password: str | None = None


class VerifyAdminResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: datetime


class LoginResponse(VerifyAdminResponse):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class SessionStatus(BaseModel):
    valid: bool = True
    expires_at: datetime
