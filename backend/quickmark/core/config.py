from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "QuickMark"
    project_description: str = "개인용 미니멀 북마크 센터"
    project_version: str = "1.0.0"
    api_prefix: str = "/api"

    log_level: str = Field(default="INFO")

    mongodb_uri: str = Field(default="mongodb://mongo:27017")
    mongodb_db: str = Field(default="quickmark")
    mongodb_timeout_ms: int = Field(default=5000)

    redis_url: str = Field(default="redis://redis:6379/0")

    # 북마크 API 공유 비밀 키 (x-api-key 헤더)
    api_key: str = Field(default="change-me")
    admin_password: str = Field(default="")

    jwt_secret_key: str = Field(default="change-me")
    jwt_algorithm: str = Field(default="HS256")
    session_expire_minutes: int = Field(default=60)

    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000,http://localhost")

    # MVP 단일 사용자
    default_user_id: str = Field(default="00000000-0000-0000-0000-000000000001")

    metadata_timeout_seconds: float = Field(default=10.0)
    metadata_max_bytes: int = Field(default=2 * 1024 * 1024)
    metadata_description_max_length: int = Field(default=200)
    metadata_paragraph_fallback: bool = Field(default=True)
    metadata_allow_private_hosts: bool = Field(default=False)
    metadata_max_redirects: int = Field(default=5)
    favicon_fallback: Literal["origin", "service"] = Field(default="origin")
    favicon_service_template: str = Field(default="https://favicon.im/{domain}")

    login_max_attempts: int = Field(default=3)
    login_block_minutes: int = Field(default=180)
    login_reset_minutes: int = Field(default=180)
    login_attempts_backend: Literal["memory", "redis"] = Field(default="memory")
    trust_proxy_headers: bool = Field(default=True)

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def frontend_static_dir(self) -> Path:
        return Path(__file__).resolve().parents[3] / "frontend"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
