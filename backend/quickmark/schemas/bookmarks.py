from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALLOWED_URL_SCHEMES = ("http", "https")


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme.lower() in ALLOWED_URL_SCHEMES and bool(parsed.netloc)


class BookmarkBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=500)
    url: str = Field(min_length=1, max_length=2048)
    description: str = ""
    favicon: str = ""

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not is_http_url(value):
            raise ValueError("http(s) 형식의 URL이어야 합니다.")
        return value

    @field_validator("description", "favicon", mode="before")
    @classmethod
    def _none_to_empty(cls, value: str | None) -> str:
        return value or ""


class BookmarkCreate(BookmarkBase):
    pass


class BookmarkUpdate(BookmarkBase):
    id: str = Field(min_length=1)


class BookmarkOut(BaseModel):
    id: str
    title: str
    url: str
    description: str = ""
    favicon: str = ""
    user_id: str
    created_at: datetime | None = None


class BookmarkListResponse(BaseModel):
    success: bool = True
    data: list[BookmarkOut]
    count: int


class BookmarkResponse(BaseModel):
    success: bool = True
    data: BookmarkOut
    message: str


class BookmarkDeleteResponse(BaseModel):
    success: bool = True
    message: str


class BookmarkImportResponse(BaseModel):
    success: bool = True
    imported: int
    skipped: int
    message: str
