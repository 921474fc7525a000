from .auth import LoginResponse, PasswordLogin, SessionStatus, VerifyAdminResponse
from .bookmarks import (
    BookmarkCreate,
    BookmarkDeleteResponse,
    BookmarkImportResponse,
    BookmarkListResponse,
    BookmarkOut,
    BookmarkResponse,
    BookmarkUpdate,
)
from .metadata import MetadataRequest, PageMetadata

__all__ = [
    "LoginResponse",
    "PasswordLogin",
    "SessionStatus",
    "VerifyAdminResponse",
    "BookmarkCreate",
    "BookmarkDeleteResponse",
    "BookmarkImportResponse",
    "BookmarkListResponse",
    "BookmarkOut",
    "BookmarkResponse",
    "BookmarkUpdate",
    "MetadataRequest",
    "PageMetadata",
]
