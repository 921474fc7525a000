from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "요청 값이 올바르지 않습니다."


def error_response(
    message: str,
    status_code: int,
    *,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(body, status_code=status_code, headers=headers)


def _describe_validation_errors(exc: RequestValidationError) -> tuple[str, list[dict[str, Any]]]:
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    if not details:
        return VALIDATION_MESSAGE, details
    first = details[0]
    # body.title -> title
    field = ".".join(part for part in first["loc"] if part not in ("body", "query", "path", "header"))
    message = f"{VALIDATION_MESSAGE} ({field}: {first['msg']})" if field else f"{VALIDATION_MESSAGE} ({first['msg']})"
    return message, details


def register_error_handlers(app: FastAPI) -> None:
    """모든 오류 응답을 {"success": false, "error": ...} 형태로 통일"""

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message, details = _describe_validation_errors(exc)
        return error_response(message, status.HTTP_400_BAD_REQUEST, details=details)

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("처리되지 않은 오류: %s %s", request.method, request.url.path)
        return error_response("서버 오류가 발생했습니다.", status.HTTP_500_INTERNAL_SERVER_ERROR)
