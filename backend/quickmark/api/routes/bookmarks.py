from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from ...core.auth import require_api_access
from ...dependencies import get_mongo_db
from ...schemas import (
    BookmarkCreate,
    BookmarkDeleteResponse,
    BookmarkImportResponse,
    BookmarkListResponse,
    BookmarkOut,
    BookmarkResponse,
    BookmarkUpdate,
)
from ...services import bookmark_io
from ...services.bookmarks import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    add_bookmark,
    add_bookmarks,
    list_bookmarks,
    remove_bookmark,
    update_bookmark,
)

router = APIRouter(dependencies=[Depends(require_api_access)])


@router.get("", response_model=BookmarkListResponse)
async def get_bookmarks(
    search: str | None = Query(default=None, max_length=200, description="제목/URL 검색어"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> BookmarkListResponse:
    bookmarks = await list_bookmarks(db, search=search, limit=limit)
    return BookmarkListResponse(data=[BookmarkOut(**b) for b in bookmarks], count=len(bookmarks))


@router.post("", response_model=BookmarkResponse)
async def create_bookmark(
    payload: BookmarkCreate,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> BookmarkResponse:
    bookmark = await add_bookmark(db, payload.model_dump())
    return BookmarkResponse(data=BookmarkOut(**bookmark), message="북마크가 추가되었습니다.")


@router.put("", response_model=BookmarkResponse)
async def edit_bookmark(
    payload: BookmarkUpdate,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> BookmarkResponse:
    bookmark = await update_bookmark(db, payload.id, payload.model_dump(exclude={"id"}))
    return BookmarkResponse(data=BookmarkOut(**bookmark), message="북마크가 수정되었습니다.")


@router.delete("", response_model=BookmarkDeleteResponse)
async def delete_bookmark(
    bookmark_id: str = Query(..., alias="id", min_length=1, description="북마크 ID"),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> BookmarkDeleteResponse:
    await remove_bookmark(db, bookmark_id)
    return BookmarkDeleteResponse(message="북마크가 삭제되었습니다.")


@router.get("/export")
async def export_bookmarks(
    export_format: Literal["json", "csv", "html"] = Query(default="json", alias="format"),
    search: str | None = Query(default=None, max_length=200),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> Response:
    bookmarks = await list_bookmarks(db, search=search, limit=None)
    content = bookmark_io.export_bookmarks(bookmarks, export_format)
    filename = bookmark_io.export_filename(export_format)
    return Response(
        content=content,
        media_type=bookmark_io.MEDIA_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=BookmarkImportResponse)
async def import_bookmarks(
    file: UploadFile = File(...),
    skip_duplicates: bool = Query(default=True, description="이미 저장된 URL 건너뛰기"),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> BookmarkImportResponse:
    fmt = bookmark_io.detect_format(file.filename, file.content_type)
    if fmt is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="지원하지 않는 파일 형식입니다. JSON, HTML 또는 CSV 파일을 사용하세요.",
        )
    content = await file.read()
    try:
        raw_entries = bookmark_io.parse_import(content, fmt)
    except bookmark_io.ImportFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    entries, invalid = bookmark_io.clean_entries(raw_entries)
    if not entries:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="가져올 수 있는 북마크가 없습니다.")

    imported, duplicates = await add_bookmarks(db, entries, skip_duplicates=skip_duplicates)
    skipped = invalid + duplicates
    return BookmarkImportResponse(
        imported=imported,
        skipped=skipped,
        message=f"북마크 {imported}개를 가져왔습니다. ({skipped}개 건너뜀)",
    )
