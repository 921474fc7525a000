from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..core.config import settings

logger = logging.getLogger(__name__)

BOOKMARKS_COL = "bookmarks"
DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def _normalize(doc: dict) -> dict:
    doc = {**doc}
    doc["id"] = str(doc.pop("_id"))
    doc["user_id"] = str(doc.get("user_id", ""))
    doc["description"] = doc.get("description") or ""
    doc["favicon"] = doc.get("favicon") or ""
    return doc


def _parse_id(bookmark_id: str) -> ObjectId | None:
    try:
        return ObjectId(bookmark_id)
    except (InvalidId, TypeError):
        return None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="북마크를 찾을 수 없습니다.")


def _database_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def search_filter(search: str | None) -> dict[str, Any]:
    """제목 또는 URL 대소문자 무시 부분 일치"""
    term = (search or "").strip()
    if not term:
        return {}
    pattern = {"$regex": re.escape(term), "$options": "i"}
    return {"$or": [{"title": pattern}, {"url": pattern}]}


def build_document(payload: dict, created_at: datetime | None = None) -> dict:
    return {
        "title": payload["title"].strip(),
        "url": payload["url"].strip(),
        "description": (payload.get("description") or "").strip(),
        "favicon": (payload.get("favicon") or "").strip(),
        "user_id": settings.default_user_id,
        "created_at": created_at or datetime.now(timezone.utc),
    }


async def list_bookmarks(
    db: AsyncIOMotorDatabase,
    search: str | None = None,
    limit: int | None = DEFAULT_LIMIT,
) -> list[dict]:
    """limit=None이면 전체 조회 (내보내기용)"""
    cursor = db[BOOKMARKS_COL].find(search_filter(search)).sort("created_at", -1)
    if limit is not None:
        cursor = cursor.limit(max(1, min(limit, MAX_LIMIT)))
    items: list[dict] = []
    try:
        async for doc in cursor:
            items.append(_normalize(doc))
    except PyMongoError as exc:
        logger.exception("북마크 조회 실패")
        raise _database_error("북마크를 불러오지 못했습니다.") from exc
    return items


async def add_bookmark(db: AsyncIOMotorDatabase, payload: dict) -> dict:
    doc = build_document(payload)
    try:
        result = await db[BOOKMARKS_COL].insert_one(doc)
    except PyMongoError as exc:
        logger.exception("북마크 추가 실패")
        raise _database_error("북마크를 추가하지 못했습니다.") from exc
    doc["_id"] = result.inserted_id
    return _normalize(doc)


async def update_bookmark(db: AsyncIOMotorDatabase, bookmark_id: str, payload: dict) -> dict:
    obj_id = _parse_id(bookmark_id)
    if obj_id is None:
        raise _not_found()
    changes = {
        "title": payload["title"].strip(),
        "url": payload["url"].strip(),
        "description": (payload.get("description") or "").strip(),
        "favicon": (payload.get("favicon") or "").strip(),
    }
    try:
        doc = await db[BOOKMARKS_COL].find_one_and_update(
            {"_id": obj_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as exc:
        logger.exception("북마크 수정 실패: %s", bookmark_id)
        raise _database_error("북마크를 수정하지 못했습니다.") from exc
    if not doc:
        raise _not_found()
    return _normalize(doc)


async def remove_bookmark(db: AsyncIOMotorDatabase, bookmark_id: str) -> None:
    # 형식이 잘못된 ID도 존재하지 않는 ID와 동일하게 404
    obj_id = _parse_id(bookmark_id)
    if obj_id is None:
        raise _not_found()
    try:
        result = await db[BOOKMARKS_COL].delete_one({"_id": obj_id})
    except PyMongoError as exc:
        logger.exception("북마크 삭제 실패: %s", bookmark_id)
        raise _database_error("북마크를 삭제하지 못했습니다.") from exc
    if result.deleted_count == 0:
        raise _not_found()


async def add_bookmarks(
    db: AsyncIOMotorDatabase,
    entries: list[dict],
    skip_duplicates: bool = True,
) -> tuple[int, int]:
    """가져오기용 일괄 추가. (추가 수, 중복으로 건너뛴 수) 반환"""
    docs: list[dict] = []
    skipped = 0
    try:
        existing: set[str] = set()
        if skip_duplicates and entries:
            urls = list({entry["url"].strip() for entry in entries})
            async for doc in db[BOOKMARKS_COL].find({"url": {"$in": urls}}, {"url": 1}):
                existing.add(doc["url"])
        for entry in entries:
            doc = build_document(entry, created_at=entry.get("created_at"))
            if skip_duplicates:
                if doc["url"] in existing:
                    skipped += 1
                    continue
                existing.add(doc["url"])
            docs.append(doc)
        if docs:
            await db[BOOKMARKS_COL].insert_many(docs, ordered=False)
    except PyMongoError as exc:
        logger.exception("북마크 가져오기 실패")
        raise _database_error("북마크를 가져오지 못했습니다.") from exc
    return len(docs), skipped
