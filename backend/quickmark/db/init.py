from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..services.bookmarks import BOOKMARKS_COL


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[BOOKMARKS_COL].create_index([("created_at", -1)])
    await db[BOOKMARKS_COL].create_index("url")
    await db[BOOKMARKS_COL].create_index([("user_id", 1), ("created_at", -1)])
