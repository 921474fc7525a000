from __future__ import annotations

import re
import sys
from collections.abc import AsyncIterator, Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest
from bson import ObjectId

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.quickmark import dependencies  # noqa: E402
from backend.quickmark.core.config import settings  # noqa: E402
from backend.quickmark.db.mongo import MongoConnectionManager  # noqa: E402
from backend.quickmark.db.redis import RedisConnectionManager  # noqa: E402
from backend.quickmark.main import app  # noqa: E402

TEST_API_KEY = "test-api-key"
TEST_ADMIN_PASSWORD = "correct-horse-battery-staple"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _matches(doc: dict, query: dict) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in condition):
                return False
            continue
        value = doc.get(key)
        if isinstance(condition, dict):
            if "$regex" in condition:
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(condition["$regex"], value, flags):
                    return False
            if "$in" in condition and value not in condition["$in"]:
                return False
        elif value != condition:
            return False
    return True


class _InsertOneResult:
    def __init__(self, inserted_id: ObjectId) -> None:
        self.inserted_id = inserted_id


class _InsertManyResult:
    def __init__(self, inserted_ids: list[ObjectId]) -> None:
        self.inserted_ids = inserted_ids


class _DeleteResult:
    def __init__(self, deleted_count: int) -> None:
        self.deleted_count = deleted_count


class _DummyCursor:
    def __init__(self, collection: "_DummyCollection", docs: list[dict]) -> None:
        self._collection = collection
        self._docs = docs

    def sort(self, key: str, direction: int) -> "_DummyCursor":
        self._docs.sort(key=lambda doc: doc.get(key) or _EPOCH, reverse=direction < 0)
        return self

    def limit(self, count: int) -> "_DummyCursor":
        self._docs = self._docs[:count]
        return self

    def __aiter__(self) -> AsyncIterator[dict]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict]:
        self._collection.raise_if_failing()
        for doc in self._docs:
            yield dict(doc)


class _DummyCollection:
    """motor 컬렉션 중 북마크 서비스가 사용하는 연산만 흉내 낸다."""

    def __init__(self) -> None:
        self.docs: list[dict] = []
        self.error: Exception | None = None

    def raise_if_failing(self) -> None:
        if self.error is not None:
            raise self.error

    async def create_index(self, *_args: Any, **_kwargs: Any) -> None:
        return None

    def find(self, query: dict | None = None, _projection: dict | None = None) -> _DummyCursor:
        return _DummyCursor(self, [dict(doc) for doc in self.docs if _matches(doc, query or {})])

    async def find_one(self, query: dict) -> dict | None:
        self.raise_if_failing()
        for doc in self.docs:
            if _matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc: dict) -> _InsertOneResult:
        self.raise_if_failing()
        doc.setdefault("_id", ObjectId())
        self.docs.append(dict(doc))
        return _InsertOneResult(doc["_id"])

    async def insert_many(self, docs: list[dict], ordered: bool = True) -> _InsertManyResult:
        self.raise_if_failing()
        ids = []
        for doc in docs:
            doc.setdefault("_id", ObjectId())
            self.docs.append(dict(doc))
            ids.append(doc["_id"])
        return _InsertManyResult(ids)

    async def find_one_and_update(self, query: dict, update: dict, return_document: Any = None) -> dict | None:
        self.raise_if_failing()
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return dict(doc)
        return None

    async def delete_one(self, query: dict) -> _DeleteResult:
        self.raise_if_failing()
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return _DeleteResult(1)
        return _DeleteResult(0)


class _DummyDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, _DummyCollection] = {}
        self.ping_error: Exception | None = None

    def __getitem__(self, name: str) -> _DummyCollection:
        return self.collections.setdefault(name, _DummyCollection())

    async def command(self, name: str) -> dict:
        if self.ping_error is not None:
            raise self.ping_error
        return {"ok": 1.0}


class _DummyMongoClient:
    def __init__(self) -> None:
        self._db = _DummyDatabase()

    def __getitem__(self, _name: str) -> _DummyDatabase:
        return self._db

    def close(self) -> None:
        return None


class _DummyRedisClient:
    async def aclose(self) -> None:
        return None


@pytest.fixture(autouse=True)
def fake_db(monkeypatch: pytest.MonkeyPatch) -> _DummyDatabase:
    """DB 연결을 메모리 stub으로 대체하는 fixture"""
    dummy_mongo_client = _DummyMongoClient()
    dummy_redis_client = _DummyRedisClient()

    async def _noop_close(cls: type) -> None:
        return None

    monkeypatch.setattr(MongoConnectionManager, "get_client", classmethod(lambda cls: dummy_mongo_client))
    monkeypatch.setattr(RedisConnectionManager, "get_client", classmethod(lambda cls: dummy_redis_client))
    monkeypatch.setattr(MongoConnectionManager, "close", classmethod(lambda cls: _noop_close(cls)))
    monkeypatch.setattr(RedisConnectionManager, "close", classmethod(lambda cls: _noop_close(cls)))
    return dummy_mongo_client["quickmark"]


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "api_key", TEST_API_KEY)
    monkeypatch.setattr(settings, "admin_password", TEST_ADMIN_PASSWORD)
    monkeypatch.setattr(settings, "jwt_secret_key", "test-jwt-secret-key-with-enough-length")
    monkeypatch.setattr(settings, "login_attempts_backend", "memory")
    monkeypatch.setattr(settings, "favicon_fallback", "origin")
    # 테스트마다 로그인 시도 기록 초기화
    monkeypatch.setattr(dependencies, "_login_rate_limiter", None)


@pytest.fixture
def mock_http() -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], None]]:
    """메타데이터 수집용 HTTP 클라이언트를 MockTransport로 교체"""

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        async def _client() -> AsyncIterator[httpx.AsyncClient]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=False) as client:
                yield client

        app.dependency_overrides[dependencies.get_http_client] = _client

    yield install
    app.dependency_overrides.pop(dependencies.get_http_client, None)
