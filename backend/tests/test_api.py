from __future__ import annotations

import asyncio

import httpx
import pytest
from asgi_lifespan import LifespanManager
from pymongo.errors import ServerSelectionTimeoutError

from backend.quickmark.main import app


async def _request(method: str, url: str) -> httpx.Response:
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.request(method, url)
            await response.aread()
            return response


@pytest.mark.smoke
def test_healthcheck_returns_ok() -> None:
    response = asyncio.run(_request("GET", "/api/health"))
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


def test_healthcheck_reports_unavailable_database(fake_db) -> None:
    fake_db.ping_error = ServerSelectionTimeoutError("no servers")
    response = asyncio.run(_request("GET", "/api/health"))
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "unavailable"}


@pytest.mark.smoke
def test_app_config_exposes_public_info() -> None:
    response = asyncio.run(_request("GET", "/api/config/app"))
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "QuickMark"
    assert set(data) == {"name", "description", "version"}


@pytest.mark.smoke
def test_openapi_lists_bookmark_routes() -> None:
    paths = app.openapi()["paths"]
    assert {"get", "post", "put", "delete"} <= set(paths["/api/bookmarks"])
    assert "post" in paths["/api/fetch-metadata"]
    assert "post" in paths["/api/auth/simple-login"]
    assert "post" in paths["/api/auth/verify-admin"]


@pytest.mark.smoke
def test_unknown_route_uses_error_envelope() -> None:
    response = asyncio.run(_request("GET", "/api/does-not-exist"))
    assert response.status_code == 404
    assert response.json()["success"] is False
    assert "error" in response.json()
