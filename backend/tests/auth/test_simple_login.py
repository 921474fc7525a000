"""
관리자 비밀번호 로그인 및 IP 차단 테스트
"""
import httpx
import pytest
from asgi_lifespan import LifespanManager

from backend.quickmark.core.config import settings
from backend.quickmark.main import app

ADMIN_PASSWORD = "correct-horse-battery-staple"


async def _request(method: str, url: str, **kwargs) -> httpx.Response:
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.request(method, url, **kwargs)
            await response.aread()
            return response


def _from_ip(ip: str) -> dict[str, str]:
    return {"x-forwarded-for": f"{ip}, 10.0.0.1"}


@pytest.mark.asyncio
async def test_simple_login_success_returns_session_token():
    response = await _request("POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 3600
    assert data["timestamp"]

    session = await _request(
        "GET", "/api/auth/session", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert session.status_code == 200
    assert session.json()["valid"] is True


@pytest.mark.asyncio
async def test_session_endpoint_rejects_missing_or_bad_token():
    response = await _request("GET", "/api/auth/session")
    assert response.status_code == 401
    response = await _request("GET", "/api/auth/session", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_wrong_password_reports_remaining_attempts():
    response = await _request(
        "POST", "/api/auth/simple-login", json={"password": "nope"}, headers=_from_ip("203.0.113.5")
    )
    assert response.status_code == 401
    assert "2" in response.json()["error"]


@pytest.mark.asyncio
async def test_missing_password_returns_400_without_counting():
    headers = _from_ip("203.0.113.6")
    for _ in range(4):
        response = await _request("POST", "/api/auth/simple-login", json={}, headers=headers)
        assert response.status_code == 400
    response = await _request("POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD}, headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_fourth_attempt_blocked_even_with_correct_password():
    headers = _from_ip("198.51.100.7")
    for _ in range(3):
        response = await _request("POST", "/api/auth/simple-login", json={"password": "wrong"}, headers=headers)
        assert response.status_code == 401

    response = await _request("POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD}, headers=headers)
    assert response.status_code == 429
    assert "180" in response.json()["error"]
    assert int(response.headers["retry-after"]) > 0

    # 다른 IP는 영향 없음
    response = await _request(
        "POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD}, headers=_from_ip("198.51.100.8")
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_success_clears_failure_counter():
    headers = {"x-real-ip": "192.0.2.10"}
    for _ in range(2):
        await _request("POST", "/api/auth/simple-login", json={"password": "wrong"}, headers=headers)
    response = await _request("POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD}, headers=headers)
    assert response.status_code == 200

    for _ in range(2):
        response = await _request("POST", "/api/auth/simple-login", json={"password": "wrong"}, headers=headers)
        assert response.status_code == 401
    response = await _request("POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD}, headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_verify_admin_shares_lockout():
    headers = _from_ip("198.51.100.20")
    for _ in range(3):
        response = await _request("POST", "/api/auth/verify-admin", json={"password": "wrong"}, headers=headers)
        assert response.status_code == 401
    response = await _request("POST", "/api/auth/simple-login", json={"password": ADMIN_PASSWORD}, headers=headers)
    assert response.status_code == 429

    response = await _request("POST", "/api/auth/verify-admin", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "access_token" not in response.json()


@pytest.mark.asyncio
async def test_unconfigured_admin_password_returns_500(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "admin_password", "")
    response = await _request("POST", "/api/auth/simple-login", json={"password": "anything"})
    assert response.status_code == 500


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [None, {"password": 123}, {"password": None}])
async def test_blocked_ip_gets_429_before_body_validation(body):
    headers = _from_ip("198.51.100.30")
    for _ in range(3):
        response = await _request("POST", "/api/auth/simple-login", json={"password": "wrong"}, headers=headers)
        assert response.status_code == 401

    kwargs = {"headers": headers} if body is None else {"headers": headers, "json": body}
    for url in ("/api/auth/simple-login", "/api/auth/verify-admin"):
        response = await _request("POST", url, **kwargs)
        assert response.status_code == 429
        assert response.json()["success"] is False
