"""HTTP-level tests for the auth and security routers."""

import pytest
from fastapi.testclient import TestClient

from authsessions.main import create_app
from authsessions.services.memory_store import MemorySessionStore
from authsessions.services.session_store import SessionStoreError

BASE_URL = "https://testserver"
UA = {"User-Agent": "Chrome/120.0 (X11; Linux x86_64)"}


@pytest.fixture
def app(settings, clock, users):
    application = create_app(settings, clock)
    application.state.users = users
    return application


@pytest.fixture
def client(app):
    with TestClient(app, base_url=BASE_URL) as c:
        yield c


@pytest.fixture
def second_client(app):
    with TestClient(app, base_url=BASE_URL) as c:
        yield c


def login(client, password, user="alice", headers=UA):
    resp = client.post("/auth/login", json={"login": user, "password": password}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp


def with_cookie(app, token):
    """A cookie-less client presenting ``token`` explicitly."""
    bare = TestClient(app, base_url=BASE_URL)
    bare.headers["cookie"] = f"refreshToken={token}"
    return bare


class TestLogin:
    def test_returns_access_token_and_cookie(self, client, password):
        resp = login(client, password)

        assert resp.json()["access_token"]
        assert resp.json()["token_type"] == "bearer"
        set_cookie = resp.headers["set-cookie"]
        assert set_cookie.startswith("refreshToken=")
        assert "HttpOnly" in set_cookie
        assert "Secure" in set_cookie
        assert "Max-Age=3600" in set_cookie

    def test_bad_credentials(self, client):
        resp = client.post("/auth/login", json={"login": "alice", "password": "nope"})
        assert resp.status_code == 401
        assert "set-cookie" not in resp.headers

    def test_unknown_user_same_response(self, client):
        wrong_password = client.post("/auth/login", json={"login": "alice", "password": "nope"})
        unknown_user = client.post("/auth/login", json={"login": "mallory", "password": "nope"})
        assert unknown_user.status_code == wrong_password.status_code == 401
        assert unknown_user.json() == wrong_password.json()

    def test_validation(self, client):
        assert client.post("/auth/login", json={"login": "alice"}).status_code == 422


class TestMe:
    def test_with_access_token(self, client, alice, password):
        access = login(client, password).json()["access_token"]

        resp = client.get("/auth/me", headers={"Authorization": f"Bearer {access}"})

        assert resp.status_code == 200
        assert resp.json() == {"userId": str(alice.id), "login": "alice", "email": "alice@example.com"}

    def test_expired_access_token(self, client, clock, password):
        access = login(client, password).json()["access_token"]
        clock.advance(20)
        resp = client.get("/auth/me", headers={"Authorization": f"Bearer {access}"})
        assert resp.status_code == 401

    def test_missing_token(self, client):
        assert client.get("/auth/me").status_code == 401


class TestRefresh:
    def test_rotates_cookie(self, app, client, clock, password):
        old = login(client, password).cookies["refreshToken"]
        clock.advance(1)

        resp = client.post("/auth/refresh-token", headers=UA)

        assert resp.status_code == 200
        new = resp.cookies["refreshToken"]
        assert new != old
        assert resp.json()["access_token"]

        # Replaying the superseded cookie fails
        assert with_cookie(app, old).post("/auth/refresh-token").status_code == 401

    def test_without_cookie(self, client):
        assert client.post("/auth/refresh-token").status_code == 401


class TestLogout:
    def test_logout_twice(self, app, client, password):
        token = login(client, password).cookies["refreshToken"]

        assert with_cookie(app, token).post("/auth/logout").status_code == 204
        assert with_cookie(app, token).post("/auth/logout").status_code == 401

    def test_clears_cookie(self, client, password):
        login(client, password)
        resp = client.post("/auth/logout")
        assert resp.status_code == 204
        assert 'refreshToken=""' in resp.headers["set-cookie"] or "Max-Age=0" in resp.headers["set-cookie"]

    def test_without_cookie(self, client):
        assert client.post("/auth/logout").status_code == 401


class TestDevices:
    def test_list(self, client, second_client, password):
        login(client, password)
        login(second_client, password)

        resp = client.get("/security/devices")

        assert resp.status_code == 200
        devices = resp.json()
        assert len(devices) == 2
        assert set(devices[0]) == {"ip", "title", "lastActiveDate", "deviceId"}
        assert devices[0]["title"] == "Chrome/120.0"
        assert devices[0]["lastActiveDate"] == "2026-01-01T00:00:00.000Z"

    def test_list_unauthorized(self, client):
        assert client.get("/security/devices").status_code == 401

    def test_revoke_others(self, client, second_client, password):
        login(client, password)
        login(second_client, password)

        assert client.delete("/security/devices").status_code == 204
        assert len(client.get("/security/devices").json()) == 1
        assert second_client.get("/security/devices").status_code == 401

    def test_revoke_others_unauthorized(self, client):
        assert client.delete("/security/devices").status_code == 401

    def test_revoke_device_status_codes(self, app, client, second_client, password):
        login(client, password)
        login(second_client, password, user="bob")
        own = client.get("/security/devices").json()[0]["deviceId"]
        bobs = second_client.get("/security/devices").json()[0]["deviceId"]

        assert TestClient(app, base_url=BASE_URL).delete(f"/security/devices/{own}").status_code == 401
        assert client.delete("/security/devices/no-such-device").status_code == 404
        assert client.delete(f"/security/devices/{bobs}").status_code == 403
        assert second_client.get("/security/devices").status_code == 200

    def test_revoke_device_success(self, client, second_client, password):
        login(client, password)
        login(second_client, password, headers={"User-Agent": "Firefox/121.0 (Macintosh)"})
        devices = client.get("/security/devices").json()
        target = next(d["deviceId"] for d in devices if d["title"] == "Firefox/121.0")

        assert client.delete(f"/security/devices/{target}").status_code == 204
        assert second_client.get("/security/devices").status_code == 401
        remaining = client.get("/security/devices").json()
        assert [d["title"] for d in remaining] == ["Chrome/120.0"]


class FailingSessionStore(MemorySessionStore):
    async def create(self, record):
        raise SessionStoreError("connection refused")


def test_storage_failure_is_503(app, password):
    app.state.sessions = FailingSessionStore()
    with TestClient(app, base_url=BASE_URL) as client:
        resp = client.post("/auth/login", json={"login": "alice", "password": password})

    assert resp.status_code == 503
    assert resp.json() == {"detail": "Session storage unavailable"}
    assert "set-cookie" not in resp.headers


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
