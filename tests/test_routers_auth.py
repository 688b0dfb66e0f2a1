"""
test_routers_auth.py — Login, token/cookie auth and /api/auth/me

These use the real auth dependency (anon_client), not the override.

Called by: pytest
Depends on: bidtracker/routers/auth.py, dependencies.py, utils/security.py
"""

from datetime import timedelta

from bidtracker.utils.security import create_access_token


def _login(c, email="estimator@bidtracker.test", password="password123"):
    return c.post("/api/auth/login", json={"email": email, "password": password})


class TestLogin:
    def test_success_returns_token_and_cookie(self, anon_client, test_user):
        resp = _login(anon_client)
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["user"] == {
            "id": test_user.id,
            "role": "USER",
            "name": "Test Estimator",
            "email": "estimator@bidtracker.test",
        }
        assert "token" in resp.cookies

    def test_email_case_insensitive(self, anon_client, test_user):
        assert _login(anon_client, email="  ESTIMATOR@bidtracker.test").status_code == 200

    def test_wrong_password_401(self, anon_client, test_user):
        resp = _login(anon_client, password="nope")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid email or password"

    def test_unknown_user_401(self, anon_client):
        assert _login(anon_client, email="ghost@bidtracker.test").status_code == 401

    def test_inactive_user_401(self, anon_client, test_user, db_session):
        test_user.is_active = False
        db_session.commit()
        assert _login(anon_client).status_code == 401


class TestTokenAuth:
    def test_bearer_token(self, anon_client, test_user):
        token = _login(anon_client).json()["token"]
        anon_client.cookies.clear()
        resp = anon_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["email"] == test_user.email

    def test_cookie_token(self, anon_client, test_user):
        _login(anon_client)
        assert anon_client.get("/api/auth/me").status_code == 200

    def test_missing_token_401(self, anon_client):
        resp = anon_client.get("/api/bids")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Not authenticated"

    def test_garbage_token_401(self, anon_client):
        resp = anon_client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired token"

    def test_expired_token_401(self, anon_client, test_user):
        token = create_access_token(test_user.id, "USER", expires_delta=timedelta(seconds=-5))
        resp = anon_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_deleted_user_401(self, anon_client):
        token = create_access_token(4242, "USER")
        resp = anon_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_deactivated_user_403(self, anon_client, test_user, db_session):
        token = create_access_token(test_user.id, "USER")
        test_user.is_active = False
        db_session.commit()
        resp = anon_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403

    def test_logout_clears_cookie(self, anon_client, test_user):
        _login(anon_client)
        assert anon_client.post("/api/auth/logout").json() == {"ok": True}
        assert anon_client.get("/api/auth/me").status_code == 401
