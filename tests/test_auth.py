from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from venue_crm import oauth
from venue_crm.models import User
from venue_crm.security_utils import create_access_token, generate_oauth_state


@pytest.fixture
def fake_google(monkeypatch):
    """Replace the code exchange with a profile lookup keyed by code"""
    profiles = {
        "first": oauth.OAuthProfile("google", "g-123", "erin@agency.test", "Erin"),
        "second": oauth.OAuthProfile("google", "g-123", "erin@agency.test", "Erin Example"),
    }

    async def exchange(provider, code):
        if code not in profiles:
            raise oauth.OAuthError("invalid_grant")
        return profiles[code]

    monkeypatch.setattr(oauth, "exchange_code_for_profile", exchange)
    return profiles


def callback(client, code, state=None, provider="google"):
    params = {"code": code, "state": state or generate_oauth_state(provider)}
    return client.get(f"/auth/{provider}/callback", params=params, follow_redirects=False)


def token_from(response) -> str:
    query = parse_qs(urlparse(response.headers["location"]).query)
    return query["token"][0]


class TestOAuthLogin:
    def test_google_redirects_with_state(self, client):
        response = client.get("/auth/google", follow_redirects=False)
        assert response.status_code == 307
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.google.com"
        query = parse_qs(location.query)
        assert query["client_id"] == ["google-client-id"]
        assert query["state"][0]
        assert query["redirect_uri"] == ["http://api.test/auth/google/callback"]

    def test_unconfigured_provider(self, client):
        response = client.get("/auth/microsoft", follow_redirects=False)
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"

    def test_unknown_provider_callback(self, client):
        response = client.get("/auth/github/callback", params={"code": "x"}, follow_redirects=False)
        assert response.status_code == 404


class TestOAuthCallback:
    def test_successful_sign_in_creates_user(self, client, db, fake_google):
        response = callback(client, "first")
        assert response.status_code == 307
        assert response.headers["location"].startswith("http://frontend.test/auth/callback?token=")

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token_from(response)}"})
        data = me.json()["data"]
        assert data["email"] == "erin@agency.test"
        assert data["role"] == "consultant"
        assert data["provider"] == "google"

    def test_repeat_sign_in_updates_existing_user(self, client, db, fake_google):
        callback(client, "first")
        callback(client, "second")

        users = db.query(User).filter(User.email == "erin@agency.test").all()
        assert len(users) == 1
        assert users[0].name == "Erin Example"

    def test_invalid_state_redirects_to_login(self, client, fake_google):
        response = callback(client, "first", state="forged")
        assert response.status_code == 307
        assert response.headers["location"] == "http://frontend.test/login?error=oauth_failed"

    def test_state_for_other_provider_is_rejected(self, client, fake_google):
        response = callback(client, "first", state=generate_oauth_state("microsoft"))
        assert response.headers["location"].endswith("error=oauth_failed")

    def test_provider_error_redirects_to_login(self, client, fake_google):
        response = client.get(
            "/auth/google/callback", params={"error": "access_denied"}, follow_redirects=False
        )
        assert response.headers["location"].endswith("error=oauth_failed")

    def test_failed_code_exchange(self, client, fake_google):
        response = callback(client, "unknown")
        assert response.headers["location"].endswith("error=oauth_failed")


class TestTokens:
    def test_me_lists_permissions(self, client, consultant_headers):
        data = client.get("/auth/me", headers=consultant_headers).json()["data"]
        assert data["email"] == "carol@agency.test"
        assert "create_booking" in data["permissions"]
        assert "manage_users" not in data["permissions"]

    def test_missing_token(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "MISSING_TOKEN"

    def test_invalid_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_expired_token(self, client, consultant_user):
        token = create_access_token(consultant_user, expires_delta=timedelta(seconds=-10))
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"

    def test_token_for_deleted_user(self, client, db, consultant_user, consultant_headers):
        db.delete(consultant_user)
        db.commit()
        response = client.get("/auth/me", headers=consultant_headers)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    def test_logout_revokes_token(self, client, consultant_headers):
        response = client.post("/auth/logout", headers=consultant_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"

        again = client.get("/auth/me", headers=consultant_headers)
        assert again.status_code == 401
        assert again.json()["error"]["code"] == "TOKEN_REVOKED"

    def test_refresh_issues_new_token(self, client, consultant_headers):
        response = client.post("/auth/refresh", headers=consultant_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == "carol@agency.test"

        fresh = {"Authorization": f"Bearer {data['token']}"}
        assert client.get("/auth/me", headers=fresh).status_code == 200
        assert client.get("/auth/me", headers=consultant_headers).status_code == 401
