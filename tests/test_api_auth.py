"""Tests for registration, login, Google sign-in and bearer authentication."""
from datetime import timedelta

import pytest

from gtd_core import models
from gtd_core.security import create_access_token
from gtd_core.sso import GoogleOAuthClient, SSOExchangeError, SSOProfile, get_sso_client


class FakeGoogle:
    """Stands in for GoogleOAuthClient: each code maps to a profile."""

    def __init__(self, profiles):
        self.profiles = profiles
        self.calls = []

    def exchange_code(self, code, redirect_uri=None):
        self.calls.append((code, redirect_uri))
        if code not in self.profiles:
            raise SSOExchangeError("Failed to exchange authorization code")
        return self.profiles[code]


@pytest.fixture
def fake_google(api_app):
    google = FakeGoogle({
        "ada-code": SSOProfile(sso_id="g-ada", email="ada@example.com", name="Ada L", avatar="http://pic/ada"),
        "new-code": SSOProfile(sso_id="g-new", email="new@example.com", name="Newcomer"),
    })
    api_app.dependency_overrides[get_sso_client] = lambda: google
    return google


class TestRegisterAndLogin:
    """Test email/password accounts."""

    def test_register_returns_token_and_user(self, register):
        body = register()
        assert body["message"] == "Registration successful"
        assert body["token"]
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["authProvider"] == "local"
        assert "passwordHash" not in body["user"]
        assert "password_hash" not in body["user"]

    def test_duplicate_email_rejected(self, client, register):
        register()
        response = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "other", "name": "Other"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_missing_field_rejected(self, client):
        response = client.post("/api/auth/register", json={"email": "ada@example.com", "password": "x"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required field: name"

    def test_blank_field_rejected(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "x", "name": "   "},
        )
        assert response.status_code == 400

    def test_login(self, client, register):
        register()
        response = client.post(
            "/api/auth/login",
            json={"email": "ada@example.com", "password": "secret-password"},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.json()["user"]["name"] == "Ada"

    @pytest.mark.parametrize("email,password", [
        ("ada@example.com", "wrong"),
        ("nobody@example.com", "secret-password"),
    ])
    def test_bad_credentials_look_the_same(self, client, register, email, password):
        register()
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"


class TestCurrentUser:
    """Test bearer token handling on /me."""

    def test_me(self, client, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@example.com"

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: No token provided"

    def test_malformed_header(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: Invalid token"

    def test_expired_token(self, client, register):
        user_id = register()["user"]["id"]
        token = create_access_token(user_id, "ada@example.com", expires_in=timedelta(seconds=-5))
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_for_deleted_user(self, client):
        token = create_access_token("no-such-user", "ghost@example.com")
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: User not found"

    @pytest.mark.parametrize("path", [
        "/api/inbox", "/api/projects", "/api/actions",
        "/api/waiting-for", "/api/someday-maybe", "/api/review",
    ])
    def test_every_collection_requires_auth(self, client, path):
        assert client.get(path).status_code == 401


class TestGoogleLogin:
    """Test the Google authorization-code flow with a fake provider."""

    def test_new_google_user_created(self, client, fake_google, db_session):
        response = client.post("/api/auth/google", json={"code": "new-code"})
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["authProvider"] == "google"
        assert user["email"] == "new@example.com"

        db_user = db_session.query(models.User).filter_by(email="new@example.com").one()
        assert db_user.password_hash is None
        assert db_user.sso_id == "g-new"

    def test_redirect_uri_passed_through(self, client, fake_google):
        client.post("/api/auth/google", json={"code": "new-code", "redirectUri": "http://app/cb"})
        assert fake_google.calls == [("new-code", "http://app/cb")]

    def test_second_login_reuses_account(self, client, fake_google):
        first = client.post("/api/auth/google", json={"code": "new-code"}).json()["user"]
        second = client.post("/api/auth/google", json={"code": "new-code"}).json()["user"]
        assert first["id"] == second["id"]

    def test_links_existing_local_account(self, client, register, fake_google):
        local_id = register()["user"]["id"]
        response = client.post("/api/auth/google", json={"code": "ada-code"})
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == local_id
        assert user["avatar"] == "http://pic/ada"

        # Password login keeps working after linking
        login = client.post(
            "/api/auth/login",
            json={"email": "ada@example.com", "password": "secret-password"},
        )
        assert login.status_code == 200

    def test_google_only_account_cannot_password_login(self, client, fake_google):
        client.post("/api/auth/google", json={"code": "new-code"})
        response = client.post(
            "/api/auth/login",
            json={"email": "new@example.com", "password": "anything"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Please login with Google"

    def test_rejected_code(self, client, fake_google):
        response = client.post("/api/auth/google", json={"code": "bogus"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to exchange authorization code"

    def test_not_configured(self, client, api_app):
        unconfigured = GoogleOAuthClient()
        unconfigured.client_id = None
        api_app.dependency_overrides[get_sso_client] = lambda: unconfigured
        response = client.post("/api/auth/google", json={"code": "any"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Google OAuth not configured"
