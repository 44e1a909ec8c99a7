from datetime import timedelta

import pytest

from app.core.config import settings
from app.core.exceptions import ConflictError
from app.core.security import create_access_token
from app.models.user import User
from app.schemas.auth import UserRegister
from app.services.auth_service import AuthService

from .conftest import TestingSessionLocal

# Test data
test_user_data = {
    "name": "Test User",
    "email": "test@example.com",
    "password": "TestPassword123!"
}

test_login_data = {
    "email": "test@example.com",
    "password": "TestPassword123!"
}

class TestUserAuthentication:

    def test_register_user(self, client):
        """Registration returns a token."""
        response = client.post("/api/v1/user/register", json=test_user_data)
        assert response.status_code == 201

        data = response.json()
        assert data["success"] is True
        assert data["token"]
        assert "password" not in data

    def test_register_duplicate_email(self, client, db_session):
        """A duplicate email is rejected and no account is created."""
        client.post("/api/v1/user/register", json=test_user_data)

        response = client.post("/api/v1/user/register", json=test_user_data)
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "User with this email already exists."}
        assert db_session.query(User).filter(User.email == test_user_data["email"]).count() == 1

    def test_register_weak_password(self, client, db_session):
        for weak in ("weak", "alllowercase1!", "NoDigits!!", "NoSymbols123"):
            invalid_data = {**test_user_data, "password": weak}
            response = client.post("/api/v1/user/register", json=invalid_data)
            assert response.status_code == 422

        assert db_session.query(User).count() == 0

    def test_register_invalid_email(self, client):
        response = client.post("/api/v1/user/register", json={**test_user_data, "email": "not-an-email"})
        assert response.status_code == 422

    def test_register_missing_name(self, client):
        response = client.post("/api/v1/user/register", json={**test_user_data, "name": "  "})
        assert response.status_code == 422

    def test_login_success(self, client):
        client.post("/api/v1/user/register", json=test_user_data)

        response = client.post("/api/v1/user/login", json=test_login_data)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["token_type"] == "bearer"
        assert data["token"]

    def test_login_unknown_user(self, client):
        response = client.post(
            "/api/v1/user/login",
            json={"email": "nonexistent@example.com", "password": "wrongpassword"}
        )
        assert response.status_code == 401

    def test_login_wrong_password(self, client):
        client.post("/api/v1/user/register", json=test_user_data)

        response = client.post("/api/v1/user/login", json={**test_login_data, "password": "Wrong123!"})
        assert response.status_code == 401

    def test_login_rate_limited(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_PER_HOUR", 2)

        for _ in range(2):
            client.post("/api/v1/user/login", json=test_login_data)

        response = client.post("/api/v1/user/login", json=test_login_data)
        assert response.status_code == 429

class TestUserProfile:

    def test_get_profile(self, client):
        token = client.post("/api/v1/user/register", json=test_user_data).json()["token"]

        response = client.get("/api/v1/user/get-profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

        user_data = response.json()["userData"]
        assert user_data["email"] == test_user_data["email"]
        assert user_data["name"] == "Test User"
        assert user_data["address"] == {"line1": "", "line2": ""}
        assert user_data["gender"] == "Not Selected"
        assert "password_hash" not in user_data

    def test_invalid_token(self, client):
        response = client.get("/api/v1/user/get-profile", headers={"Authorization": "Bearer invalid_token"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token, please log in again."

    def test_expired_token(self, client, make_user):
        user = make_user()
        token = create_access_token(
            {"sub": str(user.id), "role": "patient"},
            expires_delta=timedelta(minutes=-5),
        )

        response = client.get("/api/v1/user/get-profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Your session has expired. Please log in again."

    def test_missing_token(self, client):
        response = client.get("/api/v1/user/get-profile")
        assert response.status_code in (401, 403)

    def test_doctor_token_cannot_read_patient_profile(self, client, make_doctor, doctor_headers):
        doctor = make_doctor()

        response = client.get("/api/v1/user/get-profile", headers=doctor_headers(doctor))
        assert response.status_code == 403

    def test_update_profile_with_image(self, client, db_session, make_user, user_headers, image_uploader):
        user = make_user()

        response = client.post(
            "/api/v1/user/update-profile",
            data={
                "name": "Jane Q. Patient",
                "phone": "5550199",
                "address": '{"line1": "221B Baker Street", "line2": "London"}',
                "dob": "1990-04-01",
                "gender": "Female",
            },
            files={"image": ("avatar.png", b"\x89PNG fake", "image/png")},
            headers=user_headers(user),
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Profile Updated"}
        assert image_uploader.uploads == ["avatar.png"]

        db_session.expire_all()
        stored = db_session.get(User, user.id)
        assert stored.name == "Jane Q. Patient"
        assert stored.address == {"line1": "221B Baker Street", "line2": "London"}
        assert stored.image == "https://images.test/avatar.png"

    def test_update_profile_without_image_keeps_image(self, client, db_session, make_user, user_headers, image_uploader):
        user = make_user()
        original_image = user.image

        response = client.post(
            "/api/v1/user/update-profile",
            data={
                "name": "Jane",
                "phone": "5550199",
                "address": '{"line1": "Somewhere"}',
                "dob": "1990-04-01",
                "gender": "Female",
            },
            headers=user_headers(user),
        )
        assert response.status_code == 200
        assert image_uploader.uploads == []

        db_session.expire_all()
        stored = db_session.get(User, user.id)
        assert stored.image == original_image
        assert stored.address == {"line1": "Somewhere", "line2": ""}

    def test_update_profile_rejects_malformed_address(self, client, make_user, user_headers, image_uploader):
        user = make_user()

        response = client.post(
            "/api/v1/user/update-profile",
            data={"name": "Jane", "phone": "1", "address": "{not json", "dob": "x", "gender": "Female"},
            headers=user_headers(user),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Address format is invalid JSON"

    def test_update_profile_missing_fields(self, client, make_user, user_headers, image_uploader):
        user = make_user()

        response = client.post(
            "/api/v1/user/update-profile",
            data={"name": "Jane"},
            headers=user_headers(user),
        )
        assert response.status_code == 422

class TestServiceEndpoints:

    def test_root_and_health(self, client):
        assert client.get("/").json()["message"] == "API WORKING"
        assert client.get("/health").json()["status"] == "healthy"

    def test_unknown_route_is_not_found(self, client):
        response = client.get("/api/v1/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"

class _NoExistingRows:
    """Query stand-in for a session that has not seen a concurrent insert."""

    def filter(self, *criteria):
        return self

    def first(self):
        return None

class TestConcurrentRegistration:

    def test_racing_registration_is_soft_conflict(self, db_session, monkeypatch):
        payload = UserRegister(**test_user_data)
        AuthService(db_session).register_user(payload)

        # A second request that checked for the email before the first one committed
        stale = TestingSessionLocal()
        try:
            monkeypatch.setattr(stale, "query", lambda *entities: _NoExistingRows())
            with pytest.raises(ConflictError) as exc_info:
                AuthService(stale).register_user(payload)
            assert exc_info.value.message == "User with this email already exists."
        finally:
            stale.close()

        assert db_session.query(User).filter(User.email == test_user_data["email"]).count() == 1
