"""Tests for signup, sign-in, and role checks."""

import uuid

from mindcare.core.security import create_access_token
from mindcare.models.invite import InviteCode, invite_key
from mindcare.services.accounts import get_patient

PSYCHOLOGIST_PASSWORD = "SecurePass123"


def unique_email(prefix: str = "psy") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


class TestPsychologistSignup:
    """Tests for POST /auth/psychologist/signup."""

    async def test_signup_creates_psychologist(self, client, store):
        response = await client.post(
            "/auth/psychologist/signup",
            json={
                "email": unique_email(),
                "password": "SecurePass123",
                "name": "Dr. Rafael Lima",
                "crp": "06/654321",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["userId"]

        me = await client.get(
            "/psychologist/me",
            headers={
                "Authorization": f"Bearer {create_access_token(data['userId'], 'psychologist')}"
            },
        )
        assert me.status_code == 200
        assert me.json()["psychologist"]["crp"] == "06/654321"

    async def test_duplicate_email_is_conflict(self, client, psychologist):
        response = await client.post(
            "/auth/psychologist/signup",
            json={
                "email": psychologist.email,
                "password": "SecurePass123",
                "name": "Someone Else",
                "crp": "06/000000",
            },
        )

        assert response.status_code == 409
        assert "already exists" in response.json()["error"]

    async def test_rejects_password_without_uppercase(self, client):
        """Password must contain an uppercase letter."""
        response = await client.post(
            "/auth/psychologist/signup",
            json={
                "email": unique_email(),
                "password": "lowercase123",
                "name": "Dr. X",
                "crp": "1",
            },
        )

        assert response.status_code == 422
        assert "uppercase" in response.json()["error"].lower()

    async def test_rejects_invalid_email(self, client):
        response = await client.post(
            "/auth/psychologist/signup",
            json={
                "email": "not-an-email",
                "password": "SecurePass123",
                "name": "Dr. X",
                "crp": "1",
            },
        )

        assert response.status_code == 422
        assert response.json()["error"].startswith("email")

    async def test_rejects_missing_fields(self, client):
        response = await client.post(
            "/auth/psychologist/signup",
            json={"email": unique_email(), "password": "SecurePass123"},
        )

        assert response.status_code == 422
        assert "error" in response.json()


class TestPatientSignup:
    """Tests for POST /auth/patient/signup."""

    async def test_signup_with_invite(self, client, store, psychologist):
        await store.set(
            invite_key("AB12CD"),
            InviteCode(code="AB12CD", psychologist_id=psychologist.id).to_document(),
        )

        response = await client.post(
            "/auth/patient/signup",
            json={"inviteCode": "ab12cd", "name": "Ana", "age": 28, "phone": "11999990000"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["accessToken"]
        assert data["credentials"]["email"].startswith("patient_")
        assert len(data["credentials"]["password"]) == 16

        patient = await get_patient(store, data["userId"])
        assert patient.psychologist_id == psychologist.id

        me = await client.get(
            "/patient/me", headers={"Authorization": f"Bearer {data['accessToken']}"}
        )
        assert me.status_code == 200
        assert me.json()["psychologist"]["id"] == psychologist.id

    async def test_used_invite_is_rejected(self, client, store, psychologist):
        await store.set(
            invite_key("AB12CD"),
            InviteCode(code="AB12CD", psychologist_id=psychologist.id).to_document(),
        )
        body = {"inviteCode": "AB12CD", "name": "Ana", "age": 28, "phone": "1"}

        first = await client.post("/auth/patient/signup", json=body)
        second = await client.post("/auth/patient/signup", json={**body, "name": "Bruno"})

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json() == {"error": "Invalid or already used invite code"}

    async def test_unknown_invite_is_rejected(self, client):
        response = await client.post(
            "/auth/patient/signup",
            json={"inviteCode": "ZZZZZZ", "name": "Ana", "age": 28, "phone": "1"},
        )

        assert response.status_code == 400

    async def test_invalid_age(self, client):
        response = await client.post(
            "/auth/patient/signup",
            json={"inviteCode": "AB12CD", "name": "Ana", "age": 0, "phone": "1"},
        )

        assert response.status_code == 422
        assert response.json()["error"].startswith("age")


class TestLogin:
    """Tests for POST /auth/login."""

    async def test_login_returns_token(self, client, psychologist):
        response = await client.post(
            "/auth/login",
            json={"email": psychologist.email, "password": PSYCHOLOGIST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["tokenType"] == "bearer"
        assert data["userId"] == psychologist.id
        assert data["role"] == "psychologist"

        me = await client.get(
            "/psychologist/me", headers={"Authorization": f"Bearer {data['accessToken']}"}
        )
        assert me.status_code == 200

    async def test_wrong_password(self, client, psychologist):
        response = await client.post(
            "/auth/login",
            json={"email": psychologist.email, "password": "WrongPass123"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}


class TestAuthentication:
    """Bearer token handling on protected routes."""

    async def test_missing_token(self, client):
        response = await client.get("/psychologist/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    async def test_malformed_header(self, client):
        response = await client.get(
            "/psychologist/me", headers={"Authorization": "Token abc"}
        )
        assert response.status_code == 401

    async def test_invalid_token(self, client):
        response = await client.get(
            "/psychologist/me", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    async def test_token_for_unknown_user(self, client):
        token = create_access_token("never-created", "psychologist")
        response = await client.get(
            "/psychologist/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


class TestRoleChecks:
    async def test_patient_cannot_use_psychologist_routes(self, client, patient_headers):
        for path in ["/psychologist/me", "/psychologist/patients", "/psychologist/crises"]:
            response = await client.get(path, headers=patient_headers)
            assert response.status_code == 403

    async def test_psychologist_cannot_use_patient_routes(
        self, client, psychologist_headers
    ):
        for path in ["/patient/me", "/patient/crises"]:
            response = await client.get(path, headers=psychologist_headers)
            assert response.status_code == 403

    async def test_login_without_profile_is_not_found(self, client, gateway):
        """A login whose profile write never landed reads as not found."""
        identity = await gateway.create_user(
            unique_email(), "SecurePass123", "psychologist"
        )
        token = create_access_token(identity.user_id, identity.role)

        response = await client.get(
            "/psychologist/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Psychologist not found"}
