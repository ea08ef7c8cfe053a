"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory store, injected into the app through
dependency overrides, so tests never see each other's records.
"""

import os
import uuid
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

# Set testing mode BEFORE importing app so no Redis client is created
os.environ["TESTING"] = "true"

from mindcare.config import settings

# Override settings for testing
settings.testing = True
settings.bcrypt_rounds = 4

from mindcare.core.identity import LocalIdentityGateway
from mindcare.core.security import create_access_token
from mindcare.main import app
from mindcare.models.account import Patient, Psychologist
from mindcare.services.accounts import create_psychologist
from mindcare.services.invites import consume_invite, generate_invite
from mindcare.store import InMemoryKeyValueStore, get_store

PSYCHOLOGIST_PASSWORD = "SecurePass123"


def unique_email(prefix: str = "psy") -> str:
    """Generate a unique email for testing."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def gateway(store) -> LocalIdentityGateway:
    return LocalIdentityGateway(store)


@pytest.fixture
async def client(store) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, bound to the test's store."""
    app.dependency_overrides[get_store] = lambda: store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def psychologist(store, gateway) -> Psychologist:
    return await create_psychologist(
        store,
        gateway,
        email=unique_email(),
        password=PSYCHOLOGIST_PASSWORD,
        name="Dr. Helena Costa",
        crp="06/123456",
    )


@pytest.fixture
async def patient(store, gateway, psychologist) -> Patient:
    invite = await generate_invite(store, psychologist.id)
    enrollment = await consume_invite(
        store, gateway, invite.code, name="Ana", age=28, phone="11999990000"
    )
    return enrollment.patient


@pytest.fixture
def psychologist_headers(psychologist) -> dict[str, str]:
    token = create_access_token(psychologist.id, psychologist.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(patient) -> dict[str, str]:
    token = create_access_token(patient.id, patient.role)
    return {"Authorization": f"Bearer {token}"}
