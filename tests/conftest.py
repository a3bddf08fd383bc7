"""Shared fixtures: a throwaway SQLite database and seeded demo users."""

import asyncio
import os
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import update

_DB_DIR = tempfile.mkdtemp(prefix="medibook-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-key-for-the-medibook-suite"
os.environ["SYMPTOM_ANALYZER"] = "static"

from fastapi.testclient import TestClient  # noqa: E402

from medibook.api.users import upsert_user  # noqa: E402
from medibook.database import AsyncSessionLocal, Base, engine  # noqa: E402
from medibook.main import app  # noqa: E402
from medibook.models.user import Role  # noqa: E402
from medibook.schemas.user import UserUpsert  # noqa: E402
from medibook.services.security import create_access_token  # noqa: E402


async def _reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _set_created_at(model, row_id: int, when) -> None:
    async with AsyncSessionLocal() as db:
        await db.execute(update(model).where(model.id == row_id).values(created_at=when))
        await db.commit()


async def _upsert(payload: UserUpsert) -> str:
    async with AsyncSessionLocal() as db:
        user = await upsert_user(db, payload)
        await db.commit()
        return user.id


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


class DemoUser:
    """A seeded account plus ready-made auth headers."""

    def __init__(self, user_id: str, email: str, role: Role):
        self.id = user_id
        self.email = email
        self.role = role
        self.headers = auth_headers(user_id)


@pytest.fixture
def client():
    asyncio.run(_reset_schema())
    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Seed a user through the data-access layer and return a DemoUser."""
    def _make(user_id: str, role: Role = Role.PATIENT, **fields) -> DemoUser:
        email = fields.pop("email", f"{user_id}@example.com")
        asyncio.run(_upsert(UserUpsert(id=user_id, email=email, role=role, **fields)))
        return DemoUser(user_id, email, role)
    return _make


@pytest.fixture
def patient(make_user):
    return make_user("patient-1", first_name="Pat", last_name="Ient")


@pytest.fixture
def other_patient(make_user):
    return make_user("patient-2", first_name="Otto", last_name="Ther")


@pytest.fixture
def doctor_user(make_user):
    return make_user("doctor-1", Role.DOCTOR, first_name="Dana", last_name="Cure")


@pytest.fixture
def doctor_profile(client, doctor_user):
    """A created, available cardiology profile for ``doctor_user``."""
    response = client.post(
        "/api/doctors",
        json={"specialty": "Cardiology", "bio": "Heart specialist", "consultationFee": 80.0},
        headers=doctor_user.headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def backdate(client):
    """Overwrite ``created_at`` on a stored row."""
    def _backdate(model, row_id: int, when) -> None:
        asyncio.run(_set_created_at(model, row_id, when))
    return _backdate
