import os
import tempfile
from datetime import datetime, timedelta, timezone
from uuid import uuid4

# Settings are read at import time, so the environment goes first
_db_dir = tempfile.mkdtemp(prefix="eduplatform-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["AUTH_RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["LOG_LEVEL"] = "warning"

import pytest
from httpx import ASGITransport, AsyncClient

from eduplatform.core.database import AsyncSessionLocal, engine
from eduplatform.core.security import create_access_token, hash_password
from eduplatform.main import app
from eduplatform.models import Base, User, UserRole

API = "/api"
PASSWORD = "secret123"


def iso(dt: datetime) -> str:
    return dt.isoformat()


def hours_from_now(hours: float) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class Account:
    def __init__(self, user: dict, token: str):
        self.user = user
        self.token = token
        self.id = user["id"]
        self.headers = {"Authorization": f"Bearer {token}"}


class Api:
    """Shortcuts for building fixtures through the public API."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def register(self, role: str = "student", name: str = None, email: str = None) -> Account:
        email = email or f"{role}-{uuid4().hex[:8]}@example.com"
        response = await self.client.post(f"{API}/auth/register", json={
            "name": name or role.capitalize(),
            "email": email,
            "password": PASSWORD,
            "role": role,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return Account(body["user"], body["token"])

    async def admin(self) -> Account:
        # Admins cannot self-register
        async with AsyncSessionLocal() as db:
            user = User(
                name="Admin",
                email=f"admin-{uuid4().hex[:8]}@example.com",
                password_hash=hash_password(PASSWORD),
                role=UserRole.ADMIN,
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            token = create_access_token(user.id, user.email, user.role.value)
            data = {"id": str(user.id), "name": user.name, "email": user.email, "role": "admin"}
        return Account(data, token)

    async def create_course(self, teacher: Account, **overrides) -> dict:
        payload = {"title": "Algebra I", "description": "Linear equations", "price": 49.0, "max_students": 30}
        payload.update(overrides)
        response = await self.client.post(f"{API}/courses", json=payload, headers=teacher.headers)
        assert response.status_code == 201, response.text
        return response.json()

    async def enroll(self, student: Account, course_id: str):
        return await self.client.post(f"{API}/students/enroll/{course_id}", headers=student.headers)

    async def create_assignment(self, teacher: Account, course_id: str, **overrides) -> dict:
        payload = {
            "course_id": course_id,
            "title": "Homework 1",
            "description": "Exercises 1-10",
            "due_date": iso(hours_from_now(48)),
            "max_points": 100,
        }
        payload.update(overrides)
        response = await self.client.post(f"{API}/assignments", json=payload, headers=teacher.headers)
        assert response.status_code == 201, response.text
        return response.json()

    async def create_session(self, teacher: Account, course_id: str, start_in_hours: float = 24, **overrides) -> dict:
        payload = {
            "course_id": course_id,
            "title": "Week 1 lecture",
            "scheduled_start": iso(hours_from_now(start_in_hours)),
            "scheduled_end": iso(hours_from_now(start_in_hours + 1)),
            "meeting_url": "https://meet.example.com/abc",
        }
        payload.update(overrides)
        response = await self.client.post(f"{API}/sessions", json=payload, headers=teacher.headers)
        assert response.status_code == 201, response.text
        return response.json()

    async def link_parent(self, admin: Account, parent: Account, student: Account):
        response = await self.client.post(
            f"{API}/users/{parent.id}/link-student/{student.id}", headers=admin.headers
        )
        assert response.status_code == 201, response.text
        return response.json()


@pytest.fixture
def api(client):
    return Api(client)


@pytest.fixture
async def teacher(api):
    return await api.register("teacher", name="Ms Frizzle")


@pytest.fixture
async def student(api):
    return await api.register("student", name="Arnold")


@pytest.fixture
async def course(api, teacher):
    return await api.create_course(teacher)
