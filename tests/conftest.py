"""Shared fixtures and utilities for tests."""

import os
import tempfile

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="cv-storage-"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JSON_LOGS", "false")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.dependencies import get_storage
from api.main import app
from core.exceptions import StorageFailure
from core.security import hash_password
from database.engine import Base, enable_sqlite_foreign_keys
from database.models.candidates import Candidate
from database.models.companies import Company
from database.models.departments import Department
from database.models.positions import Position
from database.models.users import User


class InMemoryStorage:
    """CV storage double keeping objects in a dict."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_on_delete: set[str] = set()
        self.fail_on_upload = False

    async def upload(self, key, data, content_type=None):
        if self.fail_on_upload:
            raise StorageFailure(f"Failed to upload file {key}", key=key)
        self.objects[key] = data
        return f"https://cv-bucket.example.com/{key}"

    async def delete(self, key):
        if key in self.fail_on_delete:
            raise StorageFailure(f"Failed to delete file {key}", key=key)
        self.objects.pop(key, None)
        self.deleted.append(key)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest_asyncio.fixture
async def db_session():
    """Session bound to a fresh in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def tree_factory(db_session, storage):
    """
    Build a company with ``departments`` x ``positions`` x ``candidates``.

    Every candidate gets a stored CV file in ``storage``.
    """

    async def build(name: str, departments: int = 1, positions: int = 1, candidates: int = 1):
        company = Company(name=name, address=f"{name} HQ")
        db_session.add(company)
        await db_session.flush()

        tree = {"company": company, "departments": [], "positions": [], "candidates": []}
        for d in range(departments):
            department = Department(name=f"Dept {d}", company_id=company.id)
            db_session.add(department)
            await db_session.flush()
            tree["departments"].append(department)

            for p in range(positions):
                position = Position(
                    name=f"Position {d}-{p}",
                    department_id=department.id,
                    uploaded_cv=candidates,
                )
                db_session.add(position)
                await db_session.flush()
                tree["positions"].append(position)

                for c in range(candidates):
                    key = f"cv_files/{name}-{d}-{p}-{c}.pdf"
                    storage.objects[key] = b"%PDF-1.4"
                    candidate = Candidate(
                        name=f"Candidate {c}",
                        email=f"candidate{c}@mail.io",
                        position_id=position.id,
                        cv_file=key,
                    )
                    db_session.add(candidate)
                    tree["candidates"].append(candidate)

        user = User(
            name=f"{name} recruiter",
            email=f"recruiter@{name.lower()}.io",
            password_hash=hash_password("recruit-pass"),
            company_id=company.id,
        )
        db_session.add(user)
        tree["user"] = user
        await db_session.commit()
        return tree

    return build


@pytest.fixture
def client(storage):
    """
    Test client running the app lifespan.

    Each client gets a fresh in-memory database: the lifespan creates the
    schema on startup and disposes the engine (and the database) on shutdown.
    """
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_tenant(client):
    """Create a company with a registered, logged-in recruiter."""

    def create(company_name: str, email: str = None, password: str = "SecurePass123!") -> dict:
        response = client.post("/api/v1/companies", json={"name": company_name})
        assert response.status_code == 201, response.text
        company_id = response.json()["id"]

        email = email or f"hr@{company_name.lower().replace(' ', '')}.io"
        response = client.post(
            "/api/v1/auth/register",
            json={
                "name": f"{company_name} HR",
                "email": email,
                "password": password,
                "company_id": company_id,
            },
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["id"]

        response = client.post(
            "/api/v1/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        token = response.json()["access_token"]

        return {
            "company_id": company_id,
            "user_id": user_id,
            "email": email,
            "password": password,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return create


@pytest.fixture
def upload_cv(client):
    """Upload a candidate CV through the API."""

    def upload(headers: dict, position_id: int, email: str, name: str = "Jane Doe", content: bytes = b"%PDF-1.4 cv"):
        return client.post(
            "/api/v1/candidates",
            data={
                "name": name,
                "email": email,
                "position_id": str(position_id),
                "domicile": "Jakarta",
            },
            files={"cv_file": ("resume.pdf", content, "application/pdf")},
            headers=headers,
        )

    return upload
