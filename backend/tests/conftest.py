"""
DevCamper Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite, one
       shared connection via StaticPool) with all tables created, and an
       app instance whose collaborators are swapped through
       `dependency_overrides`:
           get_db_session    → session on the in-memory database
           get_geocoder      → FakeGeocoder (no network)
           get_email_service → AsyncMock mailer
           get_file_service  → FileService writing to tmp_path

Fixture Hierarchy (all function-scoped):
    engine ─┬─ session_factory ─┬─ db_session
            │                   └─ make_user
            └─ app ── client
"""

import os
import tempfile
from typing import AsyncGenerator, Dict, Optional, Tuple
from unittest.mock import AsyncMock

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["GEOCODER_API_KEY"] = "test-key-not-real"
os.environ["FILE_UPLOAD_PATH"] = tempfile.mkdtemp(prefix="devcamper_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import Base, get_db_session
from app.dependencies import (
    get_email_service,
    get_file_service,
    get_geocoder,
    get_token_codec,
)
from app.models import User
from app.security import hash_password
from app.services.file_service import FileService
from app.services.geo_service import GeoPoint

# Default geocoder answer: Boston University, MA
DEFAULT_POINT = GeoPoint(
    latitude=42.3398,
    longitude=-71.0719,
    formatted_address="233 Bay State Rd, Boston, MA 02215, US",
    street="233 Bay State Rd",
    city="Boston",
    state="MA",
    zipcode="02215",
    country="US",
)


class FakeGeocoder:
    """Stands in for Geocoder: known queries map to fixed points."""

    def __init__(self, points: Optional[Dict[str, GeoPoint]] = None):
        self.points = dict(points or {})
        self.queries = []
        self.configured = True

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def geocode(self, query: str) -> GeoPoint:
        self.queries.append(query)
        return self.points.get(query, DEFAULT_POINT)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for calling services directly (no HTTP)."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_user(session_factory):
    """
    Factory for persisted users.

    Usage:
        user, token = await make_user(role="publisher")
        headers = {"Authorization": f"Bearer {token}"}
    """
    counter = {"n": 0}

    async def factory(
        role: str = "user",
        email: Optional[str] = None,
        password: str = "123456",
        name: Optional[str] = None,
    ) -> Tuple[User, str]:
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@devcamper.io",
            role=role,
            password=hash_password(password, settings.bcrypt_rounds),
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user, get_token_codec().issue(user.id)

    return factory


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


BOOTCAMP_BODY = {
    "name": "Devworks Bootcamp",
    "description": "Devworks is a full stack JavaScript Bootcamp",
    "website": "https://devworks.com",
    "phone": "(111) 111-1111",
    "email": "enroll@devworks.com",
    "address": "233 Bay State Rd Boston MA 02215",
    "careers": ["Web Development", "UI/UX", "Business"],
    "housing": True,
    "job_assistance": True,
    "job_guarantee": False,
    "accept_gi": True,
}


async def create_bootcamp(client: AsyncClient, token: str, **overrides) -> dict:
    response = await client.post(
        "/api/v1/bootcamps", json={**BOOTCAMP_BODY, **overrides}, headers=auth(token)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_course(client: AsyncClient, token: str, bootcamp_id: str, **overrides) -> dict:
    body = {
        "title": "Front End Web Development",
        "description": "HTML, CSS and JavaScript",
        "weeks": 8,
        "tuition": 8000,
        "minimum_skill": "beginner",
        "scholarship_available": True,
        **overrides,
    }
    response = await client.post(
        f"/api/v1/bootcamps/{bootcamp_id}/courses", json=body, headers=auth(token)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_review(client: AsyncClient, token: str, bootcamp_id: str, **overrides) -> dict:
    body = {"title": "Learned a ton", "text": "Great instructors", "rating": 8, **overrides}
    response = await client.post(
        f"/api/v1/bootcamps/{bootcamp_id}/reviews", json=body, headers=auth(token)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def fake_mailer():
    mailer = AsyncMock()
    mailer.send_password_reset = AsyncMock(return_value=None)
    return mailer


@pytest.fixture
def upload_service(tmp_path):
    return FileService(upload_path=str(tmp_path / "uploads"), max_size=1_000_000)


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI + JFIF header + EOI."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )


# ══════════════════════════════════════════════════════════════════════════
# Application
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory, fake_geocoder, fake_mailer, upload_service):
    from app.main import create_app

    application = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_geocoder] = lambda: fake_geocoder
    application.dependency_overrides[get_email_service] = lambda: fake_mailer
    application.dependency_overrides[get_file_service] = lambda: upload_service
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
