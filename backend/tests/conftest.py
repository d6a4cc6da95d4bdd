"""
EcoAdmin Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite) and storage
       directory under tmp_path, and an application built around them with
       create_app(settings).

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── settings: Settings pointing at tmp_path
    ├── image_service: ImageService over the temp storage root
    ├── database / db_session: migrated SQLite store and a session on it
    ├── app / test_client: FastAPI app + HTTPX AsyncClient (ASGITransport)
    ├── clock: deterministic, strictly increasing timestamps
    ├── jpeg_bytes / png_bytes / gif_bytes: minimal images per format
    ├── mock_db_session: AsyncMock session for failure-path tests
    └── fake_sniffer (autouse): signature-based MIME detection, so the
        suite does not depend on libmagic; tests marked `real_magic` opt out
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any ecoadmin import: ecoadmin.main builds a module-level app
# from the environment.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="ecoadmin_test_db_"), "module.db"
)
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="ecoadmin_test_")
os.environ["ADMIN_ACCESS_KEY"] = "test-admin-key"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

from ecoadmin.config import Settings  # noqa: E402
from ecoadmin.database import Database  # noqa: E402
from ecoadmin.services.image_service import ImageService  # noqa: E402

ADMIN_KEY = "test-admin-key"

# ── Image fixtures ────────────────────────────────────────────────────────
# Minimal byte sequences carrying each format's signature

JPEG_HEADER = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
)
JPEG_BYTES = JPEG_HEADER + b"\xff\xd9"

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde"
    b"\x00\x00\x00\x0cIDATx\x9cc\xf8\xcf\xc0\x00\x00\x03\x01\x01\x00\xc9\xfe\x92\xef"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)

GIF_BYTES = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff"
    b"!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)


def padded(image: bytes, size: int) -> bytes:
    """`image` followed by zero bytes up to `size` total bytes."""
    return image + b"\x00" * (size - len(image))


def _sniff_by_signature(self, content: bytes) -> str:
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    return "text/plain"


class FakeClock:
    """Returns a later UTC timestamp on every call, one minute apart."""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def fake_sniffer(request, monkeypatch):
    """Replace libmagic sniffing unless the test is marked `real_magic`."""
    if "real_magic" in request.keywords:
        return
    monkeypatch.setattr(ImageService, "_sniff_mime", _sniff_by_signature)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        storage_root=str(tmp_path / "uploads"),
        admin_access_key=ADMIN_KEY,
        rate_limit_requests=100000,
        log_level="WARNING",
        environment="test",
    )


@pytest.fixture
def image_service(settings) -> ImageService:
    return ImageService(settings)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(settings):
    """
    Application wired to the per-test settings.

    ASGITransport does not run the lifespan, so tables are created here.
    """
    from ecoadmin.main import create_app

    application = create_app(settings)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed directly to the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def gif_bytes() -> bytes:
    return GIF_BYTES


@pytest.fixture
def mock_db_session():
    """AsyncSession stand-in for exercising store failure paths."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session
