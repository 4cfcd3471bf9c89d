"""
StreetPaws Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before anything from streetpaws is
       imported, so the settings singleton, the module-level engine and the
       FileService singleton all point at throwaway locations.

Fixture Hierarchy:
    Function-scoped (fresh for each test):
    ├── memory_storage:  initialized MemoryStorage (helplines seeded)
    ├── db_storage:      initialized DatabaseStorage on a temp SQLite file
    ├── storage:         parametrized over both backends
    ├── test_client:     HTTPX AsyncClient → create_app(storage=memory_storage)
    ├── make_image:      real image bytes generated with Pillow
    └── stored_photo:    a photo already present in the upload directory
"""

import os
import tempfile
from io import BytesIO

# Must run before any streetpaws import
_TEST_ROOT = tempfile.mkdtemp(prefix="streetpaws_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["PUBLIC_BASE_URL"] = "http://streetpaws.test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from streetpaws.database import build_engine
from streetpaws.services.file_service import file_service
from streetpaws.storage import DatabaseStorage, MemoryStorage


# ══════════════════════════════════════════════════════════════════════════
# Storage Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def memory_storage():
    storage = MemoryStorage()
    await storage.initialize()
    yield storage
    await storage.close()


@pytest_asyncio.fixture
async def db_storage(tmp_path):
    """DatabaseStorage on its own SQLite file; schema created by initialize()."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'streetpaws.db'}")
    storage = DatabaseStorage(engine)
    await storage.initialize()
    yield storage
    await storage.close()


@pytest_asyncio.fixture(params=["memory", "database"])
async def storage(request, tmp_path):
    """Runs the test once per backend; both must behave identically."""
    if request.param == "memory":
        backend = MemoryStorage()
    else:
        backend = DatabaseStorage(
            build_engine(f"sqlite+aiosqlite:///{tmp_path / 'streetpaws.db'}")
        )
    await backend.initialize()
    yield backend
    await backend.close()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(memory_storage):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    ASGITransport does not run the lifespan, so the storage handed to
    create_app() is already initialized by its fixture.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
            assert response.status_code == 200
    """
    from streetpaws.main import create_app

    app = create_app(storage=memory_storage)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Image Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_image():
    """
    Factory for real image bytes.

    Usage:
        png = make_image("PNG")
        jpeg = make_image("JPEG", size=(64, 48))
    """
    def _make(fmt: str = "PNG", size=(16, 16)) -> bytes:
        buffer = BytesIO()
        Image.new("RGB", size, color=(200, 120, 40)).save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def upload_dir():
    file_service.upload_dir.mkdir(parents=True, exist_ok=True)
    return file_service.upload_dir


@pytest.fixture
def stored_photo(upload_dir, make_image, request):
    """A PNG already in the upload directory; yields its public URL."""
    name = f"animal-fixture-{request.node.name[:40]}.png".replace("[", "-").replace("]", "")
    path = upload_dir / name
    path.write_bytes(make_image("PNG"))
    yield f"/uploads/{name}"
    if path.exists():
        path.unlink()
