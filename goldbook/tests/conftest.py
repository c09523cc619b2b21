"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from goldbook.app.main import app
from goldbook.app.core.config import settings
from goldbook.app.db.session import get_db, get_session_factory, Base
from goldbook.app.core.exceptions import DocumentExportError
from goldbook.app.services.document_export import get_document_exporter, get_object_storage

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# In-process stand-ins for the document renderer and object storage
class FakeDocumentExporter:
    def __init__(self):
        self.rendered = []
        self.fail = False

    async def render(self, voucher, customer, sales_signature, customer_signature):
        if self.fail:
            raise DocumentExportError("Document rendering failed", details={"voucher_id": voucher.id})
        self.rendered.append((voucher.id, customer.account_no, sales_signature, customer_signature))
        return b"%PDF-1.4 voucher " + str(voucher.id).encode()


class FakeObjectStorage:
    def __init__(self):
        self.files = {}

    async def upload(self, data, file_name, content_type="application/pdf"):
        self.files[file_name] = (data, content_type)
        return f"https://files.test/file/vouchers/{file_name}"


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """
    # Every session shares the single in-memory connection
    original_concurrency = settings.balance_fetch_concurrency
    settings.balance_fetch_concurrency = 1

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    yield

    # Restore and clear
    app.dependency_overrides = {}
    settings.balance_fetch_concurrency = original_concurrency


@pytest.fixture
def document_exporter():
    exporter = FakeDocumentExporter()
    app.dependency_overrides[get_document_exporter] = lambda: exporter
    yield exporter
    app.dependency_overrides.pop(get_document_exporter, None)


@pytest.fixture
def object_storage():
    storage = FakeObjectStorage()
    app.dependency_overrides[get_object_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_object_storage, None)


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return TestingSessionLocal
