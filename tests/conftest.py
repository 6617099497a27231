"""Test fixtures — async test client, test database, fake fetcher, in-memory store."""
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.database import Base
from app.api.deps import get_catalog_store, get_db, get_registry
from app.main import app
from app.schemas.property_schema import NormalizedProperty
from app.services.catalog_store import IMPORT_SOURCE, SqlAlchemyCatalogStore
from app.services.registry import StrategyRegistry, build_default_registry


TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"
FIXTURES_DIR = Path(__file__).parent / "fixtures"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class FakeFetcher:
    """Stands in for HttpFetcher; serves canned bodies keyed by URL."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, json_docs: Optional[Dict[str, Any]] = None):
        self.pages = pages or {}
        self.json_docs = json_docs or {}
        self.requested: List[str] = []

    def get_text(self, url: str) -> Optional[str]:
        self.requested.append(url)
        return self.pages.get(url)

    def get_json(self, url: str) -> Optional[Any]:
        self.requested.append(url)
        return self.json_docs.get(url)

    def close(self) -> None:
        pass


class StoredRow:
    def __init__(self, tenant_id: str, record: NormalizedProperty, source: str, source_format: Optional[str]):
        self.tenant_id = tenant_id
        self.external_id = record.external_id
        self.record = record
        self.source = source
        self.source_format = source_format


class InMemoryCatalogStore:
    """CatalogStore kept in a dict; external ids listed in fail_on raise on write."""

    def __init__(self, fail_on: Tuple[str, ...] = ()):
        self.rows: Dict[Tuple[str, str], StoredRow] = {}
        self.fail_on = set(fail_on)
        self.updates = 0

    async def find(self, tenant_id: str, external_id: str) -> Optional[StoredRow]:
        return self.rows.get((tenant_id, external_id))

    async def create(
        self,
        tenant_id: str,
        record: NormalizedProperty,
        source: str = IMPORT_SOURCE,
        source_format: Optional[str] = None,
    ) -> StoredRow:
        if record.external_id in self.fail_on:
            raise RuntimeError("constraint violation")
        row = StoredRow(tenant_id, record, source, source_format)
        self.rows[(tenant_id, record.external_id)] = row
        return row

    async def update(self, row: StoredRow, record: NormalizedProperty) -> StoredRow:
        if record.external_id in self.fail_on:
            raise RuntimeError("constraint violation")
        row.record = record
        self.updates += 1
        return row


def make_property(**overrides) -> NormalizedProperty:
    """Create a valid NormalizedProperty."""
    defaults = {
        "external_id": "P-1",
        "title": "3 Bed House in Richmond",
        "price": 850000.0,
        "currency": "AUD",
        "city": "Richmond",
        "country": "Australia",
        "country_code": "AU",
        "property_type": "house",
        "listing_type": "sale",
        "bedrooms": 3,
    }
    defaults.update(overrides)
    return NormalizedProperty(**defaults)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def registry(fake_fetcher: FakeFetcher) -> StrategyRegistry:
    return build_default_registry(fake_fetcher)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables and yield a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def sql_store(db_session: AsyncSession) -> SqlAlchemyCatalogStore:
    return SqlAlchemyCatalogStore(test_session_factory)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession, registry: StrategyRegistry
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an HTTP test client with the test DB, a SQL store and a network-free registry injected.

    Each request gets its own session: imports write through separate
    sessions, so a shared one would serve stale rows from its identity map.
    """

    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_catalog_store] = lambda: SqlAlchemyCatalogStore(test_session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
