"""API dependencies — database session, strategy registry, import service and catalog store.

The registry is built once in the application lifespan and kept on
app.state; tests override these dependencies instead of patching globals.
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session_factory
from app.services.catalog_store import CatalogStore, SqlAlchemyCatalogStore
from app.services.import_service import ImportService
from app.services.registry import StrategyRegistry, build_default_registry


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for request scope."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_registry(request: Request) -> StrategyRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        # Lifespan did not run (e.g. app mounted without startup events).
        registry = build_default_registry()
        request.app.state.registry = registry
    return registry


def get_import_service(registry: StrategyRegistry = Depends(get_registry)) -> ImportService:
    return ImportService(registry)


def get_catalog_store() -> CatalogStore:
    return SqlAlchemyCatalogStore(async_session_factory)
