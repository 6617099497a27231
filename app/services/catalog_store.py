"""Catalog store — where reconciled properties are persisted.

ImportService only depends on the CatalogStore protocol. The SQL
implementation opens one session per operation and commits it, so a
failure while writing one record rolls back that record alone.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import get_logger
from app.models.price_history_model import PriceHistory
from app.models.property_model import ROOMS_LENGTH, CatalogProperty
from app.schemas.property_schema import NormalizedProperty

logger = get_logger(__name__)

IMPORT_SOURCE = "import"


class CatalogStore(Protocol):
    async def find(self, tenant_id: str, external_id: str) -> Optional[Any]:
        ...

    async def create(
        self,
        tenant_id: str,
        record: NormalizedProperty,
        source: str = IMPORT_SOURCE,
        source_format: Optional[str] = None,
    ) -> Any:
        ...

    async def update(self, row: Any, record: NormalizedProperty) -> Any:
        ...


def record_to_row_values(record: NormalizedProperty) -> Dict[str, Any]:
    """Column values for every mutable field of a catalog row."""
    return {
        "title": record.title,
        "description": record.description,
        "property_type": record.property_type,
        "listing_type": record.listing_type,
        "status": record.status,
        "price_amount": Decimal(str(record.price)),
        "price_currency": record.currency,
        "address": record.address,
        "city": record.city,
        "district": record.district,
        "country": record.country,
        "country_code": record.country_code,
        "bedrooms": record.bedrooms,
        "bathrooms": record.bathrooms,
        "rooms": record.rooms[:ROOMS_LENGTH] if record.rooms else None,
        "area_m2": record.area,
        "floor": record.floor,
        "total_floors": record.total_floors,
        "building_age": record.building_age,
        "images": list(record.images),
        "features": list(record.features),
        "source_url": record.url,
        "raw_metadata": record.raw_metadata,
    }


class SqlAlchemyCatalogStore:
    """CatalogStore backed by the `properties` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find(self, tenant_id: str, external_id: str) -> Optional[CatalogProperty]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(CatalogProperty).where(
                    CatalogProperty.tenant_id == tenant_id,
                    CatalogProperty.external_id == external_id,
                )
            )
            return result.scalar_one_or_none()

    async def create(
        self,
        tenant_id: str,
        record: NormalizedProperty,
        source: str = IMPORT_SOURCE,
        source_format: Optional[str] = None,
    ) -> CatalogProperty:
        async with self._session_factory() as db:
            row = CatalogProperty(
                tenant_id=tenant_id,
                external_id=record.external_id,
                source=source,
                source_format=source_format,
                **record_to_row_values(record),
            )
            db.add(row)
            await db.commit()
            await db.refresh(row)
            logger.debug(
                "Created catalog property %s", row.id,
                extra={"tenant_id": tenant_id, "external_id": record.external_id},
            )
            return row

    async def update(self, row: CatalogProperty, record: NormalizedProperty) -> CatalogProperty:
        async with self._session_factory() as db:
            current = await db.get(CatalogProperty, row.id)
            if current is None:
                raise LookupError(f"Catalog property {row.id} no longer exists")

            values = record_to_row_values(record)
            old_price = current.price_amount
            old_currency = current.price_currency
            if old_price is not None and (
                Decimal(old_price) != values["price_amount"] or old_currency != values["price_currency"]
            ):
                db.add(PriceHistory(
                    property_id=current.id,
                    price_amount=old_price,
                    price_currency=old_currency,
                ))
                logger.info(
                    "Price changed: %s %s → %s %s", old_price, old_currency,
                    values["price_amount"], values["price_currency"],
                    extra={"tenant_id": current.tenant_id, "external_id": current.external_id},
                )

            for field, value in values.items():
                setattr(current, field, value)
            current.updated_at = datetime.now(timezone.utc)

            await db.commit()
            await db.refresh(current)
            return current
