"""Tests for the SQLAlchemy catalog store — natural key lookup and price history."""
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models.price_history_model import PriceHistory
from app.models.property_model import ROOMS_LENGTH
from app.services.catalog_store import SqlAlchemyCatalogStore, record_to_row_values
from app.services.import_service import ImportService
from tests.conftest import load_fixture, make_property, test_session_factory


@pytest.mark.asyncio
async def test_create_and_find(sql_store: SqlAlchemyCatalogStore):
    record = make_property(images=["https://x.example/1.jpg"], features=["Pool"], area=180.0)
    row = await sql_store.create("tenant-a", record, source_format="REAXML")

    found = await sql_store.find("tenant-a", "P-1")
    assert found is not None
    assert found.id == row.id
    assert found.source == "import"
    assert found.source_format == "REAXML"
    assert found.price_amount == Decimal("850000")
    assert found.price_currency == "AUD"
    assert found.area_m2 == 180.0
    assert found.images == ["https://x.example/1.jpg"]

    assert await sql_store.find("tenant-b", "P-1") is None


@pytest.mark.asyncio
async def test_update_records_price_change(sql_store: SqlAlchemyCatalogStore):
    row = await sql_store.create("tenant-a", make_property())
    updated = await sql_store.update(row, make_property(price=799000.0, title="Reduced"))

    assert updated.title == "Reduced"
    assert updated.price_amount == Decimal("799000")

    async with test_session_factory() as db:
        history = (await db.execute(select(PriceHistory))).scalars().all()
    assert len(history) == 1
    assert history[0].price_amount == Decimal("850000")
    assert history[0].property_id == row.id


@pytest.mark.asyncio
async def test_update_without_price_change_keeps_history_empty(sql_store: SqlAlchemyCatalogStore):
    row = await sql_store.create("tenant-a", make_property())
    await sql_store.update(row, make_property(bedrooms=4))

    async with test_session_factory() as db:
        history = (await db.execute(select(PriceHistory))).scalars().all()
    assert history == []


@pytest.mark.asyncio
async def test_reimport_is_idempotent(sql_store: SqlAlchemyCatalogStore, registry):
    service = ImportService(registry)
    content = load_fixture("reaxml_sample.xml")

    first = await service.run_import(content, "tenant-a", sql_store)
    second = await service.run_import(content, "tenant-a", sql_store)

    assert first.created_count == 3
    assert (second.created_count, second.updated_count) == (0, 3)
    assert second.errors == []


def test_row_values_fit_rooms_column():
    long_rooms = "3 bedrooms plus study, separate granny flat and attic loft"
    values = record_to_row_values(make_property(rooms=long_rooms))
    assert values["rooms"] == long_rooms[:ROOMS_LENGTH]
    assert record_to_row_values(make_property(rooms="3+1"))["rooms"] == "3+1"
    assert record_to_row_values(make_property())["rooms"] is None


@pytest.mark.asyncio
async def test_long_room_notation_is_stored(sql_store: SqlAlchemyCatalogStore):
    await sql_store.create("tenant-a", make_property(rooms="4+1 dubleks, çatı katı ve bahçe katı ile birlikte toplam"))
    found = await sql_store.find("tenant-a", "P-1")
    assert len(found.rooms) <= ROOMS_LENGTH
    assert found.rooms.startswith("4+1 dubleks")
