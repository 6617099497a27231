"""Pydantic schemas for catalog read-back endpoints."""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PriceHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    price_amount: Decimal
    price_currency: str
    recorded_at: datetime


class CatalogPropertyListRead(BaseModel):
    """Compact schema for catalog listing."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    external_id: str
    title: str
    property_type: str
    listing_type: str
    price_amount: Decimal
    price_currency: str
    city: str
    district: Optional[str] = None
    country_code: str
    bedrooms: Optional[int] = None
    rooms: Optional[str] = None
    area_m2: Optional[float] = None
    updated_at: datetime


class CatalogPropertyRead(CatalogPropertyListRead):
    """Full catalog row."""
    source: str
    source_format: Optional[str] = None
    source_url: Optional[str] = None
    description: Optional[str] = None
    status: str
    address: Optional[str] = None
    country: str
    bathrooms: Optional[int] = None
    floor: Optional[int] = None
    total_floors: Optional[int] = None
    building_age: Optional[int] = None
    images: List[str] = []
    features: List[str] = []
    raw_metadata: Optional[dict[str, Any]] = None
    created_at: datetime
    price_history: List[PriceHistoryRead] = []


class PaginatedProperties(BaseModel):
    """Paginated catalog response."""
    items: List[CatalogPropertyListRead]
    total: int
    page: int
    page_size: int
    pages: int
