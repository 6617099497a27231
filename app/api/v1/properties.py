"""Properties API router — read back what imports wrote to the catalog.
/api/v1/properties"""
import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.api.responses import ok
from app.core.exceptions import NotFoundError
from app.models.property_model import CatalogProperty
from app.schemas.base_schema import ApiResponse
from app.schemas.catalog_schema import CatalogPropertyListRead, CatalogPropertyRead, PaginatedProperties

router = APIRouter()


def _apply_filters(query, **kwargs):
    """Apply dynamic filters to a catalog query."""
    filters = [CatalogProperty.tenant_id == kwargs["tenant_id"]]

    if kwargs.get("city"):
        filters.append(CatalogProperty.city.ilike(f"%{kwargs['city']}%"))
    if kwargs.get("listing_type"):
        filters.append(CatalogProperty.listing_type == kwargs["listing_type"])
    if kwargs.get("property_type"):
        filters.append(CatalogProperty.property_type == kwargs["property_type"])
    if kwargs.get("country_code"):
        filters.append(CatalogProperty.country_code == kwargs["country_code"].upper())

    return query.where(and_(*filters))


@router.get("", response_model=ApiResponse[PaginatedProperties])
async def list_properties(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tenant_id: str = Query(..., min_length=1),
    city: Optional[str] = Query(None),
    listing_type: Optional[str] = Query(None, pattern="^(sale|rent)$"),
    property_type: Optional[str] = Query(None),
    country_code: Optional[str] = Query(None, min_length=2, max_length=2),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """List a tenant's catalog with filtering and pagination."""
    filter_kwargs = {
        "tenant_id": tenant_id, "city": city, "listing_type": listing_type,
        "property_type": property_type, "country_code": country_code,
    }

    count_query = _apply_filters(select(func.count(CatalogProperty.id)), **filter_kwargs)
    total = (await db.execute(count_query)).scalar_one()

    query = _apply_filters(select(CatalogProperty), **filter_kwargs)
    query = query.order_by(CatalogProperty.updated_at.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    rows = (await db.execute(query)).scalars().all()

    return ok(
        PaginatedProperties(
            items=[CatalogPropertyListRead.model_validate(r) for r in rows],
            total=total,
            page=page,
            page_size=page_size,
            pages=math.ceil(total / page_size) if total > 0 else 0,
        ),
        "Properties listed successfully",
        request,
    )


@router.get("/{property_id}", response_model=ApiResponse[CatalogPropertyRead])
async def get_property(property_id: UUID, request: Request, db: AsyncSession = Depends(get_db)):
    row = await db.get(CatalogProperty, property_id)
    if not row:
        raise NotFoundError(f"Property {property_id} not found")
    return ok(CatalogPropertyRead.model_validate(row), "Property retrieved successfully", request)
