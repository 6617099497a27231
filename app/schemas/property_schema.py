"""Canonical NormalizedProperty schema.

Every import strategy produces instances of this model, whatever the source
dialect. Coercion of the closed vocabularies (property type, listing type) and
list hygiene (images, features) happen here so strategies only have to pass
through what they extracted.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

CountryCode = Literal["AU", "TR", "UK", "DE", "FR", "ES"]
PropertyType = Literal["apartment", "house", "townhouse", "villa", "land", "rural", "commercial", "other"]
ListingType = Literal["sale", "rent"]
ListingStatus = Literal["active", "sold", "rented"]

PROPERTY_TYPES = ("apartment", "house", "townhouse", "villa", "land", "rural", "commercial", "other")
LISTING_TYPES = ("sale", "rent")


def _dedupe(values: List[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


class NormalizedProperty(BaseModel):
    """Canonical property record — strongly typed, source-agnostic."""
    external_id: str = Field(..., min_length=1)
    title: str
    description: Optional[str] = None
    price: float = Field(0.0, ge=0)
    currency: str = Field(..., min_length=3, max_length=3)
    address: Optional[str] = None
    city: str
    district: Optional[str] = None
    country: str
    country_code: CountryCode
    property_type: PropertyType = "other"
    listing_type: ListingType = "sale"
    status: ListingStatus = "active"
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    rooms: Optional[str] = None            # market notation, e.g. "3+1"
    area: Optional[float] = Field(None, ge=0)
    floor: Optional[int] = None
    total_floors: Optional[int] = None
    building_age: Optional[int] = None
    images: List[str] = []
    features: List[str] = []
    url: Optional[str] = None
    raw_metadata: Dict[str, Any] = {}

    @field_validator("external_id", mode="before")
    @classmethod
    def coerce_external_id(cls, v):
        if v is None:
            return v
        return str(v).strip()

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("property_type", mode="before")
    @classmethod
    def coerce_property_type(cls, v):
        if isinstance(v, str) and v.strip().lower() in PROPERTY_TYPES:
            return v.strip().lower()
        return "other"

    @field_validator("listing_type", mode="before")
    @classmethod
    def coerce_listing_type(cls, v):
        if isinstance(v, str) and v.strip().lower() in LISTING_TYPES:
            return v.strip().lower()
        return "sale"

    @field_validator("images", "features", mode="before")
    @classmethod
    def clean_string_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        cleaned = [str(item).strip() for item in v if item is not None and str(item).strip()]
        return _dedupe(cleaned)
