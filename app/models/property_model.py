"""CatalogProperty SQLAlchemy model — one imported listing owned by a tenant."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    DateTime,
    Float,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.price_history_model import PriceHistory

ROOMS_LENGTH = 50


class CatalogProperty(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Natural key
    tenant_id: Mapped[str] = mapped_column(String(100), index=True, comment="Owning tenant")
    external_id: Mapped[str] = mapped_column(String(255), comment="ID assigned by the source feed")

    # Provenance
    source: Mapped[str] = mapped_column(String(20), default="import", comment="import, manual")
    source_format: Mapped[Optional[str]] = mapped_column(String(30), comment="REAXML, SAHIBINDEN, ...")
    source_url: Mapped[Optional[str]] = mapped_column(String(2048))

    # Basic info
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text)
    property_type: Mapped[str] = mapped_column(String(20), default="other")
    listing_type: Mapped[str] = mapped_column(String(10), default="sale")
    status: Mapped[str] = mapped_column(String(10), default="active")

    # Financial
    price_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    price_currency: Mapped[str] = mapped_column(String(3))

    # Location
    address: Mapped[Optional[str]] = mapped_column(String(500))
    city: Mapped[str] = mapped_column(String(150), default="")
    district: Mapped[Optional[str]] = mapped_column(String(150))
    country: Mapped[str] = mapped_column(String(100))
    country_code: Mapped[str] = mapped_column(String(2))

    # Layout
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer)
    rooms: Mapped[Optional[str]] = mapped_column(String(ROOMS_LENGTH), comment="Market notation, e.g. 3+1")
    area_m2: Mapped[Optional[float]] = mapped_column(Float)
    floor: Mapped[Optional[int]] = mapped_column(Integer)
    total_floors: Mapped[Optional[int]] = mapped_column(Integer)
    building_age: Mapped[Optional[int]] = mapped_column(Integer)

    images: Mapped[list] = mapped_column(JSON, default=list)
    features: Mapped[list] = mapped_column(JSON, default=list)
    raw_metadata: Mapped[Optional[dict]] = mapped_column(JSON, comment="Original source record")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    price_history: Mapped[List["PriceHistory"]] = relationship(
        back_populates="property", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "external_id", name="uq_properties_tenant_external_id"),
        Index("ix_properties_city", "city"),
        Index("ix_properties_property_type", "property_type"),
        Index("ix_properties_price_amount", "price_amount"),
    )

    def __repr__(self) -> str:
        return f"<CatalogProperty(id={self.id}, tenant='{self.tenant_id}', external_id='{self.external_id}')>"
