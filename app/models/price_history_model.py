"""PriceHistory SQLAlchemy model — previous prices of a catalog property."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.property_model import CatalogProperty


class PriceHistory(Base):
    __tablename__ = "property_price_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        index=True,
    )
    price_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    price_currency: Mapped[str] = mapped_column(String(3))
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    property: Mapped["CatalogProperty"] = relationship(back_populates="price_history")

    def __repr__(self) -> str:
        return f"<PriceHistory(property={self.property_id}, price={self.price_amount} {self.price_currency})>"
