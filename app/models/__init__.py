"""SQLAlchemy models for the listing import catalog."""
from app.models.property_model import CatalogProperty
from app.models.price_history_model import PriceHistory

__all__ = [
    "CatalogProperty",
    "PriceHistory",
]
