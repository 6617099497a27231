"""REAXML strategy — the Australian real-estate XML feed.

A <propertyList> holds one element per listing, and the element name is the
listing category: residential, rental, holidayRental, commercial,
commercialRental, business, land, commercialLand, rural. The category decides
listing_type and, for non-residential categories, forces property_type.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import ParsingError
from app.core.logging import get_logger
from app.schemas.import_schema import ImportFormat
from app.schemas.property_schema import NormalizedProperty
from app.services.country_service import COUNTRY_PROFILES
from app.services.mapper_service import (
    collect_urls,
    normalize_property_type,
    parse_bool,
    parse_number,
    parse_positive_int,
    split_list,
    text_of,
)
from app.services.strategies.base import ImportStrategy
from app.services.xml_service import looks_like_xml, xml_to_dict

logger = get_logger(__name__)

# container tag → (listing_type, forced property_type)
CONTAINERS: Dict[str, Tuple[str, Optional[str]]] = {
    "residential": ("sale", None),
    "rental": ("rent", None),
    "holidayRental": ("rent", None),
    "commercial": ("sale", "commercial"),
    "commercialRental": ("rent", "commercial"),
    "business": ("sale", "commercial"),
    "land": ("sale", "land"),
    "commercialLand": ("sale", "land"),
    "rural": ("sale", "rural"),
}

_SNIFF_PATTERN = re.compile(r"<(?:propertyList|" + "|".join(CONTAINERS) + r")\b")

SKIPPED_STATUSES = ("withdrawn", "offmarket")
STATUS_MAP = {"sold": "sold", "leased": "rented"}

# Multipliers to square metres.
AREA_UNITS = {
    "squaremeter": 1.0,
    "squaremetre": 1.0,
    "sqm": 1.0,
    "m2": 1.0,
    "square": 9.290304,  # Australian "square" = 100 sq ft
    "squarefeet": 0.09290304,
    "sqft": 0.09290304,
    "acre": 4046.8564224,
    "hectare": 10000.0,
}

# features/<flag> → feature label
FEATURE_FLAGS = (
    ("garages", "Garage"),
    ("carports", "Carport"),
    ("airConditioning", "Air Conditioning"),
    ("pool", "Pool"),
    ("alarmSystem", "Alarm System"),
    ("ensuite", "Ensuite"),
)


def _as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def _attr(node: Any, name: str) -> Optional[str]:
    if isinstance(node, dict):
        value = node.get(f"@_{name}")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def price_value(node: Any) -> Optional[float]:
    """Price from a bare number, a symbol-laden string, or a labeled object."""
    if node is None:
        return None
    if isinstance(node, list):
        for entry in node:
            value = price_value(entry)
            if value is not None:
                return value
        return None
    if isinstance(node, dict):
        for key in ("priceValue", "value", "#text", "@_value"):
            if key in node:
                value = price_value(node[key])
                if value is not None:
                    return value
        return None
    return parse_number(node)


def area_value(node: Any) -> Optional[float]:
    """Area in m², converting from the element's unit attribute."""
    if node is None or node == "":
        return None
    amount = parse_number(text_of(node) if isinstance(node, dict) else node)
    if amount is None:
        return None
    unit = (_attr(node, "unit") or "squareMeter").lower()
    factor = AREA_UNITS.get(unit)
    if factor is None:
        logger.warning("Unknown REAXML area unit '%s', assuming square metres", unit)
        factor = 1.0
    return round(amount * factor, 2)


def extract_images(objects: Any) -> List[str]:
    """objects/img as a single object, a list of objects, or a bare list."""
    if not isinstance(objects, dict):
        return []
    urls: List[str] = []
    for img in _as_list(objects.get("img")):
        if isinstance(img, dict):
            url = _attr(img, "url") or _attr(img, "file")
            if url:
                urls.append(url)
        else:
            urls.extend(collect_urls(img))
    return urls


class ReaxmlStrategy(ImportStrategy):
    name = "REAXML Feed (Australia)"
    format = ImportFormat.REAXML
    supported_countries = ("AU",)

    def can_handle(self, content: str, country: Optional[str] = None) -> bool:
        if country and country.upper() != "AU":
            return False
        if not looks_like_xml(content):
            return False
        return bool(_SNIFF_PATTERN.search(content))

    def parse(self, content: str, country: Optional[str] = None) -> List[NormalizedProperty]:
        try:
            document = xml_to_dict(content)
        except ParsingError as e:
            logger.warning("REAXML parse error: %s", e.detail, extra={"strategy": self.name})
            return []

        root_name, root = next(iter(document.items()))
        if root_name in CONTAINERS:
            root = {root_name: root}
        if not isinstance(root, dict):
            return []

        properties: List[NormalizedProperty] = []
        for container in CONTAINERS:
            items = _as_list(root.get(container))
            properties.extend(self._map_all(items, self._map_listing, container))
        return properties

    def _map_listing(self, item: Any, index: int, container: str) -> Optional[Dict[str, Any]]:
        if not isinstance(item, dict):
            return None

        status_attr = (_attr(item, "status") or "current").lower()
        if status_attr in SKIPPED_STATUSES:
            logger.info(
                "Skipping %s listing with status '%s'", container, status_attr,
                extra={"strategy": self.name, "external_id": text_of(item.get("uniqueID"))},
            )
            return None

        listing_type, forced_type = CONTAINERS[container]
        lease_mode = (_attr(item.get("commercialListingType"), "value") or "").lower()
        if container == "commercial" and lease_mode == "lease":
            listing_type = "rent"

        address = item.get("address") if isinstance(item.get("address"), dict) else {}
        suburb = text_of(address.get("suburb")) or ""
        street_number = text_of(address.get("streetNumber"))
        features = item.get("features") if isinstance(item.get("features"), dict) else {}

        category = _attr(item.get("category"), "name") or text_of(item.get("category"))
        property_type = forced_type or normalize_property_type(category)
        bedrooms = parse_positive_int(features.get("bedrooms"))

        return {
            "external_id": self._external_id(item, suburb, street_number, container, index),
            "title": text_of(item.get("headline")) or self._fallback_title(bedrooms, category, property_type, suburb),
            "description": text_of(item.get("description")),
            "price": self._price(item, listing_type) or 0.0,
            "currency": COUNTRY_PROFILES["AU"].currency,
            "address": self._address(address, street_number),
            "city": suburb,
            "district": text_of(address.get("state")),
            "country": COUNTRY_PROFILES["AU"].name,
            "country_code": "AU",
            "property_type": property_type,
            "listing_type": listing_type,
            "status": STATUS_MAP.get(status_attr, "active"),
            "bedrooms": bedrooms,
            "bathrooms": parse_positive_int(features.get("bathrooms")),
            "area": self._area(item),
            "images": extract_images(item.get("objects")),
            "features": self._features(features),
            "url": _attr(item.get("externalLink"), "href"),
            "raw_metadata": item,
        }

    @staticmethod
    def _external_id(item: Dict[str, Any], suburb: str, street_number: Optional[str], container: str, index: int) -> str:
        unique_id = text_of(item.get("uniqueID"))
        if unique_id:
            return unique_id
        parts = [p for p in (_attr(item, "modTime"), suburb, street_number) if p]
        if parts:
            return "-".join(parts)
        return f"reaxml-{container}-{index}"

    @staticmethod
    def _fallback_title(bedrooms: Optional[int], category: Optional[str], property_type: str, suburb: str) -> str:
        label = category or property_type.capitalize()
        title = f"{label} in {suburb}" if suburb else label
        if bedrooms:
            title = f"{bedrooms} Bed {title}"
        return title

    @staticmethod
    def _address(address: Dict[str, Any], street_number: Optional[str]) -> Optional[str]:
        sub_number = text_of(address.get("subNumber"))
        street = text_of(address.get("street"))
        number = f"{sub_number}/{street_number}" if sub_number and street_number else (street_number or sub_number)
        line = " ".join(p for p in (number, street) if p)
        return line or None

    @staticmethod
    def _price(item: Dict[str, Any], listing_type: str) -> Optional[float]:
        keys = ("rent", "commercialRent", "price") if listing_type == "rent" else ("price", "rent")
        for key in keys:
            value = price_value(item.get(key))
            if value is not None:
                return value
        return None

    @staticmethod
    def _area(item: Dict[str, Any]) -> Optional[float]:
        for section in ("buildingDetails", "landDetails"):
            details = item.get(section)
            if isinstance(details, dict):
                value = area_value(details.get("area"))
                if value is not None:
                    return value
        return None

    @staticmethod
    def _features(features: Dict[str, Any]) -> List[str]:
        labels = [label for flag, label in FEATURE_FLAGS if parse_bool(features.get(flag))]
        labels.extend(split_list(features.get("otherFeatures")))
        return labels
