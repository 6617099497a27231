"""Structured-data strategy — schema.org JSON-LD embedded in listing pages.

The page is fetched through the injected HttpFetcher; extract_listings() is a
pure function over the HTML so it can be used (and tested) without network.
"""
import json
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from app.core.logging import get_logger
from app.schemas.import_schema import ImportFormat
from app.schemas.property_schema import NormalizedProperty
from app.services.country_service import resolve_profile
from app.services.mapper_service import (
    collect_urls,
    is_rent_text,
    normalize_currency,
    normalize_property_type,
    parse_floor,
    parse_number,
    parse_positive_int,
    strip_bom,
    strip_html,
    text_of,
)
from app.services.strategies.base import ImportStrategy, build_property, is_url

logger = get_logger(__name__)

LISTING_TYPES = {
    "RealEstateListing",
    "SingleFamilyResidence",
    "Apartment",
    "House",
    "Residence",
    "Accommodation",
    "Product",
}

TYPE_MAP = {
    "Apartment": "apartment",
    "SingleFamilyResidence": "house",
    "House": "house",
}

# UN/CEFACT unit codes used by QuantitativeValue.unitCode
AREA_UNIT_CODES = {"MTK": 1.0, "FTK": 0.09290304, "SQM": 1.0, "SQF": 0.09290304}


def _types(node: Dict[str, Any]) -> List[str]:
    raw = node.get("@type")
    values = raw if isinstance(raw, list) else [raw]
    # "schema:House" / "https://schema.org/House" → "House"
    return [str(v).rsplit("/", 1)[-1].rsplit(":", 1)[-1] for v in values if v]


def is_listing_node(node: Any) -> bool:
    return isinstance(node, dict) and bool(LISTING_TYPES.intersection(_types(node)))


def iter_nodes(data: Any) -> Iterator[Dict[str, Any]]:
    """Flatten objects, arrays, @graph arrays and ItemList entries."""
    if isinstance(data, list):
        for entry in data:
            yield from iter_nodes(entry)
        return
    if not isinstance(data, dict):
        return
    yield data
    if isinstance(data.get("@graph"), list):
        yield from iter_nodes(data["@graph"])
    if "ItemList" in _types(data):
        for element in data.get("itemListElement") or []:
            if isinstance(element, dict):
                yield from iter_nodes(element.get("item", element) if "ListItem" in _types(element) else element)


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def quantity(value: Any) -> Optional[float]:
    """Plain number/string or QuantitativeValue {value, unitCode}."""
    if isinstance(value, dict):
        amount = parse_number(value.get("value"))
        if amount is None:
            return None
        unit = str(value.get("unitCode") or value.get("unitText") or "MTK").upper()
        return round(amount * AREA_UNIT_CODES.get(unit, 1.0), 2)
    return parse_number(value)


def _residence(node: Dict[str, Any]) -> Dict[str, Any]:
    """The residence a RealEstateListing is about, merged under the listing's own fields."""
    if "RealEstateListing" not in _types(node):
        return node
    for key in ("about", "mainEntity", "itemOffered"):
        inner = _first(node.get(key))
        if isinstance(inner, dict):
            merged = dict(inner)
            merged.update({k: v for k, v in node.items() if v not in (None, "", [], {})})
            merged["@type"] = _types(node) + _types(inner)
            return merged
    return node


def _listing_type(node: Dict[str, Any], offer: Dict[str, Any]) -> str:
    business = str(offer.get("businessFunction") or "").lower()
    if "lease" in business:  # gr:LeaseOut
        return "rent"
    for candidate in (offer.get("@type"), offer.get("category"), offer.get("name"), node.get("category")):
        if is_rent_text(candidate):
            return "rent"
    if is_rent_text(node.get("description")) or is_rent_text(node.get("name")):
        return "rent"
    return "sale"


def _property_type(node: Dict[str, Any]) -> str:
    for node_type in _types(node):
        if node_type in TYPE_MAP:
            return TYPE_MAP[node_type]
    return normalize_property_type(node.get("category") or node.get("accommodationCategory"))


def map_node(node: Dict[str, Any], page_url: str, country: Optional[str], fallback_id: str) -> Dict[str, Any]:
    node = _residence(node)
    offer = _first(node.get("offers"))
    offer = offer if isinstance(offer, dict) else {}
    spec = _first(offer.get("priceSpecification"))
    spec = spec if isinstance(spec, dict) else {}

    address = node.get("address")
    if isinstance(address, dict):
        street = text_of(address.get("streetAddress"))
        city = text_of(address.get("addressLocality"))
        region = text_of(address.get("addressRegion"))
        address_country = address.get("addressCountry")
        address_line = ", ".join(p for p in (street, city, region) if p) or None
    else:
        city = region = address_country = None
        address_line = text_of(address)

    profile, explicit = resolve_profile(address_country, hint=country)
    if explicit:
        currency = profile.currency
    else:
        currency = normalize_currency(offer.get("priceCurrency") or spec.get("priceCurrency")) or profile.currency

    bedrooms = parse_positive_int(quantity(node.get("numberOfBedrooms")))
    rooms_value = quantity(node.get("numberOfRooms"))
    if bedrooms is None:
        bedrooms = parse_positive_int(rooms_value)
    bathrooms = node.get("numberOfBathroomsTotal") or node.get("numberOfFullBathrooms")

    url = text_of(node.get("url"))
    return {
        "external_id": text_of(node.get("@id")) or url or fallback_id,
        "title": text_of(node.get("name")) or text_of(node.get("headline")) or "Unknown Property",
        "description": strip_html(text_of(node.get("description"))),
        "price": parse_number(offer.get("price") or spec.get("price")) or 0.0,
        "currency": currency,
        "address": address_line,
        "city": city or "",
        "district": region,
        "country": profile.name,
        "country_code": profile.code,
        "property_type": _property_type(node),
        "listing_type": _listing_type(node, offer),
        "bedrooms": bedrooms,
        "bathrooms": parse_positive_int(quantity(bathrooms)),
        "rooms": str(int(rooms_value)) if rooms_value is not None else None,
        "area": quantity(node.get("floorSize")),
        "floor": parse_floor(node.get("floorLevel")),
        "images": [urljoin(page_url, u) for u in collect_urls(node.get("image") or node.get("photo"))],
        "url": urljoin(page_url, url) if url else page_url,
        "raw_metadata": node,
    }


def extract_listings(html: str, page_url: str, country: Optional[str] = None) -> List[NormalizedProperty]:
    """Parse every JSON-LD block on a page into NormalizedProperty records."""
    soup = BeautifulSoup(html, "lxml")
    nodes: List[Dict[str, Any]] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Invalid JSON-LD block on %s: %s", page_url, str(e), extra={"url": page_url})
            continue
        nodes.extend(node for node in iter_nodes(data) if is_listing_node(node))

    properties: List[NormalizedProperty] = []
    for index, node in enumerate(nodes):
        fallback_id = page_url if len(nodes) == 1 else f"{page_url}#{index}"
        try:
            data = map_node(node, page_url, country, fallback_id)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Error mapping JSON-LD node %d on %s: %s", index, page_url, str(e), extra={"url": page_url})
            continue
        prop = build_property(data, SchemaOrgStrategy.name, index)
        if prop is not None:
            properties.append(prop)
    return properties


class SchemaOrgStrategy(ImportStrategy):
    name = "Website Import (JSON-LD)"
    format = ImportFormat.WEBSITE_SCRAPE

    def __init__(self, fetcher):
        self.fetcher = fetcher

    def can_handle(self, content: str, country: Optional[str] = None) -> bool:
        return is_url(content)

    def parse(self, content: str, country: Optional[str] = None) -> List[NormalizedProperty]:
        url = strip_bom(content).strip()
        html = self.fetcher.get_text(url)
        if html is None:
            logger.warning("Could not fetch listing page %s", url, extra={"strategy": self.name, "url": url})
            return []
        properties = extract_listings(html, url, country)
        logger.info(
            "Extracted %d JSON-LD listings from %s", len(properties), url,
            extra={"strategy": self.name, "url": url},
        )
        return properties
