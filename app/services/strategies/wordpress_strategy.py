"""WordPress REST strategy — real-estate themes and plugins exposing listings over /wp-json.

No plugin publishes the same field names, so every logical field is looked up
across containers (top level, then acf, meta, custom_fields) and, inside each
container, across the usual name variants (price, _price, property_price, ...).
"""
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from app.config import settings
from app.core.logging import get_logger
from app.schemas.import_schema import ImportFormat
from app.schemas.property_schema import NormalizedProperty
from app.services.country_service import resolve_profile
from app.services.mapper_service import (
    collect_names,
    collect_urls,
    is_empty,
    normalize_currency,
    normalize_listing_type,
    normalize_property_type,
    parse_floor,
    parse_int,
    parse_number,
    parse_positive_int,
    rooms_to_bedrooms,
    strip_bom,
    strip_html,
    text_of,
)
from app.services.strategies.base import ImportStrategy, build_property, is_url

logger = get_logger(__name__)

ENDPOINTS = (
    "/wp-json/wp/v2/properties",
    "/wp-json/wp/v2/property",
    "/wp-json/wp/v2/listings",
    "/wp-json/wp/v2/wpsight-listing",
    "/wp-json/wp/v2/estate_property",
    "/wp-json/realestate/v1/properties",
)

CONTAINERS = (None, "acf", "meta", "custom_fields")
# Post fields every WordPress object carries; never listing attributes.
CORE_POST_FIELDS = {"id", "date", "status", "type", "link", "title", "content", "excerpt", "slug", "author", "template"}
NAME_PREFIXES = ("", "_", "property_", "_property_", "fave_property_", "REAL_HOMES_property_")

FIELDS: Dict[str, Sequence[str]] = {
    "price": ("price", "sale_price", "rent_price"),
    "currency": ("currency", "price_currency"),
    "address": ("address", "map_address", "street_address"),
    "city": ("city", "town", "suburb", "locality"),
    "district": ("district", "state", "region", "neighborhood"),
    "country": ("country", "country_code"),
    "property_type": ("type", "property_type", "category"),
    "listing_type": ("status", "listing_type", "offer_type", "contract", "purpose"),
    "bedrooms": ("bedrooms", "beds", "bedroom"),
    "bathrooms": ("bathrooms", "baths", "bathroom"),
    "rooms": ("rooms", "room_count"),
    "area": ("size", "area", "sqm", "living_area", "floor_area"),
    "floor": ("floor",),
    "total_floors": ("total_floors", "floors"),
    "building_age": ("building_age", "age"),
    "images": ("images", "gallery", "photos", "image_gallery"),
    "features": ("features", "amenities"),
}


def _unwrap(value: Any) -> Any:
    if isinstance(value, list) and len(value) == 1:
        return value[0]
    return value


def _is_term_ids(value: Any) -> bool:
    # Taxonomy and attachment references ([12, 15]) carry no usable value.
    return isinstance(value, list) and bool(value) and all(isinstance(v, int) for v in value)


def lookup(item: Dict[str, Any], field: str, unwrap: bool = True) -> Any:
    """First non-empty value for a logical field across containers and name variants."""
    for container_key in CONTAINERS:
        container = item if container_key is None else item.get(container_key)
        if not isinstance(container, dict):
            continue
        for name in FIELDS[field]:
            for prefix in NAME_PREFIXES:
                key = prefix + name
                if container_key is None and key in CORE_POST_FIELDS:
                    continue
                value = container.get(key)
                if _is_term_ids(value):
                    continue
                if unwrap:
                    value = _unwrap(value)
                if not is_empty(value) and value is not False:
                    return value
    return None


def _rendered(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("rendered")
    return strip_html(value) if value else None


def _images(item: Dict[str, Any]) -> List[str]:
    images: List[str] = []
    if item.get("featured_media_src_url"):
        images.append(item["featured_media_src_url"])
    embedded = item.get("_embedded") if isinstance(item.get("_embedded"), dict) else {}
    for media in embedded.get("wp:featuredmedia") or []:
        if isinstance(media, dict) and media.get("source_url"):
            images.append(media["source_url"])
    images.extend(collect_urls(lookup(item, "images", unwrap=False)))
    return images


def map_item(item: Dict[str, Any], origin: str, country: Optional[str], index: int) -> Dict[str, Any]:
    profile, _ = resolve_profile(text_of(lookup(item, "country")), hint=country)
    post_id = item.get("id")

    rooms = text_of(lookup(item, "rooms"))
    bedrooms = parse_positive_int(lookup(item, "bedrooms"))
    if bedrooms is None:
        bedrooms = rooms_to_bedrooms(rooms)

    title = item.get("title")
    return {
        "external_id": f"wp-{post_id}" if post_id not in (None, "") else (item.get("link") or f"wp-item-{index}"),
        "title": _rendered(title) or "Untitled",
        "description": _rendered(item.get("content")) or _rendered(item.get("excerpt")),
        "price": parse_number(lookup(item, "price")) or 0.0,
        "currency": normalize_currency(lookup(item, "currency")) or profile.currency,
        "address": text_of(lookup(item, "address")),
        "city": text_of(lookup(item, "city")) or "",
        "district": text_of(lookup(item, "district")),
        "country": profile.name,
        "country_code": profile.code,
        "property_type": normalize_property_type(text_of(lookup(item, "property_type"))),
        "listing_type": normalize_listing_type(text_of(lookup(item, "listing_type"))),
        "bedrooms": bedrooms,
        "bathrooms": parse_positive_int(lookup(item, "bathrooms")),
        "rooms": rooms,
        "area": parse_number(lookup(item, "area")),
        "floor": parse_floor(lookup(item, "floor")),
        "total_floors": parse_int(lookup(item, "total_floors")),
        "building_age": parse_int(lookup(item, "building_age")),
        "images": _images(item),
        "features": collect_names(lookup(item, "features", unwrap=False)),
        "url": item.get("link") or (f"{origin}/?p={post_id}" if post_id else None),
        "raw_metadata": item,
    }


def map_items(items: List[Any], origin: str, country: Optional[str] = None) -> List[NormalizedProperty]:
    """Map a WordPress REST collection to NormalizedProperty records."""
    properties: List[NormalizedProperty] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        try:
            data = map_item(item, origin, country, index)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Error mapping WordPress item %s: %s", item.get("id"), str(e), extra={"url": origin})
            continue
        prop = build_property(data, WordPressStrategy.name, item.get("id", index))
        if prop is not None:
            properties.append(prop)
    return properties


class WordPressStrategy(ImportStrategy):
    name = "WordPress API Import"
    format = ImportFormat.WORDPRESS_API

    def __init__(self, fetcher, per_page: Optional[int] = None):
        self.fetcher = fetcher
        self.per_page = per_page or settings.wordpress_per_page

    def can_handle(self, content: str, country: Optional[str] = None) -> bool:
        return is_url(content)

    def parse(self, content: str, country: Optional[str] = None) -> List[NormalizedProperty]:
        parsed = urlparse(strip_bom(content).strip())
        origin = f"{parsed.scheme}://{parsed.netloc}"

        for endpoint in ENDPOINTS:
            url = f"{origin}{endpoint}?per_page={self.per_page}&_embed=1"
            data = self.fetcher.get_json(url)
            if isinstance(data, list) and data:
                logger.info(
                    "WordPress endpoint %s returned %d items", endpoint, len(data),
                    extra={"strategy": self.name, "url": url},
                )
                return map_items(data, origin, country)
            logger.debug("No listings at %s", url, extra={"strategy": self.name, "url": url})

        logger.warning("No WordPress listing endpoint responded on %s", origin, extra={"strategy": self.name})
        return []
