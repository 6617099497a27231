"""Turkish portal XML strategy — Sahibinden, Hepsiemlak, EmlakJet and ad-hoc Turkish feeds.

Feeds in this market follow no shared schema, so the strategy is heuristic:
a ranked list of root paths, a "looks like a property" fallback scan, and
per-field synonym lists in Turkish and English.
"""
from typing import Any, Dict, List, Optional, Sequence

from app.core.exceptions import ParsingError
from app.core.logging import get_logger
from app.schemas.import_schema import ImportFormat
from app.schemas.property_schema import NormalizedProperty
from app.services.country_service import COUNTRY_PROFILES
from app.services.mapper_service import (
    collect_names,
    collect_urls,
    first_text,
    first_value,
    is_empty,
    normalize_currency,
    normalize_keys,
    normalize_listing_type,
    normalize_property_type,
    parse_bool,
    parse_floor,
    parse_int,
    parse_number,
    parse_positive_int,
    rooms_to_bedrooms,
)
from app.services.strategies.base import ImportStrategy
from app.services.xml_service import looks_like_xml, xml_to_dict

logger = get_logger(__name__)

PORTAL_KEYWORDS = ("sahibinden", "hepsiemlak", "emlakjet", "ilan", "emlak", "konut", "daire")

ROOT_PATHS = (
    "ilanlar.ilan",
    "emlaklar.emlak",
    "properties.property",
    "konutlar.konut",
    "listings.listing",
    "propertyList.property",
    "data.items",
    "data.ilan",
    "root.ilan",
    "root.property",
    "root.listing",
)

LIKENESS_KEYWORDS = ("fiyat", "price", "sehir", "city", "oda", "rooms", "metrekare", "area", "baslik", "title")

# Ordered synonyms per logical field; keys are normalized (snake_case).
FIELDS: Dict[str, Sequence[str]] = {
    "external_id": (
        "id", "ilan_no", "ilan_id", "ilan_numarasi", "unique_id", "@_id",
        "listing_id", "advert_id",
    ),
    "title": ("baslik", "title", "ilan_baslik", "ilan_basligi", "headline", "ad", "listing_title", "advert_title"),
    "description": (
        "aciklama", "description", "detay", "details", "ilan_aciklama", "ilan_aciklamasi",
        "listing_description", "advert_description",
    ),
    "price": ("fiyat", "price", "tutar", "bedel", "satis_fiyati", "kira_fiyati", "listing_price", "advert_price"),
    "currency": ("para_birimi", "currency", "doviz", "price_currency"),
    "address": ("adres", "address", "konum", "lokasyon", "full_address"),
    "city": ("sehir", "il", "city", "city_name"),
    "district": ("ilce", "semt", "district", "mahalle", "district_name", "county_name", "town_name"),
    "property_type": ("emlak_tipi", "konut_tipi", "property_type", "tip", "category", "emlak_turu", "konut_sekli"),
    "listing_type": ("ilan_tipi", "listing_type", "islem_tipi", "kategori", "ilan_turu", "advert_type"),
    "rooms": ("oda_sayisi", "oda", "rooms", "room_count"),
    "bedrooms": ("yatak_odasi", "yatak", "bedrooms", "bedroom_count"),
    "bathrooms": ("banyo_sayisi", "banyo", "bathrooms", "bathroom_count"),
    "area": (
        "metrekare", "m2", "alan", "area", "brut_m2", "net_m2", "brut_metrekare",
        "gross_area", "net_area", "square_meter",
    ),
    "floor": ("kat", "bulundugu_kat", "floor", "floor_number"),
    "total_floors": ("kat_sayisi", "toplam_kat", "bina_kat_sayisi", "total_floors", "floor_count"),
    "building_age": ("bina_yasi", "yas", "building_age"),
    "images": ("fotograflar", "resimler", "images", "photos", "gorsel", "gorseller", "foto", "image"),
    "features": ("ozellikler", "features", "detaylar", "nitelikler"),
    "url": ("url", "link", "ilan_url", "detay_url", "listing_url", "advert_url"),
}

PRICE_CURRENCY_ATTRS = ("@_para", "@_para_birimi", "@_doviz", "@_currency", "@_birim")

# (flag keys, feature label)
AMENITY_FLAGS = (
    (("otopark", "garaj", "parking"), "Otopark"),
    (("havuz", "pool"), "Havuz"),
    (("bahce", "garden"), "Bahçe"),
    (("asansor", "elevator"), "Asansör"),
    (("guvenlik", "security"), "Güvenlik"),
    (("klima", "air_conditioning"), "Klima"),
    (("esyali", "furnished"), "Eşyalı"),
)


def property_likeness(obj: Any) -> int:
    """How many property keywords appear among an object's field names."""
    if not isinstance(obj, dict):
        return 0
    keys = [str(k).lower() for k in obj.keys()]
    return sum(1 for keyword in LIKENESS_KEYWORDS if any(keyword in key for key in keys))


def _resolve_path(document: Dict[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if isinstance(current, dict) and not is_empty(current.get(part)):
            current = current[part]
        else:
            return None
    return current


def _as_records(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        # <data><items><item>…</item></items></data>
        if property_likeness(value) == 0 and len(value) == 1:
            only = next(iter(value.values()))
            if isinstance(only, list) or (isinstance(only, dict) and property_likeness(only) > 0):
                return _as_records(only)
        return [value]
    return []


def find_listings(document: Dict[str, Any]) -> List[Any]:
    """Locate the listing records: ranked root paths first, then the best-scoring array."""
    for path in ROOT_PATHS:
        found = _resolve_path(document, path)
        if found is not None:
            return _as_records(found)

    best: List[Any] = []
    best_score = 0
    for value in document.values():
        candidates = [value]
        if isinstance(value, dict):
            candidates.extend(value.values())
        for candidate in candidates:
            if isinstance(candidate, list) and candidate:
                score = property_likeness(candidate[0])
                if score > best_score:
                    best, best_score = candidate, score
    if best:
        return best

    # A single-listing document whose root is the listing itself.
    for value in document.values():
        if property_likeness(value) > 0:
            return [value]
    return []


def _flag_on(value: Any) -> bool:
    if is_empty(value):
        return False
    flag = parse_bool(value)
    return flag if flag is not None else True


class TurkishPortalStrategy(ImportStrategy):
    name = "Turkish Portal XML"
    format = ImportFormat.SAHIBINDEN
    formats = (
        ImportFormat.SAHIBINDEN,
        ImportFormat.HEPSIEMLAK,
        ImportFormat.EMLAKJET,
        ImportFormat.GENERIC_XML,
    )
    supported_countries = ("TR",)

    def can_handle(self, content: str, country: Optional[str] = None) -> bool:
        if not looks_like_xml(content):
            return False
        if country and country.upper() == "TR":
            return True
        lowered = content.lower()
        return any(keyword in lowered for keyword in PORTAL_KEYWORDS)

    def parse(self, content: str, country: Optional[str] = None) -> List[NormalizedProperty]:
        try:
            document = xml_to_dict(content)
        except ParsingError as e:
            logger.warning("Turkish XML parse error: %s", e.detail, extra={"strategy": self.name})
            return []

        listings = find_listings(document)
        if not listings:
            logger.info("No listing records found in Turkish XML", extra={"strategy": self.name})
        return self._map_all(listings, self._map_listing)

    def _map_listing(self, item: Any, index: int) -> Optional[Dict[str, Any]]:
        if not isinstance(item, dict):
            return None
        record = normalize_keys(item)
        location = next(
            (record[key] for key in ("location", "adres", "address") if isinstance(record.get(key), dict)),
            {},
        )
        location = normalize_keys(location)
        profile = COUNTRY_PROFILES["TR"]

        def get(field: str) -> Any:
            return first_value(record, FIELDS[field])

        def text(field: str) -> Optional[str]:
            return first_text(record, FIELDS[field])

        rooms = text("rooms")
        bedrooms = rooms_to_bedrooms(rooms)
        if bedrooms is None:
            bedrooms = parse_positive_int(get("bedrooms"))

        return {
            "external_id": text("external_id") or f"tr-{index}",
            "title": text("title") or "İlan",
            "description": text("description"),
            "price": parse_number(get("price")) or 0.0,
            "currency": self._currency(record, get("price")) or profile.currency,
            "address": text("address"),
            "city": text("city") or first_text(location, FIELDS["city"]) or "",
            "district": text("district") or first_text(location, FIELDS["district"]),
            "country": profile.name,
            "country_code": profile.code,
            "property_type": normalize_property_type(text("property_type")),
            "listing_type": normalize_listing_type(text("listing_type")),
            "bedrooms": bedrooms,
            "bathrooms": parse_positive_int(get("bathrooms")),
            "rooms": rooms,
            "area": parse_number(get("area")),
            "floor": parse_floor(get("floor")),
            "total_floors": parse_int(get("total_floors")),
            "building_age": parse_int(get("building_age")),
            "images": collect_urls(get("images")),
            "features": self._features(record),
            "url": text("url"),
            "raw_metadata": item,
        }

    @staticmethod
    def _currency(record: Dict[str, Any], price_node: Any) -> Optional[str]:
        if isinstance(price_node, dict):
            for attr in PRICE_CURRENCY_ATTRS:
                code = normalize_currency(price_node.get(attr))
                if code:
                    return code
        return normalize_currency(first_text(record, FIELDS["currency"]))

    @staticmethod
    def _features(record: Dict[str, Any]) -> List[str]:
        features: List[str] = []
        for key in FIELDS["features"]:
            features.extend(collect_names(record.get(key)))
        for keys, label in AMENITY_FLAGS:
            if any(_flag_on(record.get(key)) for key in keys):
                features.append(label)
        return features
