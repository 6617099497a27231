"""Generic CSV/JSON upload strategy — spreadsheets and ad-hoc JSON exports."""
import csv
import io
import json
from typing import Any, Dict, List, Optional

from app.core.logging import get_logger
from app.schemas.import_schema import ImportFormat
from app.schemas.property_schema import NormalizedProperty
from app.services.country_service import resolve_profile
from app.services.mapper_service import (
    collect_names,
    collect_urls,
    first_text,
    first_value,
    normalize_currency,
    normalize_keys,
    normalize_listing_type,
    normalize_property_type,
    parse_floor,
    parse_int,
    parse_number,
    parse_positive_int,
    rooms_to_bedrooms,
    split_list,
    strip_bom,
)
from app.services.strategies.base import ImportStrategy

logger = get_logger(__name__)

# Synonyms per logical field, keys already normalized (snake_case).
FIELD_SYNONYMS: Dict[str, tuple] = {
    "external_id": ("id", "external_id", "externalid", "listing_id", "property_id", "reference", "ref", "ilan_no"),
    "title": ("title", "name", "headline", "baslik"),
    "description": ("description", "desc", "details", "aciklama"),
    "price": ("price", "fiyat", "amount", "asking_price"),
    "currency": ("currency", "price_currency", "para_birimi", "doviz"),
    "address": ("address", "street_address", "street", "adres"),
    "city": ("city", "suburb", "locality", "town", "sehir", "il"),
    "district": ("district", "state", "region", "county", "ilce", "semt"),
    "country": ("country", "country_code", "ulke"),
    "property_type": ("property_type", "type", "category", "emlak_tipi"),
    "listing_type": ("listing_type", "status", "offer_type", "transaction", "ilan_tipi"),
    "bedrooms": ("bedrooms", "beds", "bedroom_count", "yatak_odasi"),
    "bathrooms": ("bathrooms", "baths", "bathroom_count", "banyo"),
    "rooms": ("rooms", "room_count", "oda", "oda_sayisi"),
    "area": ("area", "size", "sqm", "m2", "floor_area", "metrekare"),
    "floor": ("floor", "kat"),
    "total_floors": ("total_floors", "floors", "kat_sayisi"),
    "building_age": ("building_age", "age", "bina_yasi"),
    "images": ("images", "image_urls", "photos", "image", "fotograflar"),
    "features": ("features", "amenities", "ozellikler"),
    "url": ("url", "link"),
}


def _get(record: Dict[str, Any], field: str) -> Any:
    return first_value(record, FIELD_SYNONYMS[field])


def _text(record: Dict[str, Any], field: str) -> Optional[str]:
    return first_text(record, FIELD_SYNONYMS[field])


class CsvJsonStrategy(ImportStrategy):
    name = "CSV/JSON Upload"
    format = ImportFormat.GENERIC_JSON

    def can_handle(self, content: str, country: Optional[str] = None) -> bool:
        stripped = strip_bom(content).strip()
        if stripped.startswith(("[", "{")):
            try:
                json.loads(stripped)
                return True
            except ValueError:
                return False
        if stripped.startswith("<"):
            return False
        return "," in stripped and "\n" in stripped

    def parse(self, content: str, country: Optional[str] = None) -> List[NormalizedProperty]:
        stripped = strip_bom(content).strip()
        if stripped.startswith(("[", "{")):
            try:
                data = json.loads(stripped)
            except ValueError as e:
                logger.warning("Invalid JSON upload: %s", str(e), extra={"strategy": self.name})
                return []
            return self._parse_json(data, country)
        try:
            return self._parse_csv(stripped, country)
        except csv.Error as e:
            logger.warning("CSV parse error: %s", str(e), extra={"strategy": self.name})
            return []

    # --- JSON ---

    def _parse_json(self, data: Any, country: Optional[str]) -> List[NormalizedProperty]:
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            items = data.get("properties") or data.get("listings") or data.get("data") or []
        else:
            items = []
        if not isinstance(items, list):
            logger.warning("JSON upload has no record array", extra={"strategy": self.name})
            return []
        return self._map_all(items, self._map_json_item, country)

    def _map_json_item(self, item: Any, index: int, country: Optional[str]) -> Optional[Dict[str, Any]]:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object JSON record %d", index, extra={"strategy": self.name})
            return None
        return self._map_record(normalize_keys(item), item, f"json-{index}", country, csv_row=False)

    # --- CSV ---

    def _parse_csv(self, content: str, country: Optional[str]) -> List[NormalizedProperty]:
        reader = csv.reader(io.StringIO(content), skipinitialspace=True)
        rows = [row for row in reader if any(cell.strip() for cell in row)]
        if len(rows) < 2:
            return []

        headers = [h.strip() for h in rows[0]]
        records = []
        for line_no, values in enumerate(rows[1:], start=1):
            if len(values) != len(headers):
                logger.warning(
                    "CSV row %d has %d columns, expected %d; skipped", line_no, len(values), len(headers),
                    extra={"strategy": self.name},
                )
                continue
            records.append((line_no, dict(zip(headers, (v.strip() for v in values)))))

        properties: List[NormalizedProperty] = []
        for line_no, row in records:
            try:
                data = self._map_record(normalize_keys(row), row, f"csv-{line_no}", country, csv_row=True)
            except (TypeError, ValueError) as e:
                logger.warning("CSV row %d could not be mapped: %s", line_no, str(e), extra={"strategy": self.name})
                continue
            prop = self._build_property(data, f"row {line_no}")
            if prop is not None:
                properties.append(prop)
        return properties

    # --- shared mapping ---

    def _map_record(
        self,
        record: Dict[str, Any],
        raw: Dict[str, Any],
        fallback_id: str,
        country: Optional[str],
        csv_row: bool,
    ) -> Dict[str, Any]:
        profile, _ = resolve_profile(_text(record, "country"), hint=country)
        rooms = _text(record, "rooms")
        bedrooms = parse_positive_int(_get(record, "bedrooms"))
        if bedrooms is None:
            bedrooms = rooms_to_bedrooms(rooms)

        images_raw = _get(record, "images")
        features_raw = _get(record, "features")

        return {
            "external_id": _text(record, "external_id") or fallback_id,
            "title": _text(record, "title") or "Untitled Property",
            "description": _text(record, "description"),
            "price": parse_number(_get(record, "price")) or 0.0,
            "currency": normalize_currency(_get(record, "currency")) or profile.currency,
            "address": _text(record, "address"),
            "city": _text(record, "city") or "",
            "district": _text(record, "district"),
            "country": profile.name,
            "country_code": profile.code,
            "property_type": normalize_property_type(_text(record, "property_type")),
            "listing_type": normalize_listing_type(_text(record, "listing_type")),
            "bedrooms": bedrooms,
            "bathrooms": parse_positive_int(_get(record, "bathrooms")),
            "rooms": rooms,
            "area": parse_number(_get(record, "area")),
            "floor": parse_floor(_get(record, "floor")),
            "total_floors": parse_int(_get(record, "total_floors")),
            "building_age": parse_int(_get(record, "building_age")),
            "images": split_list(images_raw) if csv_row else collect_urls(images_raw),
            "features": split_list(features_raw) if csv_row else collect_names(features_raw),
            "url": _text(record, "url"),
            "raw_metadata": dict(raw),
        }
