"""Mapper service — field-level normalization shared by every import strategy.

Handles:
- Number parsing: "$450,000" → 450000.0, "1.250.000 TL" → 1250000.0, "1,200.50" → 1200.5
- Integer parsing: "3+1" → 3, "-1" → -1
- Boolean mapping: "Yes"/"evet"/"var" → True, "no"/"hayır"/"yok" → False
- Vocabulary mapping: free text → property_type / listing_type
- Key normalization: "PropertyType", "property-type" → "property_type"
- Synonym lookup: first non-empty value across an ordered key list
- HTML stripping and list splitting for CMS and CSV sources
"""
import html
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.core.logging import get_logger

logger = get_logger(__name__)


_NUMBER_PATTERN = re.compile(r"-?\d[\d.,]*")


def _resolve_separators(num_str: str) -> str:
    """Decide which of ',' / '.' is the decimal point.

    When both appear, the last one is the decimal point. A single separator
    kind is a thousands separator when it repeats or every group after it has
    exactly three digits; otherwise it is the decimal point.
    """
    has_comma = "," in num_str
    has_dot = "." in num_str

    if has_comma and has_dot:
        if num_str.rfind(",") > num_str.rfind("."):
            return num_str.replace(".", "").replace(",", ".")
        return num_str.replace(",", "")

    sep = "," if has_comma else "." if has_dot else None
    if sep is None:
        return num_str

    parts = num_str.split(sep)
    if len(parts) > 2 or all(len(p) == 3 for p in parts[1:]):
        return num_str.replace(sep, "")
    return num_str.replace(sep, ".")


def parse_number(raw: Any) -> Optional[float]:
    """Parse a loosely formatted number; None when nothing numeric is present."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, dict):
        return parse_number(text_of(raw))

    text = str(raw).replace(" ", "").replace("\u00a0", "").replace("'", "")
    match = _NUMBER_PATTERN.search(text)
    if not match:
        return None

    num_str = _resolve_separators(match.group().rstrip(".,"))
    try:
        return float(num_str)
    except ValueError:
        logger.warning("Failed to parse number from: '%s'", raw)
        return None


def parse_int(raw: Any) -> Optional[int]:
    """Parse the leading integer of a value: '3+1' → 3, '12 yaş' → 12."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    if isinstance(raw, dict):
        return parse_int(text_of(raw))
    match = re.search(r"-?\d+", str(raw))
    if match:
        return int(match.group())
    return None


def parse_positive_int(raw: Any) -> Optional[int]:
    value = parse_int(raw)
    if value is None or value < 0:
        return None
    return value


def parse_bool(raw: Any) -> Optional[bool]:
    """Map 'Yes'/truthy values to True, 'No'/falsy values to False, anything else to None."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, dict):
        raw = text_of(raw)
        if raw is None:
            return None
    raw_lower = str(raw).strip().lower()
    if raw_lower in ("yes", "y", "true", "1", "evet", "var", "var.", "mevcut", "✓", "✔"):
        return True
    if raw_lower in ("no", "n", "false", "0", "hayır", "hayir", "yok", "none", ""):
        return False
    # REAXML feature counts ("2" garages) and free text both mean present.
    number = parse_number(raw_lower)
    if number is not None:
        return number > 0
    return None


_PROPERTY_TYPE_KEYWORDS = (
    ("townhouse", ("townhouse", "town house", "terraced", "duplex")),
    ("villa", ("villa", "yazlık", "yazlik")),
    ("apartment", (
        "apartment", "unit", "flat", "studio", "penthouse", "condo", "daire",
        "rezidans", "residence", "wohnung", "appartement", "piso",
    )),
    ("land", ("land", "lot", "plot", "acreage", "arsa", "tarla", "grundstück", "terrain", "terreno")),
    ("rural", ("rural", "farm", "farmland", "ranch", "çiftlik", "ciftlik")),
    ("commercial", (
        "commercial", "office", "retail", "shop", "warehouse", "industrial", "business",
        "ticari", "dükkan", "dukkan", "ofis", "işyeri", "isyeri", "gewerbe", "comercial",
    )),
    ("house", (
        "house", "home", "detached", "bungalow", "cottage", "müstakil", "mustakil",
        "ev", "singlefamilyresidence", "haus", "maison", "casa",
    )),
)

_PROPERTY_TYPE_PATTERNS = [
    (ptype, re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b", re.IGNORECASE))
    for ptype, keywords in _PROPERTY_TYPE_KEYWORDS
]

_RENT_PATTERN = re.compile(
    r"\b(?:rent|rental|rentals|lease|leased|leasing|to let|for rent|"
    r"kiralık|kiralik|kira|kiraya)\b",
    re.IGNORECASE,
)


def normalize_property_type(raw: Any) -> str:
    """Map free-form type text onto the closed property vocabulary."""
    if raw is None:
        return "other"
    if isinstance(raw, (list, tuple)):
        for item in raw:
            mapped = normalize_property_type(item)
            if mapped != "other":
                return mapped
        return "other"
    text = text_of(raw) or ""
    # camelCase schema.org names ("SingleFamilyResidence") and portal slugs ("mustakil-ev")
    text = re.sub(r"[-_/]", " ", text)
    for ptype, pattern in _PROPERTY_TYPE_PATTERNS:
        if pattern.search(text):
            return ptype
    return "other"


def is_rent_text(raw: Any) -> bool:
    text = text_of(raw)
    if not text:
        return False
    return bool(_RENT_PATTERN.search(text.replace("_", " ").replace("-", " ")))


def normalize_listing_type(raw: Any) -> str:
    """'rent' when rental keywords are present, otherwise the conservative 'sale'."""
    return "rent" if is_rent_text(raw) else "sale"


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def normalize_key(key: str) -> str:
    """'PropertyType' / 'property-type' / 'Property Type' → 'property_type'.

    XML attribute keys keep their '@_' prefix.
    """
    prefix = ""
    if key.startswith("@_"):
        prefix, key = "@_", key[2:]
    key = _CAMEL_BOUNDARY.sub("_", key.strip())
    key = re.sub(r"[\s\-.]+", "_", key).lower()
    return prefix + re.sub(r"_+", "_", key).strip("_")


def normalize_keys(record: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize the keys of one record, first occurrence wins on collision."""
    out: Dict[str, Any] = {}
    for key, value in record.items():
        norm = normalize_key(str(key))
        if norm not in out:
            out[norm] = value
    return out


def text_of(value: Any) -> Optional[str]:
    """Text content of a scalar or an XML text node ({'#text': ...})."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        for key in ("#text", "value", "@_value", "name", "@_name"):
            if key in value:
                return text_of(value[key])
        return None
    if isinstance(value, (list, tuple)):
        return text_of(value[0]) if value else None
    text = str(value).strip()
    return text or None


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def first_value(record: Dict[str, Any], keys: Sequence[str]) -> Any:
    """Return the first non-empty value for the ordered synonym list."""
    for key in keys:
        value = record.get(key)
        if not is_empty(value):
            return value
    return None


def first_text(record: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        text = text_of(record.get(key))
        if text:
            return text
    return None


def split_list(raw: Any) -> List[str]:
    """Split a comma/semicolon/pipe separated string into trimmed parts."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        out: List[str] = []
        for item in raw:
            out.extend(split_list(item))
        return out
    text = text_of(raw)
    if not text:
        return []
    return [part.strip() for part in re.split(r"[,;|]", text) if part.strip()]


_URL_KEYS = ("url", "src", "source_url", "contentUrl", "@_url", "@_src", "@_file", "file", "href", "#text")
# Commas only separate URLs when the next part starts a new URL.
_URL_SPLIT = re.compile(r"\s*(?:[;|\n]|,(?=\s*(?:https?:)?//))\s*")


def collect_urls(raw: Any) -> List[str]:
    """Collect URL strings from strings, lists and {url|src|...} objects, nested any depth."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [part for part in _URL_SPLIT.split(raw.strip()) if part]
    if isinstance(raw, (list, tuple)):
        urls: List[str] = []
        for item in raw:
            urls.extend(collect_urls(item))
        return urls
    if isinstance(raw, dict):
        for key in _URL_KEYS:
            value = raw.get(key)
            if isinstance(value, str) and value.strip():
                return [value.strip()]
        # Wrapper element, e.g. <fotograflar><foto>...</foto></fotograflar>
        urls = []
        for key, value in raw.items():
            if isinstance(value, (list, dict)):
                urls.extend(collect_urls(value))
            elif isinstance(value, str) and not str(key).startswith("@_") and "/" in value:
                urls.extend(collect_urls(value))
        return urls
    return []


def collect_names(raw: Any, name_keys: Iterable[str] = ("name", "ad", "@_name", "@_ad", "#text")) -> List[str]:
    """Collect feature names from strings, lists and {name|ad} objects."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return split_list(raw)
    if isinstance(raw, (list, tuple)):
        names: List[str] = []
        for item in raw:
            names.extend(collect_names(item, name_keys))
        return names
    if isinstance(raw, dict):
        for key in name_keys:
            text = text_of(raw.get(key))
            if text:
                return [text]
        names = []
        for key, value in raw.items():
            if not str(key).startswith("@_"):
                names.extend(collect_names(value, name_keys))
        return names
    text = text_of(raw)
    return [text] if text else []


_BOM = "\ufeff"


def strip_bom(content: str) -> str:
    """Drop one leading byte-order mark; str.strip() leaves U+FEFF in place."""
    if content.startswith(_BOM):
        return content[len(_BOM):]
    return content


_TAG_PATTERN = re.compile(r"<[^>]+>")
_WS_PATTERN = re.compile(r"\s+")


def strip_html(raw: Any) -> Optional[str]:
    """Drop tags, unescape entities and collapse whitespace."""
    if raw is None:
        return None
    text = _TAG_PATTERN.sub(" ", str(raw))
    text = _WS_PATTERN.sub(" ", html.unescape(text)).strip()
    return text or None


_TURKISH_FLOOR_WORDS = {
    "giriş": 0, "giris": 0, "giriş katı": 0, "giris kati": 0,
    "zemin": 0, "zemin kat": 0, "yüksek giriş": 0, "yuksek giris": 0,
    "bahçe katı": 0, "bahce kati": 0, "bahçe": 0,
    "bodrum": -1, "bodrum kat": -1, "kot 1": -1,
}


def parse_floor(raw: Any) -> Optional[int]:
    """Floor number, accepting Turkish floor words; roof floors ('Çatı') are unknown."""
    text = text_of(raw)
    if text is None:
        return None
    lowered = text.lower()
    if lowered.startswith(("çatı", "cati")):
        return None
    for word, floor in _TURKISH_FLOOR_WORDS.items():
        if lowered == word or lowered.startswith(word + " "):
            return floor
    return parse_int(text)


def rooms_to_bedrooms(rooms: Optional[str]) -> Optional[int]:
    """Leading integer of the 'N+M' notation: '3+1' → 3."""
    if not rooms:
        return None
    match = re.match(r"\s*(\d+)", rooms)
    if match:
        return int(match.group(1))
    return None


_CURRENCY_ALIASES = {
    "tl": "TRY", "try": "TRY", "ytl": "TRY", "türk lirası": "TRY", "turk lirasi": "TRY", "₺": "TRY",
    "usd": "USD", "dolar": "USD", "dollar": "USD", "us$": "USD", "$": "USD",
    "eur": "EUR", "euro": "EUR", "avro": "EUR", "€": "EUR",
    "gbp": "GBP", "sterlin": "GBP", "pound": "GBP", "£": "GBP",
    "aud": "AUD", "a$": "AUD",
}


def normalize_currency(raw: Any) -> Optional[str]:
    """Map a currency name/symbol to an ISO code; None when unrecognized."""
    text = text_of(raw)
    if not text:
        return None
    lowered = text.strip().lower()
    if lowered in _CURRENCY_ALIASES:
        return _CURRENCY_ALIASES[lowered]
    if re.fullmatch(r"[a-z]{3}", lowered):
        return lowered.upper()
    return None
