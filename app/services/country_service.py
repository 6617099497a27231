"""Country profiles — per-market defaults used when source data omits them.

The table is static and read-only; it is built once at import time. Lookups
accept profile codes, ISO-2/ISO-3 codes and country names in English and in
the local language, so free-text address fields resolve to a profile.
"""
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.config import settings
from app.schemas.import_schema import ImportFormat


@dataclass(frozen=True)
class CountryProfile:
    code: str
    name: str
    currency: str
    default_formats: Tuple[ImportFormat, ...]
    property_types: Dict[str, str] = field(default_factory=dict)
    aliases: Tuple[str, ...] = ()


COUNTRY_PROFILES: Dict[str, CountryProfile] = {
    "AU": CountryProfile(
        code="AU",
        name="Australia",
        currency="AUD",
        default_formats=(ImportFormat.REAXML, ImportFormat.WEBSITE_SCRAPE),
        property_types={
            "apartment": "Unit/Apartment",
            "house": "House",
            "townhouse": "Townhouse",
            "villa": "Villa",
            "land": "Land",
            "rural": "Rural",
            "commercial": "Commercial",
        },
        aliases=("au", "aus", "australia", "avustralya"),
    ),
    "TR": CountryProfile(
        code="TR",
        name="Turkey",
        currency="TRY",
        default_formats=(
            ImportFormat.SAHIBINDEN,
            ImportFormat.HEPSIEMLAK,
            ImportFormat.EMLAKJET,
            ImportFormat.GENERIC_XML,
            ImportFormat.WEBSITE_SCRAPE,
        ),
        property_types={
            "apartment": "Daire",
            "villa": "Villa",
            "house": "Müstakil Ev",
            "land": "Arsa",
            "commercial": "Ticari",
        },
        aliases=("tr", "tur", "turkey", "turkiye", "türkiye", "turkei", "türkei"),
    ),
    "UK": CountryProfile(
        code="UK",
        name="United Kingdom",
        currency="GBP",
        default_formats=(ImportFormat.BLM, ImportFormat.RTDF, ImportFormat.WEBSITE_SCRAPE),
        property_types={
            "flat": "Flat",
            "terraced": "Terraced",
            "semiDetached": "Semi-Detached",
            "detached": "Detached",
            "bungalow": "Bungalow",
            "land": "Land",
            "commercial": "Commercial",
        },
        aliases=(
            "uk", "gb", "gbr", "united kingdom", "great britain", "england",
            "scotland", "wales", "birlesik krallik", "ingiltere",
        ),
    ),
    "DE": CountryProfile(
        code="DE",
        name="Germany",
        currency="EUR",
        default_formats=(ImportFormat.OPENIMMO, ImportFormat.WEBSITE_SCRAPE),
        property_types={
            "wohnung": "Wohnung",
            "haus": "Haus",
            "grundstueck": "Grundstück",
            "gewerbe": "Gewerbe",
        },
        aliases=("de", "deu", "germany", "deutschland", "almanya"),
    ),
    "FR": CountryProfile(
        code="FR",
        name="France",
        currency="EUR",
        default_formats=(ImportFormat.GENERIC_XML, ImportFormat.WEBSITE_SCRAPE),
        property_types={
            "appartement": "Appartement",
            "maison": "Maison",
            "terrain": "Terrain",
            "commercial": "Commercial",
        },
        aliases=("fr", "fra", "france", "fransa"),
    ),
    "ES": CountryProfile(
        code="ES",
        name="Spain",
        currency="EUR",
        default_formats=(ImportFormat.KYERO, ImportFormat.GENERIC_XML, ImportFormat.WEBSITE_SCRAPE),
        property_types={
            "piso": "Piso",
            "casa": "Casa",
            "villa": "Villa",
            "terreno": "Terreno",
            "comercial": "Comercial",
        },
        aliases=("es", "esp", "spain", "espana", "españa", "ispanya"),
    ),
}


def _fold(value: str) -> str:
    """Lowercase and strip diacritics: 'Türkiye' → 'turkiye'."""
    decomposed = unicodedata.normalize("NFKD", value.strip().lower().replace("ı", "i"))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_ALIAS_INDEX: Dict[str, str] = {
    _fold(alias): profile.code
    for profile in COUNTRY_PROFILES.values()
    for alias in (*profile.aliases, profile.name)
}


def get_profile(code: Optional[str]) -> Optional[CountryProfile]:
    if not code:
        return None
    return COUNTRY_PROFILES.get(code.strip().upper())


def default_profile() -> CountryProfile:
    return COUNTRY_PROFILES[settings.default_country]


def detect_country(value: Any) -> Optional[CountryProfile]:
    """Resolve a country name, code, or schema.org Country object to a profile."""
    if isinstance(value, dict):
        value = value.get("name") or value.get("@id") or value.get("identifier")
    if not isinstance(value, str) or not value.strip():
        return None
    code = _ALIAS_INDEX.get(_fold(value))
    return COUNTRY_PROFILES[code] if code else None


def resolve_profile(*candidates: Any, hint: Optional[str] = None) -> Tuple[CountryProfile, bool]:
    """Pick the profile for a record.

    Tries each explicit candidate value in order, then the caller's hint, then
    the configured default. The boolean tells whether an explicit candidate
    matched, which some strategies use to override the currency.
    """
    for candidate in candidates:
        profile = detect_country(candidate)
        if profile:
            return profile, True
    return get_profile(hint) or default_profile(), False


def formats_for_country(code: Optional[str]) -> List[ImportFormat]:
    profile = get_profile(code)
    if not profile:
        return [ImportFormat.WEBSITE_SCRAPE]
    return list(profile.default_formats)


def list_profiles() -> List[CountryProfile]:
    return list(COUNTRY_PROFILES.values())
