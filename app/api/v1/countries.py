"""Countries API router — supported markets and their expected feed formats.
/api/v1/countries"""
from typing import List

from fastapi import APIRouter, Request
from pydantic import BaseModel

from app.api.responses import ok
from app.core.exceptions import NotFoundError
from app.schemas.base_schema import ApiResponse
from app.schemas.import_schema import FORMAT_DISPLAY_NAMES, FormatRead, ImportFormat
from app.services.country_service import CountryProfile, get_profile, list_profiles

router = APIRouter()


class CountryRead(BaseModel):
    code: str
    name: str
    currency: str
    default_formats: List[ImportFormat]
    property_types: dict[str, str]


def _to_read(profile: CountryProfile) -> CountryRead:
    return CountryRead(
        code=profile.code,
        name=profile.name,
        currency=profile.currency,
        default_formats=list(profile.default_formats),
        property_types=dict(profile.property_types),
    )


def _get_or_404(code: str) -> CountryProfile:
    profile = get_profile(code)
    if not profile:
        raise NotFoundError(f"Country '{code}' not supported")
    return profile


@router.get("", response_model=ApiResponse[List[CountryRead]])
async def list_countries(request: Request):
    return ok([_to_read(p) for p in list_profiles()], "Countries listed successfully", request)


@router.get("/{code}", response_model=ApiResponse[CountryRead])
async def get_country(code: str, request: Request):
    return ok(_to_read(_get_or_404(code)), "Country retrieved successfully", request)


@router.get("/{code}/formats", response_model=ApiResponse[List[FormatRead]])
async def get_country_formats(code: str, request: Request):
    """Formats typically seen from this market, in priority order."""
    profile = _get_or_404(code)
    formats = [FormatRead(format=fmt, display_name=FORMAT_DISPLAY_NAMES[fmt]) for fmt in profile.default_formats]
    return ok(formats, "Formats listed successfully", request)
