"""Imports API router — detect, parse and import listing feeds.
/api/v1/imports"""
from typing import List

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_catalog_store, get_import_service
from app.api.responses import ok
from app.schemas.base_schema import ApiResponse
from app.schemas.import_schema import (
    FORMAT_DISPLAY_NAMES,
    DetectRequest,
    FormatRead,
    ImportFormat,
    ImportRequest,
    ImportResult,
    ParseOutcome,
)
from app.services.catalog_store import CatalogStore
from app.services.import_service import ImportService

router = APIRouter()


@router.get("/formats", response_model=ApiResponse[List[FormatRead]])
async def list_formats(request: Request):
    """All import formats with their display names."""
    formats = [FormatRead(format=fmt, display_name=FORMAT_DISPLAY_NAMES[fmt]) for fmt in ImportFormat]
    return ok(formats, "Formats listed successfully", request)


@router.post("/detect", response_model=ApiResponse[ParseOutcome])
async def detect_and_parse(
    payload: DetectRequest,
    request: Request,
    service: ImportService = Depends(get_import_service),
):
    """Parse content or a URL without persisting anything — a preview of what an import would create."""
    if payload.format:
        outcome = await service.parse_with_format(payload.source, payload.format, payload.country)
    else:
        outcome = await service.detect_and_parse(payload.source, payload.country)
    return ok(outcome, f"{outcome.count} properties detected with {outcome.strategy}", request)


@router.post("", response_model=ApiResponse[ImportResult])
async def run_import(
    payload: ImportRequest,
    request: Request,
    service: ImportService = Depends(get_import_service),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Parse and reconcile a feed into the tenant's catalog."""
    result = await service.run_import(
        payload.source,
        payload.tenant_id,
        store,
        country=payload.country,
        fmt=payload.format,
    )
    return ok(result, result.summary, request)
