"""Pydantic schemas for import requests, parse outcomes and import results."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.property_schema import CountryCode, NormalizedProperty


class ImportFormat(str, Enum):
    REAXML = "REAXML"                  # Australia
    OPENIMMO = "OPENIMMO"              # Germany
    BLM = "BLM"                        # UK (Bulk Load Mass)
    RTDF = "RTDF"                      # UK (Real-Time Data Feed)
    KYERO = "KYERO"                    # Spain
    SAHIBINDEN = "SAHIBINDEN"          # Turkey
    HEPSIEMLAK = "HEPSIEMLAK"          # Turkey
    EMLAKJET = "EMLAKJET"              # Turkey
    GENERIC_XML = "GENERIC_XML"
    GENERIC_JSON = "GENERIC_JSON"
    WEBSITE_SCRAPE = "WEBSITE_SCRAPE"  # JSON-LD structured data
    WORDPRESS_API = "WORDPRESS_API"    # WordPress-like REST collections


FORMAT_DISPLAY_NAMES = {
    ImportFormat.REAXML: "REAXML Feed (Australia)",
    ImportFormat.OPENIMMO: "OpenImmo (Germany)",
    ImportFormat.BLM: "BLM Format (UK)",
    ImportFormat.RTDF: "Rightmove RTDF (UK)",
    ImportFormat.KYERO: "Kyero Feed (Spain)",
    ImportFormat.SAHIBINDEN: "Sahibinden XML (Turkey)",
    ImportFormat.HEPSIEMLAK: "Hepsiemlak XML (Turkey)",
    ImportFormat.EMLAKJET: "EmlakJet XML (Turkey)",
    ImportFormat.GENERIC_XML: "Generic XML",
    ImportFormat.GENERIC_JSON: "CSV/JSON Upload",
    ImportFormat.WEBSITE_SCRAPE: "Website Import",
    ImportFormat.WORDPRESS_API: "WordPress API Import",
}


class FormatRead(BaseModel):
    format: ImportFormat
    display_name: str


class ParseOutcome(BaseModel):
    """Result of detection + parsing, before reconciliation."""
    strategy: str
    format: ImportFormat
    count: int
    properties: List[NormalizedProperty]


class ImportResult(BaseModel):
    """Aggregate outcome of one reconciliation run. Not persisted."""
    success: bool
    strategy: str
    format: Optional[ImportFormat] = None
    country_code: CountryCode
    records: List[NormalizedProperty] = []
    created_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    errors: List[str] = []

    @property
    def summary(self) -> str:
        return (
            f"Import completed: {self.created_count} new, "
            f"{self.updated_count} updated, {self.skipped_count} skipped"
        )


class _SourceRequest(BaseModel):
    content: Optional[str] = Field(None, description="Raw CSV, JSON or XML text")
    url: Optional[str] = Field(None, description="Absolute URL of a listing page or CMS site")
    country: Optional[CountryCode] = Field(None, description="Market hint used for detection and defaults")
    format: Optional[ImportFormat] = Field(None, description="Skip detection and use this format")

    @model_validator(mode="after")
    def require_source(self):
        if not (self.content or self.url):
            raise ValueError("content or url is required")
        return self

    @property
    def source(self) -> str:
        # Uploaded content wins over a URL when both are sent.
        return self.content or self.url or ""


class DetectRequest(_SourceRequest):
    """Request body for POST /api/v1/imports/detect"""
    pass


class ImportRequest(_SourceRequest):
    """Request body for POST /api/v1/imports"""
    tenant_id: str = Field(..., min_length=1, max_length=100)
