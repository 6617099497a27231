"""Import service — detects the feed format, parses it, and reconciles records with the catalog.

This service:
1. Picks a strategy (explicit format, or detection through the registry)
2. Parses in a worker thread via asyncio.to_thread (strategies may block on HTTP)
3. Reconciles each record against a CatalogStore keyed by (tenant_id, external_id)
4. Reports per-record failures in ImportResult.errors without aborting the batch
"""
import asyncio
import time
from typing import List, Optional, Union

from app.config import settings
from app.core.exceptions import NoStrategyFoundError, NothingExtractedError
from app.core.logging import get_logger, set_correlation_id
from app.schemas.import_schema import ImportFormat, ImportResult, ParseOutcome
from app.schemas.property_schema import NormalizedProperty
from app.services.catalog_store import IMPORT_SOURCE, CatalogStore
from app.services.country_service import get_profile
from app.services.mapper_service import strip_bom
from app.services.registry import StrategyRegistry
from app.services.strategies.base import ImportStrategy

logger = get_logger(__name__)


def _preview(content: str, limit: int = 80) -> str:
    text = " ".join(content.split())
    return text if len(text) <= limit else text[:limit] + "…"


class ImportService:
    def __init__(self, registry: StrategyRegistry):
        self.registry = registry

    async def _run_strategy(
        self, strategy: ImportStrategy, content: str, country: Optional[str]
    ) -> ParseOutcome:
        started = time.monotonic()
        properties = await asyncio.to_thread(strategy.parse, content, country)
        duration = round(time.monotonic() - started, 3)

        if not properties:
            logger.warning(
                "%s extracted no records", strategy.name,
                extra={"strategy": strategy.name, "duration": duration},
            )
            raise NothingExtractedError(
                f"{strategy.name} recognised the content but extracted no properties",
                detail={"strategy": strategy.name, "format": strategy.format.value},
            )

        logger.info(
            "%s parsed %d records", strategy.name, len(properties),
            extra={"strategy": strategy.name, "duration": duration},
        )
        return ParseOutcome(
            strategy=strategy.name,
            format=strategy.format,
            count=len(properties),
            properties=properties,
        )

    async def detect_and_parse(self, content: str, country: Optional[str] = None) -> ParseOutcome:
        """Detect the strategy for the content and parse it.

        Raises:
            NoStrategyFoundError: no registered strategy accepts the content.
            NothingExtractedError: a strategy matched but produced zero records.
        """
        content = strip_bom(content)
        strategy = self.registry.detect_strategy(content, country)
        if strategy is None:
            logger.warning("No import strategy matched content: %s", _preview(content))
            raise NoStrategyFoundError(
                "No suitable import strategy found for the provided content",
                detail={"country": country},
            )
        logger.info("Using import strategy: %s", strategy.name, extra={"strategy": strategy.name})
        return await self._run_strategy(strategy, content, country)

    async def parse_with_format(
        self,
        content: str,
        fmt: Union[ImportFormat, str, None],
        country: Optional[str] = None,
    ) -> ParseOutcome:
        """Parse with the strategy serving fmt; fall back to detection when there is none."""
        content = strip_bom(content)
        strategy = self.registry.get_by_format(fmt) if fmt else None
        if strategy is None:
            if fmt:
                logger.info("No strategy for format '%s', falling back to detection", fmt)
            return await self.detect_and_parse(content, country)
        return await self._run_strategy(strategy, content, country)

    async def import_to_database(
        self,
        records: List[NormalizedProperty],
        tenant_id: str,
        store: CatalogStore,
        *,
        strategy_name: str = "",
        format: Optional[ImportFormat] = None,
        country_code: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ImportResult:
        """Create or update one catalog row per record, sequentially."""
        created = updated = skipped = 0
        errors: List[str] = []
        source_format = format.value if format else None

        for position, record in enumerate(records, start=1):
            if cancel_event is not None and cancel_event.is_set():
                remaining = len(records) - position + 1
                skipped += remaining
                errors.append(f"Import cancelled: {remaining} records not processed")
                logger.warning(
                    "Import cancelled with %d records left", remaining,
                    extra={"tenant_id": tenant_id, "strategy": strategy_name},
                )
                break

            try:
                existing = await store.find(tenant_id, record.external_id)
                if existing is not None:
                    await store.update(existing, record)
                    updated += 1
                else:
                    await store.create(tenant_id, record, source=IMPORT_SOURCE, source_format=source_format)
                    created += 1
            except Exception as e:
                skipped += 1
                errors.append(f"Record {position} ({record.external_id}): {e}")
                logger.warning(
                    "Failed to import record %d: %s", position, str(e),
                    extra={"tenant_id": tenant_id, "external_id": record.external_id},
                )

        if country_code is None:
            country_code = records[0].country_code if records else settings.default_country

        result = ImportResult(
            success=not errors,
            strategy=strategy_name,
            format=format,
            country_code=country_code,
            records=records,
            created_count=created,
            updated_count=updated,
            skipped_count=skipped,
            errors=errors,
        )
        logger.info(result.summary, extra={"tenant_id": tenant_id, "strategy": strategy_name})
        return result

    async def run_import(
        self,
        content: str,
        tenant_id: str,
        store: CatalogStore,
        country: Optional[str] = None,
        fmt: Union[ImportFormat, str, None] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ImportResult:
        """Parse content (explicit format or detection) and reconcile it for a tenant."""
        import_id = set_correlation_id()
        logger.info(
            "Starting import for tenant %s", tenant_id,
            extra={"import_id": import_id, "tenant_id": tenant_id},
        )

        if fmt:
            outcome = await self.parse_with_format(content, fmt, country)
        else:
            outcome = await self.detect_and_parse(content, country)

        profile = get_profile(country)
        country_code = profile.code if profile else outcome.properties[0].country_code
        return await self.import_to_database(
            outcome.properties,
            tenant_id,
            store,
            strategy_name=outcome.strategy,
            format=outcome.format,
            country_code=country_code,
            cancel_event=cancel_event,
        )
