"""StrategyRegistry — ordered set of import strategies plus format detection.

Order matters: specific feed dialects come first and URL-based scrapers last,
so sniffing a document stops at the most specific strategy that accepts it.
"""
from typing import List, Optional, Sequence, Union

from app.core.logging import get_logger
from app.schemas.import_schema import FORMAT_DISPLAY_NAMES, ImportFormat
from app.services import country_service
from app.services.fetch_service import HttpFetcher
from app.services.strategies import (
    CsvJsonStrategy,
    ImportStrategy,
    ReaxmlStrategy,
    SchemaOrgStrategy,
    TurkishPortalStrategy,
    WordPressStrategy,
)

logger = get_logger(__name__)


def _to_format(value: Union[ImportFormat, str, None]) -> Optional[ImportFormat]:
    if value is None or isinstance(value, ImportFormat):
        return value
    try:
        return ImportFormat(str(value).strip().upper())
    except ValueError:
        return None


class StrategyRegistry:
    def __init__(self, strategies: Sequence[ImportStrategy]):
        self._strategies: List[ImportStrategy] = list(strategies)

    def all(self) -> List[ImportStrategy]:
        return list(self._strategies)

    def detect_strategy(self, content: str, country: Optional[str] = None) -> Optional[ImportStrategy]:
        """First strategy whose can_handle() accepts the content.

        With a country hint, strategies supporting that country are tried first
        (in registry order); then the whole registry. None when nothing matches.
        """
        if country:
            for strategy in self.strategies_for_country(country):
                if strategy.can_handle(content, country):
                    logger.debug("Detected %s for country %s", strategy.name, country, extra={"strategy": strategy.name})
                    return strategy

        for strategy in self._strategies:
            if strategy.can_handle(content, country):
                logger.debug("Detected %s", strategy.name, extra={"strategy": strategy.name})
                return strategy
        return None

    def get_by_format(self, fmt: Union[ImportFormat, str, None]) -> Optional[ImportStrategy]:
        target = _to_format(fmt)
        if target is None:
            return None
        for strategy in self._strategies:
            if strategy.format == target:
                return strategy
        for strategy in self._strategies:
            if strategy.serves(target):
                return strategy
        return None

    def strategies_for_country(self, code: Optional[str]) -> List[ImportStrategy]:
        return [s for s in self._strategies if s.supports_country(code)]

    def formats_for_country(self, code: Optional[str]) -> List[ImportFormat]:
        return country_service.formats_for_country(code)

    @staticmethod
    def format_display_name(fmt: Union[ImportFormat, str, None]) -> str:
        target = _to_format(fmt)
        if target is None:
            return str(fmt) if fmt else "Unknown"
        return FORMAT_DISPLAY_NAMES.get(target, target.value)


def build_default_registry(fetcher: Optional[HttpFetcher] = None) -> StrategyRegistry:
    """Registry in detection order; URL strategies share one fetcher."""
    fetcher = fetcher or HttpFetcher()
    return StrategyRegistry([
        ReaxmlStrategy(),
        TurkishPortalStrategy(),
        CsvJsonStrategy(),
        SchemaOrgStrategy(fetcher),
        WordPressStrategy(fetcher),
    ])
