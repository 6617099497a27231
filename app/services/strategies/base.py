"""ImportStrategy — the contract every source dialect implements."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from app.core.logging import get_logger
from app.schemas.import_schema import ImportFormat
from app.schemas.property_schema import NormalizedProperty
from app.services.mapper_service import strip_bom

logger = get_logger(__name__)

ALL_COUNTRIES = ("AU", "TR", "UK", "DE", "FR", "ES")


def is_url(source: str) -> bool:
    source = strip_bom(source).strip()
    return source.startswith(("http://", "https://")) and " " not in source and "\n" not in source


def build_property(data: Dict[str, Any], source: str, position: Any = None) -> Optional[NormalizedProperty]:
    """Validate one mapped record; log and drop it when it does not fit the model."""
    try:
        return NormalizedProperty(**data)
    except ValidationError as e:
        logger.warning(
            "%s: dropping record %s: %s", source, position if position is not None else "?",
            "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()),
            extra={"strategy": source, "external_id": data.get("external_id")},
        )
        return None


class ImportStrategy(ABC):
    """One source dialect.

    can_handle() must be cheap and side-effect free. parse() never raises for a
    single bad record; it logs and omits it. A document that cannot be read at
    all yields [].
    """

    name: str
    format: ImportFormat
    formats: Sequence[ImportFormat] = ()
    supported_countries: Sequence[str] = ALL_COUNTRIES

    def serves(self, fmt: ImportFormat) -> bool:
        return fmt == self.format or fmt in self.formats

    def supports_country(self, country: Optional[str]) -> bool:
        return bool(country) and country.upper() in self.supported_countries

    @abstractmethod
    def can_handle(self, content: str, country: Optional[str] = None) -> bool:
        ...

    @abstractmethod
    def parse(self, content: str, country: Optional[str] = None) -> List[NormalizedProperty]:
        ...

    def _build_property(self, data: Dict[str, Any], position: Any = None) -> Optional[NormalizedProperty]:
        return build_property(data, self.name, position)

    def _map_all(self, items: Sequence[Any], mapper, *args) -> List[NormalizedProperty]:
        """Run mapper over every item, isolating failures per record."""
        properties: List[NormalizedProperty] = []
        for index, item in enumerate(items):
            try:
                data = mapper(item, index, *args)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "%s: error mapping record %d: %s", self.name, index, str(e),
                    extra={"strategy": self.name},
                )
                continue
            if data is None:
                continue
            prop = self._build_property(data, index)
            if prop is not None:
                properties.append(prop)
        return properties

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(format={self.format.value})>"
