from app.services.strategies.base import ImportStrategy
from app.services.strategies.csv_json_strategy import CsvJsonStrategy
from app.services.strategies.reaxml_strategy import ReaxmlStrategy
from app.services.strategies.schema_org_strategy import SchemaOrgStrategy
from app.services.strategies.turkish_portal_strategy import TurkishPortalStrategy
from app.services.strategies.wordpress_strategy import WordPressStrategy

__all__ = [
    "ImportStrategy",
    "CsvJsonStrategy",
    "ReaxmlStrategy",
    "SchemaOrgStrategy",
    "TurkishPortalStrategy",
    "WordPressStrategy",
]
