"""Tests for StrategyRegistry — detection order, country scoping, explicit formats."""
from app.schemas.import_schema import ImportFormat
from app.services.registry import StrategyRegistry
from app.services.strategies import (
    CsvJsonStrategy,
    ReaxmlStrategy,
    SchemaOrgStrategy,
    TurkishPortalStrategy,
    WordPressStrategy,
)
from tests.conftest import load_fixture

# REAXML that also mentions a Turkish portal keyword ("emlak")
REAXML_WITH_TURKISH_KEYWORD = """<propertyList>
  <residential status="current">
    <uniqueID>X-1</uniqueID>
    <headline>Imported from emlak partner</headline>
    <price>500000</price>
    <address><suburb>Kew</suburb></address>
  </residential>
</propertyList>"""


class TestDetectStrategy:
    def test_order(self, registry: StrategyRegistry):
        assert [type(s) for s in registry.all()] == [
            ReaxmlStrategy,
            TurkishPortalStrategy,
            CsvJsonStrategy,
            SchemaOrgStrategy,
            WordPressStrategy,
        ]

    def test_reaxml(self, registry: StrategyRegistry):
        assert isinstance(registry.detect_strategy(load_fixture("reaxml_sample.xml")), ReaxmlStrategy)

    def test_turkish(self, registry: StrategyRegistry):
        assert isinstance(registry.detect_strategy(load_fixture("turkish_sample.xml")), TurkishPortalStrategy)

    def test_csv(self, registry: StrategyRegistry):
        assert isinstance(registry.detect_strategy("id,price\n1,100\n"), CsvJsonStrategy)

    def test_url_goes_to_structured_data_first(self, registry: StrategyRegistry):
        assert isinstance(registry.detect_strategy("https://example.com/listing/1"), SchemaOrgStrategy)

    def test_country_hint_changes_precedence(self, registry: StrategyRegistry):
        assert isinstance(registry.detect_strategy(REAXML_WITH_TURKISH_KEYWORD), ReaxmlStrategy)
        assert isinstance(registry.detect_strategy(REAXML_WITH_TURKISH_KEYWORD, "TR"), TurkishPortalStrategy)

    def test_hint_falls_back_to_full_scan(self, registry: StrategyRegistry):
        # No UK-specific strategy accepts CSV, the generic one does.
        assert isinstance(registry.detect_strategy("id,price\n1,100\n", "UK"), CsvJsonStrategy)

    def test_no_match(self, registry: StrategyRegistry):
        assert registry.detect_strategy("plain text without structure") is None


class TestGetByFormat:
    def test_primary_format(self, registry: StrategyRegistry):
        assert isinstance(registry.get_by_format(ImportFormat.REAXML), ReaxmlStrategy)
        assert isinstance(registry.get_by_format(ImportFormat.WORDPRESS_API), WordPressStrategy)

    def test_served_format_by_name(self, registry: StrategyRegistry):
        assert isinstance(registry.get_by_format("hepsiemlak"), TurkishPortalStrategy)
        assert isinstance(registry.get_by_format("GENERIC_XML"), TurkishPortalStrategy)

    def test_unimplemented_or_unknown(self, registry: StrategyRegistry):
        assert registry.get_by_format(ImportFormat.BLM) is None
        assert registry.get_by_format("NOT_A_FORMAT") is None
        assert registry.get_by_format(None) is None


class TestCountryHelpers:
    def test_strategies_for_country(self, registry: StrategyRegistry):
        names = [type(s) for s in registry.strategies_for_country("AU")]
        assert ReaxmlStrategy in names
        assert TurkishPortalStrategy not in names

    def test_formats_for_country(self, registry: StrategyRegistry):
        assert registry.formats_for_country("TR")[0] == ImportFormat.SAHIBINDEN

    def test_display_name(self):
        assert StrategyRegistry.format_display_name("KYERO") == "Kyero Feed (Spain)"
        assert StrategyRegistry.format_display_name("nope") == "nope"
        assert StrategyRegistry.format_display_name(None) == "Unknown"
