"""Tests for the JSON-LD structured-data strategy."""
import json

from app.services.strategies import SchemaOrgStrategy
from app.services.strategies.schema_org_strategy import extract_listings, iter_nodes, quantity
from tests.conftest import FakeFetcher, load_fixture

PAGE_URL = "https://makler.example.de/expose/4711"


def _page(*blocks) -> str:
    scripts = "".join(f'<script type="application/ld+json">{json.dumps(b)}</script>' for b in blocks)
    return f"<html><head>{scripts}</head><body></body></html>"


class TestCanHandle:
    def test_absolute_url(self):
        assert SchemaOrgStrategy(FakeFetcher()).can_handle("https://example.com/listing/1") is True

    def test_rejects_content(self):
        strategy = SchemaOrgStrategy(FakeFetcher())
        assert strategy.can_handle("<html></html>") is False
        assert strategy.can_handle("example.com/listing") is False
        assert strategy.can_handle("https://example.com/a\nhttps://example.com/b") is False


class TestExtractListings:
    def test_graph_listing_with_country_override(self):
        props = extract_listings(load_fixture("listing_page.html"), PAGE_URL)
        assert len(props) == 1
        prop = props[0]
        assert prop.external_id == "https://makler.example.de/expose/4711"
        assert prop.title == "Helle Altbauwohnung in Prenzlauer Berg"
        assert prop.description == "Drei Zimmer, Balkon, saniert."
        assert prop.country_code == "DE"
        assert prop.country == "Germany"
        assert prop.currency == "EUR"
        assert prop.price == 545000.0
        assert prop.property_type == "other"
        assert prop.listing_type == "sale"
        assert prop.city == "Berlin"
        assert prop.bedrooms == 3
        assert prop.area == 92.5

    def test_relative_urls_resolved_against_page(self):
        prop = extract_listings(load_fixture("listing_page.html"), PAGE_URL)[0]
        assert prop.url == "https://makler.example.de/expose/4711"
        assert prop.images == [
            "https://makler.example.de/media/4711-1.jpg",
            "https://cdn.example.de/4711-2.jpg",
        ]

    def test_array_block_and_rent_keywords(self):
        html = _page([
            {"@type": "Organization", "name": "Agency"},
            {
                "@type": "Apartment",
                "name": "Kiralık 2+1 Daire",
                "offers": {"price": "30000", "priceCurrency": "TRY"},
                "numberOfBedrooms": 2,
            },
        ])
        props = extract_listings(html, "https://emlak.example.com.tr/ilan/9", "TR")
        assert len(props) == 1
        assert props[0].property_type == "apartment"
        assert props[0].listing_type == "rent"
        assert props[0].currency == "TRY"
        assert props[0].external_id == "https://emlak.example.com.tr/ilan/9"

    def test_offer_currency_kept_without_country(self):
        html = _page({"@type": "SingleFamilyResidence", "name": "Cottage", "offers": {"price": 400000, "priceCurrency": "GBP"}})
        prop = extract_listings(html, "https://example.co.uk/p/1", "UK")[0]
        assert prop.property_type == "house"
        assert prop.currency == "GBP"
        assert prop.country_code == "UK"

    def test_multiple_listings_get_distinct_fallback_ids(self):
        html = _page({"@type": "ItemList", "itemListElement": [
            {"@type": "ListItem", "item": {"@type": "House", "name": "A"}},
            {"@type": "ListItem", "item": {"@type": "House", "name": "B"}},
        ]})
        props = extract_listings(html, "https://example.com/search", "AU")
        assert [p.external_id for p in props] == ["https://example.com/search#0", "https://example.com/search#1"]

    def test_no_structured_data(self):
        assert extract_listings("<html><body>Nothing here</body></html>", PAGE_URL) == []


class TestParse:
    def test_fetches_page(self):
        fetcher = FakeFetcher(pages={PAGE_URL: load_fixture("listing_page.html")})
        props = SchemaOrgStrategy(fetcher).parse(PAGE_URL)
        assert fetcher.requested == [PAGE_URL]
        assert len(props) == 1

    def test_fetch_failure_yields_nothing(self):
        assert SchemaOrgStrategy(FakeFetcher()).parse(PAGE_URL) == []


class TestHelpers:
    def test_iter_nodes_flattens_graph(self):
        nodes = list(iter_nodes({"@graph": [{"@type": "House"}, {"@type": "WebPage"}]}))
        assert len(nodes) == 3

    def test_quantity_square_feet(self):
        assert quantity({"value": 1000, "unitCode": "FTK"}) == 92.9

    def test_quantity_plain(self):
        assert quantity("85") == 85.0
