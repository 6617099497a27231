"""Tests for NormalizedProperty — vocabulary coercion, list hygiene and field constraints."""
import pytest
from pydantic import ValidationError

from tests.conftest import make_property


class TestLists:
    def test_images_deduped_in_order(self):
        prop = make_property(images=["b.jpg", "a.jpg", "b.jpg", " a.jpg ", "c.jpg"])
        assert prop.images == ["b.jpg", "a.jpg", "c.jpg"]

    def test_blank_entries_dropped(self):
        prop = make_property(features=["Pool", "", "  ", None, "Garage", "Pool"])
        assert prop.features == ["Pool", "Garage"]

    def test_none_becomes_empty_list(self):
        prop = make_property(images=None, features=None)
        assert prop.images == []
        assert prop.features == []

    def test_single_string_wrapped(self):
        assert make_property(images="https://example.com/1.jpg").images == ["https://example.com/1.jpg"]


class TestVocabularies:
    def test_unknown_property_type_is_other(self):
        assert make_property(property_type="castle").property_type == "other"

    def test_property_type_case_folded(self):
        assert make_property(property_type=" Villa ").property_type == "villa"

    def test_missing_property_type_is_other(self):
        assert make_property(property_type=None).property_type == "other"

    def test_unknown_listing_type_is_sale(self):
        assert make_property(listing_type="lease-to-own").listing_type == "sale"

    def test_listing_type_case_folded(self):
        assert make_property(listing_type="RENT").listing_type == "rent"


class TestConstraints:
    def test_currency_upper_cased(self):
        assert make_property(currency=" eur ").currency == "EUR"

    def test_currency_must_be_three_letters(self):
        with pytest.raises(ValidationError):
            make_property(currency="EURO")

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            make_property(price=-1)

    def test_zero_price_allowed(self):
        assert make_property(price=0).price == 0.0

    def test_empty_external_id_rejected(self):
        with pytest.raises(ValidationError):
            make_property(external_id="")

    def test_blank_external_id_rejected(self):
        with pytest.raises(ValidationError):
            make_property(external_id="   ")

    def test_numeric_external_id_coerced(self):
        assert make_property(external_id=1042).external_id == "1042"

    def test_unsupported_country_code_rejected(self):
        with pytest.raises(ValidationError):
            make_property(country_code="US")
