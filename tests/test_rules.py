"""
Tests for business rules (eligibility and change detection).
"""

import json

import pytest

from catalog_sync.distributor.models import DistributorItemDetail
from catalog_sync.processor.rules import (
    CategoryDenylist,
    Classification,
    FETCH_FAILED,
    classify_item,
    exclusion_reason,
    load_category_denylist,
    should_update_variant,
)
from catalog_sync.shopify.models import StorefrontVariant


def make_detail(**overrides) -> DistributorItemDetail:
    raw = {"Item": "X100", "Net": "20.00", "Retail": "40.00", "ProductClass": "PERFUME"}
    raw.update(overrides)
    return DistributorItemDetail.model_validate(raw)


@pytest.fixture
def denylist() -> CategoryDenylist:
    return CategoryDenylist(
        product_lines=frozenset({"Wellness"}),
        product_classes=frozenset({"MINLDY"}),
    )


class TestClassifyItem:
    """Tests for classify_item function."""

    def test_plain_item_is_eligible(self, denylist):
        assert classify_item("X100", make_detail(), denylist) is Classification.ELIGIBLE

    def test_suffix_wins_over_everything(self, denylist):
        detail = make_detail(Item="X100-A", ProductClass="MINLDY")
        assert classify_item("X100-A", detail, denylist) is Classification.SUFFIX_EXCLUDED

    def test_suffix_excluded_even_when_eligible_category(self, denylist):
        assert classify_item("X100-A", make_detail(Item="X100-A"), denylist) \
            is Classification.SUFFIX_EXCLUDED

    def test_missing_detail_is_category_excluded(self, denylist):
        assert classify_item("X100", None, denylist) is Classification.CATEGORY_EXCLUDED

    def test_denylisted_class(self, denylist):
        detail = make_detail(ProductClass="MINLDY")
        assert classify_item("X100", detail, denylist) is Classification.CATEGORY_EXCLUDED

    def test_denylisted_line(self, denylist):
        detail = make_detail(ProductLine="Wellness")
        assert classify_item("X100", detail, denylist) is Classification.CATEGORY_EXCLUDED

    def test_custom_suffix(self, denylist):
        assert classify_item("X100-B", make_detail(), denylist, excluded_suffix="-B") \
            is Classification.SUFFIX_EXCLUDED

    def test_exactly_one_classification(self, denylist):
        cases = [
            ("X1-A", None),
            ("X2", None),
            ("X3", make_detail(Item="X3", ProductClass="MINLDY")),
            ("X4", make_detail(Item="X4")),
        ]
        results = [classify_item(code, detail, denylist) for code, detail in cases]
        assert results == [
            Classification.SUFFIX_EXCLUDED,
            Classification.CATEGORY_EXCLUDED,
            Classification.CATEGORY_EXCLUDED,
            Classification.ELIGIBLE,
        ]


class TestExclusionReason:
    """Tests for exclusion_reason function."""

    def test_fetch_failed(self):
        reason = exclusion_reason(None)
        assert FETCH_FAILED in reason

    def test_names_class_and_line(self):
        reason = exclusion_reason(make_detail(ProductClass="MINLDY", ProductLine="Fragrance"))
        assert "MINLDY" in reason
        assert "Fragrance" in reason


class TestLoadCategoryDenylist:
    """Tests for load_category_denylist function."""

    def test_packaged_default(self):
        denylist = load_category_denylist()
        assert {"Wellness", "Miscellaneous"} <= denylist.product_lines
        assert "FGDLDY" in denylist.product_classes
        assert "HAIRDMEN" in denylist.product_classes
        assert "PERFUME" not in denylist.product_classes

    def test_custom_file(self, tmp_path):
        path = tmp_path / "denylist.json"
        path.write_text(json.dumps({"product_classes": ["PERFUME"]}))

        denylist = load_category_denylist(path)

        assert denylist.product_classes == frozenset({"PERFUME"})
        assert denylist.product_lines == frozenset()

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_category_denylist(tmp_path / "missing.json")


class TestShouldUpdateVariant:
    """Tests for should_update_variant function."""

    def test_missing_variant_update(self):
        assert should_update_variant(None, "26.00", "40.00", 5) is True

    def test_same_values_no_update(self):
        variant = StorefrontVariant(
            id=1, sku="X100", price="26.00", compare_at_price="40.00", inventory_quantity=5
        )
        assert should_update_variant(variant, "26.00", "40.00", 5) is False

    def test_equivalent_values_no_update(self):
        # "26" and "26.00" should be considered equal
        variant = StorefrontVariant(
            id=1, sku="X100", price="26", compare_at_price="40.0", inventory_quantity=5
        )
        assert should_update_variant(variant, "26.00", "40.00", 5) is False

    def test_price_change_update(self):
        variant = StorefrontVariant(
            id=1, sku="X100", price="25.00", compare_at_price="40.00", inventory_quantity=5
        )
        assert should_update_variant(variant, "26.00", "40.00", 5) is True

    def test_compare_at_cleared_in_store_update(self):
        variant = StorefrontVariant(id=1, sku="X100", price="26.00", inventory_quantity=5)
        assert should_update_variant(variant, "26.00", "40.00", 5) is True

    def test_inventory_change_update(self):
        variant = StorefrontVariant(
            id=1, sku="X100", price="26.00", compare_at_price="40.00", inventory_quantity=5
        )
        assert should_update_variant(variant, "26.00", "40.00", 4) is True

    def test_weight_change_update(self):
        variant = StorefrontVariant(
            id=1, sku="X100", price="26.00", compare_at_price="40.00",
            inventory_quantity=5, weight=1.0,
        )
        assert should_update_variant(variant, "26.00", "40.00", 5, weight="3.4") is True
        assert should_update_variant(variant, "26.00", "40.00", 5, weight="1.00") is False

    def test_missing_weight_matches_zero(self):
        variant = StorefrontVariant(
            id=1, sku="X100", price="26.00", compare_at_price="40.00", inventory_quantity=5
        )
        assert should_update_variant(variant, "26.00", "40.00", 5, weight=0) is False
