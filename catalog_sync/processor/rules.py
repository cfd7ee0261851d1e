"""
Business rules for deciding which distributor items are synced.
"""

import json
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import FrozenSet, Optional, Union

from pydantic import BaseModel

from ..distributor.models import DistributorItemDetail
from ..pricing import PriceInput, to_decimal
from ..shopify.models import StorefrontVariant


FETCH_FAILED = "Unknown - Fetch Failed"
DEFAULT_DENYLIST_RESOURCE = "excluded_categories.json"


class Classification(str, Enum):
    """Outcome of the eligibility rules for one distributor item."""
    SUFFIX_EXCLUDED = "suffix_excluded"
    CATEGORY_EXCLUDED = "category_excluded"
    ELIGIBLE = "eligible"


class CategoryDenylist(BaseModel):
    """Product lines and classes that are never published to the store."""
    product_lines: FrozenSet[str] = frozenset()
    product_classes: FrozenSet[str] = frozenset()

    def excludes(self, detail: DistributorItemDetail) -> bool:
        return (
            detail.product_line in self.product_lines
            or detail.product_class in self.product_classes
        )


def load_category_denylist(
    path: Optional[Union[str, Path]] = None
) -> CategoryDenylist:
    """
    Load the category denylist from a JSON file.

    Args:
        path: JSON file with "product_lines" and "product_classes" lists;
              the packaged default is used when omitted

    Returns:
        CategoryDenylist
    """
    if path is None:
        text = (
            resources.files("catalog_sync.data")
            .joinpath(DEFAULT_DENYLIST_RESOURCE)
            .read_text(encoding="utf-8")
        )
    else:
        text = Path(path).read_text(encoding="utf-8")
    return CategoryDenylist.model_validate(json.loads(text))


def classify_item(
    code: str,
    detail: Optional[DistributorItemDetail],
    denylist: CategoryDenylist,
    excluded_suffix: str = "-A",
) -> Classification:
    """
    Apply the eligibility rules in order; the first match wins.

    1. Code ends with the reserved suffix
    2. Detail missing, or product line/class denylisted
    3. Otherwise eligible
    """
    if excluded_suffix and code.endswith(excluded_suffix):
        return Classification.SUFFIX_EXCLUDED
    if detail is None or denylist.excludes(detail):
        return Classification.CATEGORY_EXCLUDED
    return Classification.ELIGIBLE


def exclusion_reason(detail: Optional[DistributorItemDetail]) -> str:
    """Describe why an item was category-excluded."""
    product_class = detail.product_class if detail else FETCH_FAILED
    product_line = detail.product_line if detail else FETCH_FAILED
    return f"ProductClass '{product_class}' or ProductLine '{product_line}'"


def _normalize(value: Optional[PriceInput]) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except ValueError:
        return None


def should_update_variant(
    variant: Optional[StorefrontVariant],
    price: PriceInput,
    compare_at_price: Optional[PriceInput],
    inventory_quantity: int,
    weight: Optional[PriceInput] = None,
) -> bool:
    """
    Determine if a storefront variant differs from the distributor data.

    Prices and weights are compared as two-decimal values so "26" and
    "26.00" match. A variant without a weight counts as weighing 0.

    Args:
        variant: Current storefront variant (None forces an update)
        price: New price
        compare_at_price: New compare-at price
        inventory_quantity: New available quantity
        weight: New weight; None skips the weight comparison

    Returns:
        True if update is needed, False otherwise
    """
    if variant is None:
        return True

    if weight is not None:
        current_weight = variant.weight if variant.weight is not None else 0
        if _normalize(current_weight) != _normalize(weight):
            return True

    return (
        _normalize(variant.price) != _normalize(price)
        or _normalize(variant.compare_at_price) != _normalize(compare_at_price)
        or variant.inventory_quantity != inventory_quantity
    )
