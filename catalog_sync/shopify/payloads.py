"""
Request bodies for Shopify product writes.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..distributor.models import DistributorItemDetail
from ..pricing import format_price
from .models import StorefrontProduct

UNCLASSIFIED_TAG = "Unclassified"
NO_FRAGRANCE_TAG = "No Fragrance"
WEIGHT_UNIT = "oz"


def build_description_html(detail: DistributorItemDetail) -> str:
    """Build the product body from the distributor's description fields."""
    description = " ".join(
        part for part in (
            detail.description, detail.description_2, detail.description_3
        ) if part
    )
    return (
        f"<strong>Description:</strong> {description}<br>"
        f"<strong>UPC:</strong> {detail.upc or ''}<br>"
        f"<strong>Size:</strong> {detail.size or ''}<br>"
        f"<strong>Designer:</strong> {detail.designer or ''}<br>"
        f"<strong>Fragrance:</strong> {detail.fragrance or ''}"
    )


def build_tags(detail: DistributorItemDetail) -> List[str]:
    """Tags from product line, class, designer and fragrance."""
    return [
        f"ProductLine_{detail.product_line}" if detail.product_line else UNCLASSIFIED_TAG,
        f"ProductClass_{detail.product_class}" if detail.product_class else UNCLASSIFIED_TAG,
        f"Designer_{detail.designer}" if detail.designer else UNCLASSIFIED_TAG,
        f"Fragrance_{detail.fragrance}" if detail.fragrance else NO_FRAGRANCE_TAG,
    ]


def _weight(detail: DistributorItemDetail) -> str:
    return str(detail.weight) if detail.weight is not None else "0"


def build_create_payload(
    detail: DistributorItemDetail,
    price: Decimal,
    compare_at_price: Decimal,
    vendor: str,
) -> Dict[str, Any]:
    """
    Full product body for a new storefront product.

    Images are only ever sent here; updates leave them alone.
    """
    product: Dict[str, Any] = {
        "title": detail.description or detail.item,
        "body_html": build_description_html(detail),
        "vendor": vendor,
        "product_type": detail.product or "",
        "tags": build_tags(detail),
        "variants": [{
            "sku": detail.item,
            "price": format_price(price),
            "compare_at_price": format_price(compare_at_price),
            "inventory_quantity": detail.available,
            "inventory_management": "shopify",
            "weight": _weight(detail),
            "weight_unit": WEIGHT_UNIT,
        }],
        "images": [{"src": detail.image_url}] if detail.image_url else [],
    }
    return {"product": product}


def build_update_payload(
    product: StorefrontProduct,
    detail: DistributorItemDetail,
    price: Decimal,
    compare_at_price: Decimal,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Price and inventory body for an existing product.

    Title, description, tags and images are left as they are in the store.
    ``status`` is only sent when given.
    """
    variant: Dict[str, Optional[Any]] = {
        "price": format_price(price),
        "compare_at_price": format_price(compare_at_price),
        "inventory_quantity": detail.available,
        "weight": _weight(detail),
        "weight_unit": WEIGHT_UNIT,
    }
    existing = product.variant_for_sku(detail.item)
    if existing is not None and existing.id is not None:
        variant["id"] = existing.id
    else:
        variant["sku"] = detail.item

    body: Dict[str, Any] = {"id": product.id, "variants": [variant]}
    if status is not None:
        body["status"] = status
    return {"product": body}
