"""
Pydantic models for Shopify products as returned by the REST API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class StorefrontVariant(BaseModel):
    """A product variant; its SKU joins it to a distributor item."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    sku: Optional[str] = None
    price: Optional[str] = None
    compare_at_price: Optional[str] = None
    inventory_quantity: Optional[int] = None
    weight: Optional[float] = None


class StorefrontProduct(BaseModel):
    """A storefront product with its variants."""

    model_config = ConfigDict(extra="ignore")

    id: int
    vendor: Optional[str] = None
    status: Optional[str] = None
    variants: List[StorefrontVariant] = []
    images: List[Dict[str, Any]] = []

    @property
    def skus(self) -> List[str]:
        return [v.sku for v in self.variants if v.sku]

    def variant_for_sku(self, sku: str) -> Optional[StorefrontVariant]:
        """Return the variant whose SKU matches exactly."""
        for variant in self.variants:
            if variant.sku == sku:
                return variant
        return None
