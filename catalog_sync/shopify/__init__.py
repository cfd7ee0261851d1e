"""
Shopify API module.
"""

from catalog_sync.shopify.client import (
    ShopifyClient,
    ShopifyClientError,
    ShopifyAuthError,
    ShopifyRateLimitError,
    ShopifyWriteError,
)
from catalog_sync.shopify.models import StorefrontProduct, StorefrontVariant
from catalog_sync.shopify.payloads import (
    build_create_payload,
    build_update_payload,
    build_description_html,
    build_tags,
)

__all__ = [
    "ShopifyClient",
    "ShopifyClientError",
    "ShopifyAuthError",
    "ShopifyRateLimitError",
    "ShopifyWriteError",
    "StorefrontProduct",
    "StorefrontVariant",
    "build_create_payload",
    "build_update_payload",
    "build_description_html",
    "build_tags",
]
