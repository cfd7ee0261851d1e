"""
Catalog sync between a wholesale distributor and a Shopify storefront.
"""
