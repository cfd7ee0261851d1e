"""
Distributor API module.
"""

from catalog_sync.distributor.client import DistributorClient, next_url_from_body
from catalog_sync.distributor.models import DistributorItem, DistributorItemDetail

__all__ = [
    "DistributorClient",
    "DistributorItem",
    "DistributorItemDetail",
    "next_url_from_body",
]
