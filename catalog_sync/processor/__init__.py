"""
Processor package for sync operations.
"""

from .rules import (
    Classification,
    CategoryDenylist,
    classify_item,
    exclusion_reason,
    load_category_denylist,
    should_update_variant,
    FETCH_FAILED,
)
from .sync import Reconciler, SyncAction, SyncSummary, ItemOutcome
from .runner import run_sync, sync_catalog, SyncResult, SyncError

__all__ = [
    "Classification",
    "CategoryDenylist",
    "classify_item",
    "exclusion_reason",
    "load_category_denylist",
    "should_update_variant",
    "FETCH_FAILED",
    "Reconciler",
    "SyncAction",
    "SyncSummary",
    "ItemOutcome",
    "run_sync",
    "sync_catalog",
    "SyncResult",
    "SyncError",
]
