"""
Tests for the sync runner.
"""

import asyncio

import httpx
import pytest

from catalog_sync.config import Settings
from catalog_sync.distributor import DistributorClient
from catalog_sync.notifications import EmailNotifier
from catalog_sync.processor import SyncResult, SyncSummary, run_sync, sync_catalog
from catalog_sync.processor.runner import SyncError
from catalog_sync.processor.sync import ItemOutcome, SyncAction
from catalog_sync.shopify import ShopifyClient


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def send(self, subject, body):
        self.sent.append((subject, body))
        return True


def make_settings(**overrides) -> Settings:
    values = {
        "shopify_store_url": "mystore.myshopify.com",
        "shopify_access_token": "shpat_test",
        "distributor_api_key": "key",
        "min_request_interval": 0,
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)


def test_sync_catalog_end_to_end(clock):
    """One distributor item becomes one storefront product."""
    created = []

    def distributor_api(request):
        if request.url.path.endswith("/products"):
            return httpx.Response(200, json={"Results": [{"Item": "X100"}], "NextUrl": None})
        return httpx.Response(200, json={
            "Item": "X100", "Net": "20.00", "Retail": "40.00",
            "Desc": "Perfume", "ProductClass": "PERFUME", "Available": 3,
        })

    def shopify_api(request):
        if request.method == "POST":
            created.append(request)
            return httpx.Response(201, json={"product": {"id": 1}})
        return httpx.Response(200, json={"products": []})

    distributor = DistributorClient(
        "https://api.distributor.example/v1", "key",
        transport=httpx.MockTransport(distributor_api), sleep=clock.sleep,
    )
    storefront = ShopifyClient(
        "mystore.myshopify.com", "shpat_test",
        transport=httpx.MockTransport(shopify_api), sleep=clock.sleep,
    )

    summary = asyncio.run(sync_catalog(make_settings(), distributor, storefront))

    assert summary.created == 1
    assert len(created) == 1
    assert b'"price":"26.00"' in created[0].content.replace(b" ", b"")


def test_sync_catalog_requires_shopify_config():
    settings = make_settings(shopify_store_url="")

    with pytest.raises(SyncError, match="Shopify"):
        asyncio.run(sync_catalog(settings, None, None))


def test_run_sync_reports_failure_and_notifies():
    notifier = RecordingNotifier()
    settings = make_settings(shopify_access_token="")

    result = asyncio.run(run_sync(settings, notifier=notifier))

    assert result.success is False
    assert "access token" in result.error
    assert notifier.sent[0][0] == "Catalog sync failed"


def test_failed_items_count_as_failures():
    summary = SyncSummary()
    summary.record(ItemOutcome("X100", SyncAction.FAILED, "rejected"))

    assert SyncResult(summary=summary, error=None).has_failures is True
    assert SyncResult(summary=SyncSummary(), error=None).has_failures is False


def test_notifier_disabled_without_credentials():
    notifier = EmailNotifier("smtp.example", 465, "", "", "ops@example.com")

    assert notifier.enabled is False
    assert asyncio.run(notifier.send("subject", "body")) is False
