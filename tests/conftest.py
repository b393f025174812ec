"""Shared test fixtures for the catalog index tests."""

import json
import re
from urllib.parse import unquote

import httpx
import pytest

from catalog_index_svc.commerce.client import CommerceClient
from catalog_index_svc.commerce.fetcher import RemoteCatalogFetcher
from catalog_index_svc.commerce.types import CatalogItemType, CatalogRecord
from catalog_index_svc.config import CommerceConfig
from catalog_index_svc.mapping.builder import CatalogHierarchyBuilder
from catalog_index_svc.mapping.cache import MappingCache
from catalog_index_svc.mapping.resolver import ParentResolver


ODATA_PREFIX = "#Sitecore.Commerce.Plugin.Catalog."
PAGE_RE = re.compile(r"skip=(\d+),take=(\d+)")


# =============================================================================
# Record Fixtures
# =============================================================================

@pytest.fixture
def make_record():
    """Factory for CatalogRecord values."""
    def _make(
        local_id,
        entity_id,
        item_type=CatalogItemType.OTHER,
        catalogs=(),
        categories=(),
        variations=(),
    ):
        return CatalogRecord(
            entity_id=entity_id,
            local_id=local_id,
            item_type=item_type,
            parent_catalog_refs=tuple(catalogs),
            parent_category_refs=tuple(categories),
            variation_refs=tuple(variations),
        )
    return _make


@pytest.fixture
def sample_records(make_record):
    """One catalog, one category under it, one sellable item with a variation."""
    return [
        make_record("C1", "e-c1", CatalogItemType.CATALOG),
        make_record("K1", "e-k1", CatalogItemType.CATEGORY, catalogs=["C1"]),
        make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, categories=["K1"], variations=["V1"]),
    ]


@pytest.fixture
def make_wire_item():
    """Factory for CatalogItems elements as the feed returns them."""
    def _make(local_id, entity_id, item_type="SellableItem", catalogs="", categories="", variations=""):
        return {
            "@odata.type": f"{ODATA_PREFIX}{item_type}",
            "Id": entity_id,
            "SitecoreId": local_id,
            "ParentCatalogList": catalogs,
            "ParentCategoryList": categories,
            "ChildrenCategoryList": "",
            "ChildrenSellableItemList": "",
            "ItemVariations": variations,
        }
    return _make


@pytest.fixture
def sample_wire_items(make_wire_item):
    return [
        make_wire_item("C1", "e-c1", "Catalog"),
        make_wire_item("K1", "e-k1", "Category", catalogs="C1"),
        make_wire_item("S1", "e-s1", "SellableItem", categories="K1", variations="V1"),
    ]


# =============================================================================
# Commerce Fixtures
# =============================================================================

@pytest.fixture
def commerce_config() -> CommerceConfig:
    return CommerceConfig(
        shops_service_url="https://commerce.test/api/",
        ops_service_url="https://commerce.test/commerceops/",
        default_shop_name="TestShop",
        default_shop_currency="EUR",
        default_environment="TestAuthoring",
        request_timeout_seconds=5,
    )


class FeedServer:
    """Serves catalog items page by page and records every request."""

    def __init__(self, items, fail_at_skip=None, fail_status=500, total_override=None):
        self.items = list(items)
        self.fail_at_skip = fail_at_skip
        self.fail_status = fail_status
        self.total_override = total_override
        self.requests: list[httpx.Request] = []

    @property
    def page_requests(self) -> list[tuple[int, int]]:
        pages = []
        for request in self.requests:
            match = PAGE_RE.search(unquote(str(request.url)))
            if match:
                pages.append((int(match.group(1)), int(match.group(2))))
        return pages

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = PAGE_RE.search(unquote(str(request.url)))
        if match is None:
            return httpx.Response(404)

        skip, take = int(match.group(1)), int(match.group(2))
        if self.fail_at_skip is not None and skip == self.fail_at_skip:
            return httpx.Response(self.fail_status, text="failure")

        total = self.total_override if self.total_override is not None else len(self.items)
        body = {
            "CatalogItems": self.items[skip:skip + take],
            "TotalItemCount": total,
        }
        return httpx.Response(200, text=json.dumps(body))


@pytest.fixture
def feed_server():
    """Factory for FeedServer instances."""
    return FeedServer


@pytest.fixture
def make_resolver(commerce_config):
    """Build a full client -> fetcher -> cache -> resolver chain over a FeedServer."""
    created = []

    def _make(server, page_size=100):
        client = CommerceClient(commerce_config, transport=httpx.MockTransport(server))
        fetcher = RemoteCatalogFetcher(client, page_size=page_size)
        cache = MappingCache.for_commerce(fetcher, CatalogHierarchyBuilder())
        created.append(cache)
        return ParentResolver(cache)

    yield _make

    for cache in created:
        cache.close()
