"""Paged retrieval of the Commerce catalog feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from .client import CommerceClient, CommerceError
from .types import CatalogRecord


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

CATALOG_ITEMS_FIELDS = (
    "Id",
    "SitecoreId",
    "ParentCatalogList",
    "ParentCategoryList",
    "ChildrenCategoryList",
    "ChildrenSellableItemList",
    "ItemVariations",
)


class CatalogFetchError(CommerceError):
    """Raised when any page of the catalog feed cannot be retrieved or read."""
    pass


@dataclass(frozen=True)
class CatalogPage:
    """One page of the catalog feed."""
    skip: int
    records: list[CatalogRecord]
    total_item_count: int


def catalog_items_path(environment: str, skip: int, take: int) -> str:
    """Build the OData path for one page of catalog items."""
    select = ",".join(CATALOG_ITEMS_FIELDS)
    return (
        f"GetCatalogItems(environmentName='{environment}',skip={skip},take={take})"
        f"?$expand=CatalogItems($select={select})"
    )


class RemoteCatalogFetcher:
    """
    Pages through the catalog feed of the Commerce ops service.

    Pages are requested while ``skip < total_item_count``. The total starts
    at 1 so the first page is always requested, and is updated from every
    page received. Any failed page aborts the whole fetch; nothing is
    retried here.
    """

    def __init__(self, client: CommerceClient, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size

    def iter_pages(self, environment: str) -> Iterator[CatalogPage]:
        """
        Yield catalog pages in feed order.

        Raises:
            CatalogFetchError: If a page fails or cannot be parsed
        """
        skip = 0
        total_item_count = 1

        while skip < total_item_count:
            path = catalog_items_path(environment, skip, self.page_size)
            try:
                data = self.client.get_json(path, use_commerce_ops=True)
            except CommerceError as e:
                raise CatalogFetchError(
                    f"Failed to retrieve catalog items from the Commerce Engine (skip={skip}): {e}"
                ) from e

            logger.info(f"Processing catalog page from Commerce Engine, skipping {skip} items")
            page = self._parse_page(data, skip)
            total_item_count = page.total_item_count
            yield page

            skip += self.page_size

    def fetch_all(self, environment: str | None = None) -> list[CatalogRecord]:
        """Fetch every catalog record, in feed order."""
        environment = environment or self.client.environment
        logger.info(f"Fetching catalog items for environment '{environment}'")

        records: list[CatalogRecord] = []
        total_item_count = 0
        for page in self.iter_pages(environment):
            records.extend(page.records)
            total_item_count = page.total_item_count

        logger.info(f"Total catalog item count {total_item_count}, received {len(records)}")
        return records

    def close(self) -> None:
        self.client.close()

    @staticmethod
    def _parse_page(data: dict, skip: int) -> CatalogPage:
        items = data.get("CatalogItems")
        total = data.get("TotalItemCount")
        if not isinstance(items, list) or total is None:
            raise CatalogFetchError(f"Malformed catalog page at skip={skip}: missing CatalogItems or TotalItemCount")

        try:
            records = [CatalogRecord.from_wire(item) for item in items]
            total_item_count = int(total)
        except (TypeError, ValueError, AttributeError) as e:
            raise CatalogFetchError(f"Malformed catalog page at skip={skip}: {e}") from e

        return CatalogPage(skip=skip, records=records, total_item_count=total_item_count)
