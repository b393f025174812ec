"""Commerce Engine access - HTTP client and catalog feed paging."""

from .types import CatalogItemType, CatalogRecord, split_refs
from .client import (
    CommerceAuthenticationError,
    CommerceClient,
    CommerceError,
    CommerceHttpError,
    CommerceTransportError,
)
from .fetcher import CatalogFetchError, CatalogPage, RemoteCatalogFetcher

__all__ = [
    "CatalogItemType",
    "CatalogRecord",
    "split_refs",
    "CommerceAuthenticationError",
    "CommerceClient",
    "CommerceError",
    "CommerceHttpError",
    "CommerceTransportError",
    "CatalogFetchError",
    "CatalogPage",
    "RemoteCatalogFetcher",
]
