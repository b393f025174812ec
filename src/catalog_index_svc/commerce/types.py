"""Catalog records as delivered by the Commerce catalog feed."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..ids import normalize_id

# Separator used by the feed for reference lists
REF_SEPARATOR = "|"


class CatalogItemType(str, Enum):
    """Kind of catalog item, taken from the OData type annotation."""
    CATALOG = "Catalog"
    CATEGORY = "Category"
    SELLABLE_ITEM = "SellableItem"
    OTHER = "Other"

    @classmethod
    def from_odata_type(cls, odata_type: str | None) -> CatalogItemType:
        """
        Map an ``@odata.type`` value to an item type.

        ``#Sitecore.Commerce.Plugin.Catalog.Category`` -> CATEGORY.
        Anything unrecognised is OTHER.
        """
        if not odata_type:
            return cls.OTHER
        name = odata_type.lstrip("#").rsplit(".", 1)[-1]
        try:
            return cls(name)
        except ValueError:
            return cls.OTHER


def split_refs(value: str | None) -> tuple[str, ...]:
    """Split a pipe-delimited reference list, keeping order."""
    if not value:
        return ()
    return tuple(ref.strip() for ref in value.split(REF_SEPARATOR) if ref.strip())


@dataclass(frozen=True, slots=True)
class CatalogRecord:
    """A single item of the catalog feed."""
    entity_id: str
    local_id: str
    item_type: CatalogItemType = CatalogItemType.OTHER
    parent_catalog_refs: tuple[str, ...] = ()
    parent_category_refs: tuple[str, ...] = ()
    variation_refs: tuple[str, ...] = ()

    @classmethod
    def from_wire(cls, item: dict[str, Any]) -> CatalogRecord:
        """
        Build a record from a ``CatalogItems`` element.

        Raises:
            ValueError: If the item lacks an ``Id`` or ``SitecoreId``
        """
        entity_id = item.get("Id")
        local_id = item.get("SitecoreId")
        if not entity_id or not local_id:
            raise ValueError(f"Catalog item is missing Id or SitecoreId: {item!r}")

        return cls(
            entity_id=str(entity_id),
            local_id=normalize_id(str(local_id)),
            item_type=CatalogItemType.from_odata_type(item.get("@odata.type")),
            parent_catalog_refs=tuple(normalize_id(r) for r in split_refs(item.get("ParentCatalogList"))),
            parent_category_refs=tuple(normalize_id(r) for r in split_refs(item.get("ParentCategoryList"))),
            # Variation refs are entity-side names, not host ids
            variation_refs=split_refs(item.get("ItemVariations")),
        )
