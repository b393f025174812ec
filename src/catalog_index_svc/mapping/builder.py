"""Builds the parent index from catalog feed records.

The host tree is richer than the feed: variations become nodes of their own,
and a sellable item or category is addressable once per parent it hangs
under. Each such placement gets a MappingEntry, keyed by a path id that is
either the node's own id or an id derived from ``child|parent``.

Rules, applied per record in feed order (a node never becomes its own parent):

1. ``local_id -> entity_id`` goes into the translation table.
2. Every resolvable parent category yields an entry. Categories keep their
   own id as path id; other items get ``derive_id(local_id|category_id)``.
3. By type:
   - Catalog: one entry per parent catalog, then one under the catalogs root.
   - Category: one entry per parent catalog.
   - SellableItem: one entry per variation (parent = the item), plus one per
     variation and per placement the item already has; then one entry per
     parent catalog keyed by ``derive_id(local_id|catalog_id)``.
   - Anything else: nothing more.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from ..commerce.types import CatalogItemType, CatalogRecord
from ..ids import CATALOGS_ROOT_ID, composite_key, derive_id, normalize_id
from .types import MappingEntry, MappingSnapshot


logger = logging.getLogger(__name__)


@dataclass
class _BuildState:
    """Mutable accumulators for a single build."""
    entries: list[MappingEntry] = field(default_factory=list)
    table: dict[str, str] = field(default_factory=dict)
    by_entity: dict[str, list[MappingEntry]] = field(default_factory=dict)

    def add(self, entry: MappingEntry) -> None:
        self.entries.append(entry)
        self.by_entity.setdefault(entry.entity_id, []).append(entry)

    def register(self, local_id: str, entity_id: str) -> None:
        self.table[local_id] = entity_id


class CatalogHierarchyBuilder:
    """Turns catalog records into a MappingSnapshot."""

    def __init__(self, root_id: str = CATALOGS_ROOT_ID):
        self.root_id = normalize_id(root_id)

    def build(
        self,
        records: Iterable[CatalogRecord],
        built_at: datetime | None = None,
        error: str | None = None,
    ) -> MappingSnapshot:
        """
        Build a complete snapshot from records in feed order.

        Args:
            records: Catalog records, in the order the feed returned them
            built_at: Timestamp to stamp the snapshot with (default: now, UTC)
            error: Failure message to carry on the snapshot, if any
        """
        records = list(records)
        built_at = built_at or datetime.now(timezone.utc)
        state = _BuildState()

        # First record wins when a local id repeats
        by_local_id: dict[str, CatalogRecord] = {}
        for record in records:
            by_local_id.setdefault(record.local_id, record)

        for record in records:
            state.register(record.local_id, record.entity_id)
            self._add_category_parents(record, by_local_id, state)

            if record.item_type is CatalogItemType.CATALOG:
                self._add_catalog(record, state)
            elif record.item_type is CatalogItemType.CATEGORY:
                self._add_category(record, state)
            elif record.item_type is CatalogItemType.SELLABLE_ITEM:
                self._add_sellable_item(record, state)
            else:
                logger.debug(f"No derivation rule for {record.entity_id} ({record.item_type.value})")

        snapshot = MappingSnapshot(
            entries=tuple(state.entries),
            table=state.table,
            built_at=built_at,
            record_count=len(records),
            error=error,
        )
        logger.info(
            f"Built parent index: {snapshot.entry_count} parents, "
            f"{len(snapshot.table)} id mappings from {len(records)} records"
        )
        return snapshot

    def _add_category_parents(
        self,
        record: CatalogRecord,
        by_local_id: dict[str, CatalogRecord],
        state: _BuildState,
    ) -> None:
        for ref in record.parent_category_refs:
            parent = by_local_id.get(ref)
            if parent is None:
                logger.debug(f"Parent category {ref} of {record.entity_id} not in feed, skipping")
                continue
            if parent.local_id == record.local_id:
                continue

            if record.item_type is CatalogItemType.CATEGORY:
                path_id = record.local_id
            else:
                path_id = derive_id(composite_key(record.local_id, parent.local_id))
                state.register(path_id, record.entity_id)

            state.add(MappingEntry(
                path_id=path_id,
                local_id=record.local_id,
                parent_id=parent.local_id,
                entity_id=record.entity_id,
            ))

    def _add_catalog(self, record: CatalogRecord, state: _BuildState) -> None:
        for ref in record.parent_catalog_refs:
            if ref == record.local_id:
                continue
            state.add(MappingEntry(
                path_id=record.local_id,
                local_id=record.local_id,
                parent_id=ref,
                entity_id=record.entity_id,
            ))

        # Catalog => catalogs root
        state.add(MappingEntry(
            path_id=record.local_id,
            local_id=record.local_id,
            parent_id=self.root_id,
            entity_id=record.entity_id,
        ))

    def _add_category(self, record: CatalogRecord, state: _BuildState) -> None:
        for ref in record.parent_catalog_refs:
            if ref == record.local_id:
                continue
            state.add(MappingEntry(
                path_id=record.local_id,
                local_id=record.local_id,
                parent_id=ref,
                entity_id=record.entity_id,
            ))

    def _add_sellable_item(self, record: CatalogRecord, state: _BuildState) -> None:
        # Placements gathered so far; variations are fanned out under each
        placements = list(state.by_entity.get(record.entity_id, ()))

        for variation_ref in record.variation_refs:
            variation_entity_id = composite_key(record.entity_id, variation_ref)
            variation_id = derive_id(variation_entity_id)

            state.add(MappingEntry(
                path_id=variation_id,
                local_id=variation_id,
                parent_id=record.local_id,
                entity_id=variation_entity_id,
            ))
            state.register(variation_id, variation_entity_id)

            for placement in placements:
                path_id = derive_id(composite_key(variation_entity_id, placement.path_id))
                state.add(MappingEntry(
                    path_id=path_id,
                    local_id=variation_id,
                    parent_id=placement.path_id,
                    entity_id=variation_entity_id,
                ))
                state.register(path_id, variation_entity_id)

        for ref in record.parent_catalog_refs:
            path_id = derive_id(composite_key(record.local_id, ref))
            # local_id stays the item's own id so both keys reach the same node
            state.add(MappingEntry(
                path_id=path_id,
                local_id=record.local_id,
                parent_id=ref,
                entity_id=record.entity_id,
            ))
            state.register(path_id, record.entity_id)
