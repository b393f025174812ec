"""Tests for building the parent index from catalog records."""

from datetime import datetime, timezone

import pytest

from catalog_index_svc.commerce.types import CatalogItemType
from catalog_index_svc.ids import CATALOGS_ROOT_ID, derive_id
from catalog_index_svc.mapping.builder import CatalogHierarchyBuilder
from catalog_index_svc.mapping.types import MappingEntry


@pytest.fixture
def builder():
    return CatalogHierarchyBuilder()


def parent_of(snapshot, item_id):
    entry = snapshot.find_by_path_id(item_id) or snapshot.find_by_local_id(item_id)
    return entry.parent_id if entry else None


class TestSampleHierarchy:
    def test_category_under_catalog(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        assert parent_of(snapshot, "K1") == "C1"

    def test_catalog_under_root(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        assert parent_of(snapshot, "C1") == CATALOGS_ROOT_ID

    def test_sellable_item_under_category(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        assert parent_of(snapshot, derive_id("S1|K1")) == "K1"
        # Own id reaches the same placement through the local id
        assert parent_of(snapshot, "S1") == "K1"

    def test_variation_under_sellable_item(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        assert parent_of(snapshot, derive_id("e-s1|V1")) == "S1"

    def test_variation_under_placement(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        placement = derive_id("S1|K1")
        assert parent_of(snapshot, derive_id(f"e-s1|V1|{placement}")) == placement

    def test_entries(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        variation_id = derive_id("e-s1|V1")
        placement = derive_id("S1|K1")

        assert list(snapshot.entries) == [
            MappingEntry(path_id="C1", local_id="C1", parent_id=CATALOGS_ROOT_ID, entity_id="e-c1"),
            MappingEntry(path_id="K1", local_id="K1", parent_id="C1", entity_id="e-k1"),
            MappingEntry(path_id=placement, local_id="S1", parent_id="K1", entity_id="e-s1"),
            MappingEntry(path_id=variation_id, local_id=variation_id, parent_id="S1", entity_id="e-s1|V1"),
            MappingEntry(
                path_id=derive_id(f"e-s1|V1|{placement}"),
                local_id=variation_id,
                parent_id=placement,
                entity_id="e-s1|V1",
            ),
        ]

    def test_translation_table(self, builder, sample_records):
        snapshot = builder.build(sample_records)
        assert snapshot.translate("C1") == "e-c1"
        assert snapshot.translate("K1") == "e-k1"
        assert snapshot.translate("S1") == "e-s1"
        assert snapshot.translate(derive_id("S1|K1")) == "e-s1"
        assert snapshot.translate(derive_id("e-s1|V1")) == "e-s1|V1"
        assert snapshot.translate("missing") is None

    def test_record_count(self, builder, sample_records):
        assert builder.build(sample_records).record_count == 3


class TestDeterminism:
    def test_repeated_builds_identical(self, builder, sample_records):
        first = builder.build(sample_records)
        second = CatalogHierarchyBuilder().build(sample_records)
        assert first.entries == second.entries
        assert dict(first.table) == dict(second.table)

    def test_built_at(self, builder, sample_records):
        stamp = datetime(2026, 1, 2, tzinfo=timezone.utc)
        assert builder.build(sample_records, built_at=stamp).built_at == stamp


class TestCategoryParents:
    def test_every_matched_reference_yields_entry(self, builder, make_record):
        records = [
            make_record("K1", "e-k1", CatalogItemType.CATEGORY),
            make_record("K2", "e-k2", CatalogItemType.CATEGORY),
            make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, categories=["K1", "K2"]),
        ]
        snapshot = builder.build(records)
        entries = snapshot.entries_for_entity("e-s1")
        assert [e.parent_id for e in entries] == ["K1", "K2"]
        assert [e.path_id for e in entries] == [derive_id("S1|K1"), derive_id("S1|K2")]

    def test_unmatched_reference_skipped(self, builder, make_record):
        records = [
            make_record("K1", "e-k1", CatalogItemType.CATEGORY),
            make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, categories=["K1", "GONE"]),
        ]
        snapshot = builder.build(records)
        assert [e.parent_id for e in snapshot.entries_for_entity("e-s1")] == ["K1"]

    def test_parent_may_follow_child_in_feed(self, builder, make_record):
        records = [
            make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, categories=["K1"]),
            make_record("K1", "e-k1", CatalogItemType.CATEGORY),
        ]
        snapshot = builder.build(records)
        assert parent_of(snapshot, derive_id("S1|K1")) == "K1"

    def test_subcategory_uses_own_id_as_path(self, builder, make_record):
        records = [
            make_record("K1", "e-k1", CatalogItemType.CATEGORY),
            make_record("K2", "e-k2", CatalogItemType.CATEGORY, categories=["K1"]),
        ]
        snapshot = builder.build(records)
        entry = snapshot.find_by_path_id("K2")
        assert entry == MappingEntry(path_id="K2", local_id="K2", parent_id="K1", entity_id="e-k2")

    def test_category_self_reference_ignored(self, builder, make_record):
        records = [
            make_record("C1", "e-c1", CatalogItemType.CATALOG),
            make_record("K1", "e-k1", CatalogItemType.CATEGORY, catalogs=["C1"], categories=["K1"]),
        ]
        snapshot = builder.build(records)
        assert [e.parent_id for e in snapshot.entries_for_entity("e-k1")] == ["C1"]
        assert parent_of(snapshot, "K1") == "C1"

    def test_first_write_wins_on_shared_path_id(self, builder, make_record):
        records = [
            make_record("C1", "e-c1", CatalogItemType.CATALOG),
            make_record("K1", "e-k1", CatalogItemType.CATEGORY, catalogs=["C1"]),
            make_record("K2", "e-k2", CatalogItemType.CATEGORY, catalogs=["C1"], categories=["K1"]),
        ]
        snapshot = builder.build(records)

        # Both rows are kept; the category parent was written first
        assert [e.parent_id for e in snapshot.entries_for_entity("e-k2")] == ["K1", "C1"]
        assert parent_of(snapshot, "K2") == "K1"


class TestCatalogs:
    def test_parent_catalog_refs(self, builder, make_record):
        records = [
            make_record("C0", "e-c0", CatalogItemType.CATALOG),
            make_record("C1", "e-c1", CatalogItemType.CATALOG, catalogs=["C0"]),
        ]
        snapshot = builder.build(records)
        assert [e.parent_id for e in snapshot.entries_for_entity("e-c1")] == ["C0", CATALOGS_ROOT_ID]

    def test_self_reference_ignored(self, builder, make_record):
        snapshot = builder.build([make_record("C1", "e-c1", CatalogItemType.CATALOG, catalogs=["C1"])])
        assert parent_of(snapshot, "C1") == CATALOGS_ROOT_ID

    def test_custom_root(self, make_record):
        builder = CatalogHierarchyBuilder(root_id="ROOT")
        snapshot = builder.build([make_record("C1", "e-c1", CatalogItemType.CATALOG)])
        assert parent_of(snapshot, "C1") == "ROOT"

    def test_root_id_normalized(self, make_record):
        builder = CatalogHierarchyBuilder(root_id="{4C0A1BBD-7F86-4D6A-A9C8-1B5FD5A7B1C3}")
        snapshot = builder.build([make_record("C1", "e-c1", CatalogItemType.CATALOG)])
        assert parent_of(snapshot, "C1") == CATALOGS_ROOT_ID

    def test_category_listed_in_itself_as_catalog(self, builder, make_record):
        records = [make_record("K1", "e-k1", CatalogItemType.CATEGORY, catalogs=["K1", "C1"])]
        snapshot = builder.build(records)
        assert [e.parent_id for e in snapshot.entries_for_entity("e-k1")] == ["C1"]

    def test_category_in_several_catalogs(self, builder, make_record):
        records = [make_record("K1", "e-k1", CatalogItemType.CATEGORY, catalogs=["C1", "C2"])]
        snapshot = builder.build(records)
        assert [e.parent_id for e in snapshot.entries_for_entity("e-k1")] == ["C1", "C2"]
        assert parent_of(snapshot, "K1") == "C1"


class TestSellableItems:
    def test_variation_fan_out(self, builder, make_record):
        records = [
            make_record("K1", "e-k1", CatalogItemType.CATEGORY),
            make_record("K2", "e-k2", CatalogItemType.CATEGORY),
            make_record(
                "S1", "e-s1", CatalogItemType.SELLABLE_ITEM,
                categories=["K1", "K2"], variations=["V1", "V2", "V3"],
            ),
        ]
        snapshot = builder.build(records)
        variation_ids = {derive_id(f"e-s1|{v}") for v in ("V1", "V2", "V3")}
        placements = {derive_id("S1|K1"), derive_id("S1|K2")}

        variation_entries = [e for e in snapshot.entries if e.local_id in variation_ids]
        under_item = [e for e in variation_entries if e.parent_id == "S1"]
        under_placement = [e for e in variation_entries if e.parent_id in placements]

        # N + N x M
        assert len(under_item) == 3
        assert len(under_placement) == 6
        assert len(variation_entries) == 9
        assert len({e.path_id for e in variation_entries}) == 9

    def test_variations_without_placements(self, builder, make_record):
        records = [make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, variations=["V1", "V2"])]
        snapshot = builder.build(records)
        assert snapshot.entry_count == 2
        assert all(e.parent_id == "S1" for e in snapshot.entries)

    def test_item_under_catalog(self, builder, make_record):
        records = [make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, catalogs=["C1"])]
        snapshot = builder.build(records)
        path_id = derive_id("S1|C1")

        entry = snapshot.find_by_path_id(path_id)
        assert entry == MappingEntry(path_id=path_id, local_id="S1", parent_id="C1", entity_id="e-s1")
        assert snapshot.translate(path_id) == "e-s1"

    def test_catalog_placements_not_fanned_out(self, builder, make_record):
        records = [
            make_record("S1", "e-s1", CatalogItemType.SELLABLE_ITEM, catalogs=["C1"], variations=["V1"]),
        ]
        snapshot = builder.build(records)
        variation_id = derive_id("e-s1|V1")
        assert [e.parent_id for e in snapshot.entries if e.local_id == variation_id] == ["S1"]


class TestOtherRecords:
    def test_unknown_type_only_translated(self, builder, make_record):
        records = [make_record("X1", "e-x1", CatalogItemType.OTHER, catalogs=["C1"], variations=["V1"])]
        snapshot = builder.build(records)
        assert snapshot.entry_count == 0
        assert snapshot.translate("X1") == "e-x1"

    def test_unknown_type_still_gets_category_parent(self, builder, make_record):
        records = [
            make_record("K1", "e-k1", CatalogItemType.CATEGORY),
            make_record("X1", "e-x1", CatalogItemType.OTHER, categories=["K1"]),
        ]
        snapshot = builder.build(records)
        assert parent_of(snapshot, derive_id("X1|K1")) == "K1"

    def test_duplicate_local_id_overwrites_translation(self, builder, make_record):
        records = [
            make_record("S1", "e-old"),
            make_record("S1", "e-new"),
        ]
        assert builder.build(records).translate("S1") == "e-new"

    def test_empty_feed(self, builder):
        snapshot = builder.build([])
        assert snapshot.is_empty
        assert not snapshot.failed
