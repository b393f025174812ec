"""Parent index types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class MappingEntry:
    """
    One parent relationship.

    path_id is the key lookups are made with. local_id is the node's own id,
    which for synthesized nodes is a derived id and may differ from path_id.
    entity_id is the Commerce entity the entry traces back to; several
    entries may share it when a node appears under several parents.
    """
    path_id: str
    local_id: str
    parent_id: str
    entity_id: str


@dataclass(frozen=True, eq=False)
class MappingSnapshot:
    """
    Immutable, fully built parent index.

    Entries keep the order they were produced in. When several entries share
    a path_id (or local_id), lookups return the first one written.
    """
    entries: tuple[MappingEntry, ...]
    table: Mapping[str, str]
    built_at: datetime
    record_count: int = 0

    # Message of the fetch failure that left this snapshot empty
    error: str | None = None

    _by_path: dict[str, MappingEntry] = field(init=False, repr=False, compare=False)
    _by_local: dict[str, MappingEntry] = field(init=False, repr=False, compare=False)
    _by_entity: dict[str, tuple[MappingEntry, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_path: dict[str, MappingEntry] = {}
        by_local: dict[str, MappingEntry] = {}
        by_entity: dict[str, list[MappingEntry]] = {}
        for entry in self.entries:
            by_path.setdefault(entry.path_id, entry)
            by_local.setdefault(entry.local_id, entry)
            by_entity.setdefault(entry.entity_id, []).append(entry)

        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(self, "table", MappingProxyType(dict(self.table)))
        object.__setattr__(self, "_by_path", by_path)
        object.__setattr__(self, "_by_local", by_local)
        object.__setattr__(self, "_by_entity", {k: tuple(v) for k, v in by_entity.items()})

    @classmethod
    def empty(cls, built_at: datetime, error: str | None = None) -> MappingSnapshot:
        """A snapshot with no data, used when the feed could not be loaded."""
        return cls(entries=(), table={}, built_at=built_at, error=error)

    @property
    def is_empty(self) -> bool:
        return not self.entries and not self.table

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    def find_by_path_id(self, path_id: str) -> MappingEntry | None:
        return self._by_path.get(path_id)

    def find_by_local_id(self, local_id: str) -> MappingEntry | None:
        return self._by_local.get(local_id)

    def translate(self, local_id: str) -> str | None:
        """Entity id for a local id, or None."""
        return self.table.get(local_id)

    def entries_for_entity(self, entity_id: str) -> tuple[MappingEntry, ...]:
        return self._by_entity.get(entity_id, ())

    def stats(self) -> dict[str, Any]:
        return {
            "built_at": self.built_at.isoformat(),
            "records": self.record_count,
            "entries": len(self.entries),
            "path_ids": len(self._by_path),
            "table_entries": len(self.table),
            "error": self.error,
        }
