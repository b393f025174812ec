"""Parent lookups against the cached index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..ids import normalize_id
from .cache import MappingCache
from .types import MappingEntry


logger = logging.getLogger(__name__)


class LookupStatus(str, Enum):
    """Outcome of a parent lookup."""
    FOUND = "found"
    NOT_FOUND = "not_found"  # Index loaded, id not in it
    NO_DATA = "no_data"      # Index is empty (feed unavailable or empty)


@dataclass(frozen=True)
class ParentLookup:
    """Result of a parent lookup."""
    child_id: str
    status: LookupStatus
    parent_id: str | None = None
    matched_on: str | None = None  # "path_id" | "local_id"
    entry: MappingEntry | None = None
    snapshot_built_at: datetime | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


class ParentResolver:
    """
    Answers "what is the parent of X?".

    The id is matched against path ids first, then against local ids, since
    a synthesized node may be asked for by either. Unknown ids are a normal
    outcome and never raise.
    """

    def __init__(self, cache: MappingCache):
        self.cache = cache

    def lookup(self, child_id: str) -> ParentLookup:
        """Resolve the parent of an id, with details of how it matched."""
        snapshot = self.cache.ensure_fresh()
        key = normalize_id(child_id)

        if snapshot.is_empty:
            return ParentLookup(
                child_id=key,
                status=LookupStatus.NO_DATA,
                snapshot_built_at=snapshot.built_at,
            )

        matched_on = "path_id"
        entry = snapshot.find_by_path_id(key)
        if entry is None:
            # Fall back to the node's own id
            matched_on = "local_id"
            entry = snapshot.find_by_local_id(key)

        if entry is None:
            logger.debug(f"Failed to get parent id for item {key}")
            return ParentLookup(
                child_id=key,
                status=LookupStatus.NOT_FOUND,
                snapshot_built_at=snapshot.built_at,
            )

        return ParentLookup(
            child_id=key,
            status=LookupStatus.FOUND,
            parent_id=entry.parent_id,
            matched_on=matched_on,
            entry=entry,
            snapshot_built_at=snapshot.built_at,
        )

    def get_parent(self, child_id: str) -> str | None:
        """Parent id of child_id, or None if it has none in the index."""
        return self.lookup(child_id).parent_id

    def translate(self, local_id: str) -> str | None:
        """Commerce entity id for a local id, or None."""
        snapshot = self.cache.ensure_fresh()
        return snapshot.translate(normalize_id(local_id))
