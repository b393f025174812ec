"""Parent index cache with lazy loading and single-flight refresh."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable

from ..commerce.fetcher import CatalogFetchError, RemoteCatalogFetcher
from .builder import CatalogHierarchyBuilder
from .types import MappingSnapshot


logger = logging.getLogger(__name__)

# Loader contract: given the build timestamp, return a complete snapshot
SnapshotLoader = Callable[[datetime], MappingSnapshot]


class CacheState(str, Enum):
    """Lifecycle state of a MappingCache."""
    EMPTY = "empty"      # Nothing loaded yet
    LOADING = "loading"  # A build is in flight
    READY = "ready"      # A snapshot is installed
    CLOSED = "closed"    # close() was called


class CacheClosedError(RuntimeError):
    """Raised when a closed cache is asked for a snapshot."""
    pass


class MappingCache:
    """
    Holds the current parent index snapshot and rebuilds it on demand.

    Readers that find a snapshot recent enough never take the lock. A reader
    that needs a build takes the lock, checks again (another thread may have
    just finished one) and builds only if still needed, so at most one build
    runs at a time and concurrent cold readers share its result.

    A failed fetch installs an empty snapshot carrying the error, so readers
    get "no data" rather than an exception, and a later refresh can retry.
    """

    def __init__(
        self,
        loader: SnapshotLoader,
        name: str = "catalog",
        on_close: Callable[[], None] | None = None,
    ):
        self.name = name
        self._loader = loader
        self._on_close = on_close
        self._lock = threading.Lock()
        self._snapshot: MappingSnapshot | None = None
        self._loading = False
        self._closed = False

        # Stats
        self._build_count = 0
        self._failed_builds = 0
        self._last_build_ms: float | None = None

    @classmethod
    def for_commerce(
        cls,
        fetcher: RemoteCatalogFetcher,
        builder: CatalogHierarchyBuilder,
        environment: str | None = None,
    ) -> MappingCache:
        """Create a cache that builds from the Commerce catalog feed."""

        def load(built_at: datetime) -> MappingSnapshot:
            records = fetcher.fetch_all(environment)
            return builder.build(records, built_at=built_at)

        return cls(load, on_close=fetcher.close)

    @property
    def state(self) -> CacheState:
        if self._closed:
            return CacheState.CLOSED
        if self._loading:
            return CacheState.LOADING
        if self._snapshot is None:
            return CacheState.EMPTY
        return CacheState.READY

    @property
    def snapshot(self) -> MappingSnapshot | None:
        """The installed snapshot, without triggering a load."""
        return self._snapshot

    @property
    def build_count(self) -> int:
        return self._build_count

    @property
    def last_build_ms(self) -> float | None:
        return self._last_build_ms

    def ensure_fresh(self, required_at: datetime | None = None) -> MappingSnapshot:
        """
        Return a snapshot, building one first if needed.

        Args:
            required_at: If given, the snapshot must have been built at or
                after this time; an older one is rebuilt. Naive values are
                taken as UTC.

        Raises:
            CacheClosedError: If the cache has been closed
        """
        if required_at is not None and required_at.tzinfo is None:
            required_at = required_at.replace(tzinfo=timezone.utc)

        snapshot = self._snapshot
        if not self._needs_build(snapshot, required_at):
            return snapshot

        logger.info(f"Acquiring {self.name} mapping lock")
        with self._lock:
            logger.info(f"{self.name} mapping locked")
            try:
                snapshot = self._snapshot
                if self._needs_build(snapshot, required_at):
                    snapshot = self._build()
                    self._snapshot = snapshot
            finally:
                logger.info(f"Releasing {self.name} mapping lock")

        return snapshot

    def refresh(self) -> MappingSnapshot:
        """Rebuild now, unless a build started after this call already did."""
        return self.ensure_fresh(required_at=datetime.now(timezone.utc))

    def close(self) -> None:
        """Drop the snapshot and release loader resources."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._snapshot = None
        if self._on_close is not None:
            self._on_close()
        logger.info(f"{self.name} mapping cache closed")

    def __enter__(self) -> MappingCache:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _needs_build(self, snapshot: MappingSnapshot | None, required_at: datetime | None) -> bool:
        if self._closed:
            raise CacheClosedError(f"{self.name} mapping cache is closed")
        if snapshot is None:
            return True
        return required_at is not None and required_at > snapshot.built_at

    def _build(self) -> MappingSnapshot:
        """Run one build (caller holds the lock)."""
        built_at = self._next_built_at()
        self._loading = True
        start = time.perf_counter()
        logger.info(f"Loading the {self.name} mapping entries")

        try:
            snapshot = self._loader(built_at)
        except CatalogFetchError as e:
            self._failed_builds += 1
            logger.error(f"There was an error retrieving the {self.name} mappings: {e}")
            snapshot = MappingSnapshot.empty(built_at, error=str(e))
        finally:
            self._loading = False
            self._build_count += 1
            self._last_build_ms = (time.perf_counter() - start) * 1000

        logger.info(
            f"Loaded the {self.name} mapping entries - {snapshot.entry_count} parents, "
            f"{len(snapshot.table)} entries in {self._last_build_ms:.0f}ms"
        )
        return snapshot

    def _next_built_at(self) -> datetime:
        """Build timestamp, strictly later than the installed snapshot's."""
        now = datetime.now(timezone.utc)
        if self._snapshot is not None and now <= self._snapshot.built_at:
            now = self._snapshot.built_at + timedelta(microseconds=1)
        return now

    def stats(self) -> dict[str, Any]:
        """Cache statistics."""
        snapshot = self._snapshot
        return {
            "name": self.name,
            "state": self.state.value,
            "builds": self._build_count,
            "failed_builds": self._failed_builds,
            "last_build_ms": round(self._last_build_ms, 2) if self._last_build_ms is not None else None,
            "snapshot": snapshot.stats() if snapshot is not None else None,
        }
