"""Parent index - snapshot model, builder, cache and lookups."""

from .types import MappingEntry, MappingSnapshot
from .builder import CatalogHierarchyBuilder
from .cache import CacheClosedError, CacheState, MappingCache
from .resolver import LookupStatus, ParentLookup, ParentResolver
from .provider import CatalogDataProvider

__all__ = [
    "MappingEntry",
    "MappingSnapshot",
    "CatalogHierarchyBuilder",
    "CacheClosedError",
    "CacheState",
    "MappingCache",
    "LookupStatus",
    "ParentLookup",
    "ParentResolver",
    "CatalogDataProvider",
]
