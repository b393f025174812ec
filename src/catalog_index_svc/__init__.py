"""
Catalog Index Service - parent lookups over a Commerce catalog feed

An in-memory parent index built from the remote catalog providing:
- Parent resolution for catalogs, categories, sellable items and variations
- Deterministic synthetic ids for nodes the feed does not expose directly
- Lazy loading with single-flight refresh behind a double-checked lock
- Id translation between host item ids and Commerce entity ids
"""

__version__ = "0.1.0"
