"""Deterministic identifiers for synthesized catalog nodes.

The Commerce feed only carries first-class entities. Relationships the host
tree needs as nodes of their own (item variations, a sellable item bound
under a particular category or catalog) get an id derived from a composite
key such as ``"<child>|<parent>"``.

Derivation is MD5 over the UTF-8 bytes of the key, read as a GUID in .NET
byte order, so the ids line up with the ones the Commerce connector derives
for the same composites.
"""

from __future__ import annotations

import hashlib
import uuid

# Separator used in every composite key
KEY_SEPARATOR = "|"

# Well-known container all top-level catalogs hang under
CATALOGS_ROOT_ID = "4c0a1bbd-7f86-4d6a-a9c8-1b5fd5a7b1c3"


def derive_id(composite_key: str) -> str:
    """
    Derive a stable identifier from a composite key.

    Same input, same output, in every process and on every machine.

    Examples:
        derive_id("S1|K1") == derive_id("S1|K1")
        derive_id("S1|K1") != derive_id("K1|S1")
    """
    digest = hashlib.md5(composite_key.encode("utf-8")).digest()
    return str(uuid.UUID(bytes_le=digest))


def composite_key(*parts: str) -> str:
    """Join key parts with the composite separator."""
    return KEY_SEPARATOR.join(parts)


def normalize_id(value: str) -> str:
    """
    Normalize an identifier for lookups.

    GUIDs are rendered lowercase, hyphenated and without braces so
    ``{ABCD...}`` and ``abcd...`` address the same node. Anything else is
    returned stripped but otherwise untouched.
    """
    value = value.strip()
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return value
