"""Parent resolution hook for the host item tree."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from .resolver import ParentResolver


class ItemDefinition(Protocol):
    """A host tree item; only its id is used here."""
    id: Any


class CallContext(Protocol):
    """Host call context; abort() stops further parent providers."""

    def abort(self) -> None:
        ...


class CatalogDataProvider:
    """
    Supplies parents for catalog items in the host tree.

    When the index knows the item's parent, the context is aborted so the
    host does not ask other providers, and the parent id is returned.
    Otherwise returns None and the host carries on.
    """

    def __init__(
        self,
        resolver: ParentResolver,
        can_process: Callable[[ItemDefinition], bool] | None = None,
    ):
        self.resolver = resolver
        self.can_process = can_process or (lambda item: True)

    def get_parent_id(self, item: ItemDefinition, context: CallContext) -> str | None:
        if not self.can_process(item):
            return None

        parent_id = self.resolver.get_parent(str(item.id))
        if parent_id is None:
            return None

        context.abort()
        return parent_id
