from __future__ import annotations

from typing import Protocol

from .models import ItemState


class ItemStore(Protocol):
    """Read access to the host repository's items, versions and locales."""

    def get_item(
        self, type_: str, id_: str, version: str | None = None, locale: str | None = None
    ) -> ItemState | None: ...

    def get_original(self, item: ItemState) -> ItemState | None:
        """The snapshot of the same item/locale as it was before the save that produced `item`."""
        ...

    def list_locales(self, item: ItemState) -> list[ItemState]:
        """Every locale variant of `item`'s version, `item`'s own locale included."""
        ...

    def list_versions(self, type_: str, id_: str) -> list[str | None]:
        """Version ids newest first; `[None]` for a non-versioned item."""
        ...

    def iter_ids(self, type_: str, *, after: str | None, limit: int) -> list[str]:
        """Up to `limit` ids of `type_` strictly after `after`, in id order."""
        ...

    def count(self, type_: str) -> int: ...

    def types(self) -> list[str]: ...

    def exists(self, type_: str, id_: str) -> bool: ...

    def is_content_type(self, type_: str) -> bool: ...

    def resolve_by_stable_id(self, type_: str, stable_id: str) -> str | None: ...

    def resolve_routed_link(self, path: str) -> tuple[str, str] | None:
        """Map an internal path to `(type, id)` when it routes to an item's canonical view."""
        ...

    def resolve_block_revision(self, revision_id: str) -> str | None:
        """Id of the reusable block owning `revision_id`, if it still exists."""
        ...
