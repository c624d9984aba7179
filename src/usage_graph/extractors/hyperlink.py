from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..items import ItemStore
from ..models import ItemState, SlotKind
from .base import TupleMap, collect, referencing_slots

logger = logging.getLogger(__name__)


def _split_domain(entry: str) -> tuple[str, str]:
    """`example.com/sub` -> (`example.com`, `/sub`). A scheme prefix is tolerated."""
    entry = entry.strip()
    if "://" in entry:
        entry = entry.split("://", 1)[1]
    host, _, base = entry.partition("/")
    base = "/" + base.strip("/") if base.strip("/") else ""
    return host.lower(), base


@dataclass(slots=True)
class HyperlinkExtractor:
    """Link slots whose URL routes to a content item.

    Accepted values:
    - `entity:TYPE/ID`
    - internal paths (`/node/1`, `internal:/node/1`)
    - absolute URLs on one of `site_domains`, with the domain's base path stripped
    """

    items: ItemStore
    site_domains: tuple[str, ...] = ()
    track_base: bool = False

    method = "hyperlink"
    label = "Link"
    description = "Tracks relationships created with link slots."
    slot_kinds = (SlotKind.HYPERLINK.value,)

    def extract(self, item: ItemState) -> TupleMap:
        out: TupleMap = {}
        for slot in referencing_slots(item, self.slot_kinds, track_base=self.track_base):
            pairs = []
            for value in slot.values:
                target = self.resolve(str(value or ""))
                if target:
                    pairs.append(target)
            out[slot.name] = collect(slot, pairs)
        return out

    def resolve(self, url: str) -> tuple[str, str] | None:
        url = url.strip()
        if not url:
            return None

        if url.startswith("entity:"):
            type_, _, id_ = url[len("entity:"):].partition("/")
            target = (type_, id_) if type_ and id_ else None
        else:
            path = self._internal_path(url)
            target = self.items.resolve_routed_link(path) if path is not None else None

        if target is None:
            return None
        type_, id_ = target
        if not self.items.is_content_type(type_) or not self.items.exists(type_, id_):
            return None
        return type_, str(id_)

    def _internal_path(self, url: str) -> str | None:
        if url.startswith("internal:"):
            url = url[len("internal:"):]
        parts = urlsplit(url)
        if parts.scheme in ("", "base") and not parts.netloc:
            return "/" + parts.path.lstrip("/")
        if parts.scheme not in ("http", "https"):
            return None

        host = (parts.hostname or "").lower()
        path = parts.path or "/"
        for entry in self.site_domains:
            d_host, d_base = _split_domain(entry)
            if host != d_host:
                continue
            if d_base and path != d_base and not path.startswith(d_base + "/"):
                continue
            return "/" + path[len(d_base):].lstrip("/")
        logger.debug("Ignoring external link %s", url)
        return None
