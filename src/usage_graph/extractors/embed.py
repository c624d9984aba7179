from __future__ import annotations

from dataclasses import dataclass

from ..items import ItemStore
from ..models import ItemState, SlotKind
from .base import TupleMap, collect, markup_of, referencing_slots, scan_embeds


@dataclass(slots=True)
class EmbedExtractor:
    """Embed tags inside rich-text markup.

    Tags carry the target type and its stable id; the id is resolved when the
    item is scanned, so embeds of deleted targets drop out.
    """

    items: ItemStore
    track_base: bool = False
    tags: tuple[str, ...] = ("drupal-entity",)

    method = "embed"
    label = "Entity embed"
    description = "Tracks relationships created with embed tags in formatted text."
    slot_kinds = (SlotKind.RICH_TEXT.value,)

    def extract(self, item: ItemState) -> TupleMap:
        out: TupleMap = {}
        for slot in referencing_slots(item, self.slot_kinds, track_base=self.track_base):
            text = "".join(markup_of(v) for v in slot.values)
            pairs = []
            for type_, stable_id in scan_embeds(text, self.tags):
                id_ = self.items.resolve_by_stable_id(type_, stable_id)
                if id_ is not None:
                    pairs.append((type_, id_))
            out[slot.name] = collect(slot, pairs)
        return out
