from __future__ import annotations

from dataclasses import dataclass

from ..items import ItemStore
from ..models import ItemState, LayoutSection, SlotKind
from .base import TupleMap, collect, referencing_slots


@dataclass(slots=True)
class LayoutSectionExtractor:
    """Inline blocks placed in layout sections, resolved from block revision to block."""

    items: ItemStore
    track_base: bool = False

    method = "layout-section"
    label = "Layout builder"
    description = "Tracks relationships created with layout sections."
    slot_kinds = (SlotKind.LAYOUT_SECTION.value,)

    def extract(self, item: ItemState) -> TupleMap:
        out: TupleMap = {}
        for slot in referencing_slots(item, self.slot_kinds, track_base=self.track_base):
            pairs = []
            for section in slot.values:
                if not isinstance(section, LayoutSection):
                    continue
                for component in section.components:
                    if component.plugin_id.split(":", 1)[0] != "inline_block":
                        continue
                    revision_id = component.configuration.get("block_revision_id")
                    if revision_id in (None, ""):
                        continue
                    block_id = self.items.resolve_block_revision(str(revision_id))
                    if block_id is not None:
                        pairs.append(("block_content", block_id))
            out[slot.name] = collect(slot, pairs)
        return out
