from __future__ import annotations

from dataclasses import dataclass

from ..items import ItemStore
from ..models import ItemState, SlotKind
from .base import TupleMap, collect, referencing_slots


@dataclass(slots=True)
class StructuredReferenceExtractor:
    """Typed reference slots pointing at other content items.

    Slots declaring a configuration type as target are skipped, as are ids that
    no longer resolve.
    """

    items: ItemStore
    track_base: bool = False

    method = "structured-reference"
    label = "Entity reference"
    description = "Tracks relationships created with reference slots."
    slot_kinds = (SlotKind.REFERENCE.value,)

    def extract(self, item: ItemState) -> TupleMap:
        out: TupleMap = {}
        for slot in referencing_slots(item, self.slot_kinds, track_base=self.track_base):
            target_type = slot.target_type
            if not target_type or not self.items.is_content_type(target_type):
                continue
            ids = {str(v) for v in slot.values if v is not None and str(v) != ""}
            out[slot.name] = collect(slot, ((target_type, i) for i in ids if self.items.exists(target_type, i)))
        return out
