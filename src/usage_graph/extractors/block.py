from __future__ import annotations

from dataclasses import dataclass

from ..items import ItemStore
from ..models import BlockPlacement, ItemState, SlotKind
from .base import TupleMap, collect, referencing_slots


@dataclass(slots=True)
class BlockExtractor:
    """Block placement slots.

    `views_block:VIEW-DISPLAY` placements reference the view; any other
    placement references the reusable block named by `configuration["id"]`.
    """

    items: ItemStore
    track_base: bool = False

    method = "block"
    label = "Block field"
    description = "Tracks relationships created with block slots."
    slot_kinds = (SlotKind.BLOCK.value,)

    def extract(self, item: ItemState) -> TupleMap:
        out: TupleMap = {}
        for slot in referencing_slots(item, self.slot_kinds, track_base=self.track_base):
            pairs = []
            for placement in slot.values:
                if isinstance(placement, BlockPlacement):
                    target = self.resolve(placement)
                    if target:
                        pairs.append(target)
            out[slot.name] = collect(slot, pairs)
        return out

    def resolve(self, placement: BlockPlacement) -> tuple[str, str] | None:
        if placement.base_id == "views_block":
            view = (placement.derivative_id or "").split("-", 1)[0]
            target = ("view", view) if view else None
        else:
            block_id = placement.configuration.get("id")
            target = ("block_content", str(block_id)) if block_id not in (None, "") else None
        if target and self.items.exists(*target):
            return target
        return None
