from __future__ import annotations

from collections.abc import Iterable
from html.parser import HTMLParser
from typing import Protocol

from ..models import ExtractedTuple, FormattedText, ItemState, Slot

TupleMap = dict[str, set[ExtractedTuple]]


class ReferenceExtractor(Protocol):
    method: str
    label: str
    description: str
    slot_kinds: tuple[str, ...]

    def extract(self, item: ItemState) -> TupleMap: ...


def referencing_slots(item: ItemState, kinds: Iterable[str], *, track_base: bool = False) -> list[Slot]:
    """Slots of `item` an extractor should read; base slots only when enabled."""
    return [s for s in item.slots_of_kind(*kinds) if track_base or not s.base]


def collect(slot: Slot, pairs: Iterable[tuple[str, str]]) -> set[ExtractedTuple]:
    return {ExtractedTuple(target_type=t, target_id=str(i), slot_name=slot.name) for t, i in pairs}


def markup_of(value: object) -> str:
    if isinstance(value, FormattedText):
        return value.value + (value.summary or "")
    if value is None:
        return ""
    return str(value)


class _EmbedScanner(HTMLParser):
    def __init__(self, tags: frozenset[str]):
        super().__init__(convert_charrefs=True)
        self.tags = tags
        self.found: list[tuple[str, str]] = []

    def handle_starttag(self, tag, attrs):
        if tag not in self.tags:
            return
        a = dict(attrs)
        type_ = (a.get("data-entity-type") or "").strip()
        stable_id = (a.get("data-entity-uuid") or "").strip()
        if type_ and stable_id:
            self.found.append((type_, stable_id))

    handle_startendtag = handle_starttag


def scan_embeds(markup: str, tags: Iterable[str] = ("drupal-entity",)) -> list[tuple[str, str]]:
    """Find `(type, stable_id)` pairs on embed tags in `markup`, in document order."""
    if not markup:
        return []
    scanner = _EmbedScanner(frozenset(t.lower() for t in tags))
    scanner.feed(markup)
    scanner.close()
    return scanner.found
