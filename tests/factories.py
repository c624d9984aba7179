"""Builders for item snapshots used across the test suite."""

from __future__ import annotations

from usage_graph.models import (
    BlockPlacement,
    FormattedText,
    ItemState,
    LayoutComponent,
    LayoutSection,
    Slot,
    SlotKind,
)
from usage_graph.settings import UsageGraphSettings


def make_settings(**overrides) -> UsageGraphSettings:
    values = dict(
        source_types=[],
        target_types=[],
        methods=[],
        track_base_slots=False,
        site_domains=["example.com/site"],
        recompute_batch_size=2,
        api_key=None,
    )
    values.update(overrides)
    return UsageGraphSettings(**values)


def item(
    id_: str,
    *slots: Slot,
    type_: str = "node",
    version: str | None = "1",
    locale: str = "en",
    stable_id: str | None = None,
    affected: bool = True,
    default_locale: bool = True,
) -> ItemState:
    return ItemState(
        id=id_,
        type=type_,
        locale=locale,
        version=version,
        stable_id=stable_id if stable_id is not None else f"uuid-{type_}-{id_}",
        slots={s.name: s for s in slots},
        affected=affected,
        default_locale=default_locale,
    )


def ref(name: str, *ids: str, target_type: str = "node", base: bool = False) -> Slot:
    return Slot(name=name, kind=SlotKind.REFERENCE.value, values=tuple(ids), target_type=target_type, base=base)


def link(name: str, *urls: str) -> Slot:
    return Slot(name=name, kind=SlotKind.HYPERLINK.value, values=tuple(urls))


def text(name: str, *markup: str, summary: str | None = None) -> Slot:
    values = tuple(FormattedText(value=m, summary=summary) for m in markup)
    return Slot(name=name, kind=SlotKind.RICH_TEXT.value, values=values)


def embed(type_: str, id_: str) -> str:
    return f'<drupal-entity data-entity-type="{type_}" data-entity-uuid="uuid-{type_}-{id_}"></drupal-entity>'


def blocks(name: str, *placements: BlockPlacement) -> Slot:
    return Slot(name=name, kind=SlotKind.BLOCK.value, values=placements)


def layout(name: str, *revision_ids: str) -> Slot:
    components = tuple(
        LayoutComponent(plugin_id="inline_block:basic", configuration={"block_revision_id": r}) for r in revision_ids
    )
    return Slot(name=name, kind=SlotKind.LAYOUT_SECTION.value, values=(LayoutSection(components=components),))
