"""In-memory item store loaded from a JSON export of a repository.

File layout::

    {
      "config_types": ["view"],
      "routes": {"node": "/node/{id}"},
      "aliases": {"/about": ["node", "1"]},
      "config_entities": [["view", "frontpage"]],
      "items": [
        {"type": "node", "id": "1", "version": "1", "locale": "en",
         "stable_id": "6f1c...", "slots": [
           {"name": "field_related", "kind": "reference", "target_type": "node", "values": ["2"]},
           {"name": "body", "kind": "rich_text", "values": [{"value": "<p>..</p>", "summary": null}]}
         ]}
      ]
    }

Items are saved in file order, so later entries for the same id/locale become
newer versions and keep the previous snapshot as their original.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from .models import (
    BlockPlacement,
    FormattedText,
    ItemState,
    LayoutComponent,
    LayoutSection,
    Slot,
    SlotKind,
)

logger = logging.getLogger(__name__)


def natural_key(id_: str) -> tuple[int, int, str]:
    """Numeric ids sort numerically and ahead of any other id."""
    return (0, int(id_), "") if id_.isdigit() else (1, 0, id_)


def _as_text(v: Any) -> Any:
    # Exports often carry numeric ids.
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


def _slot_value(kind: str, raw: Any) -> Any:
    if kind == SlotKind.RICH_TEXT and isinstance(raw, dict):
        return FormattedText(value=str(raw.get("value") or ""), summary=raw.get("summary"))
    if kind == SlotKind.BLOCK:
        if isinstance(raw, str):
            return BlockPlacement(plugin_id=raw)
        return BlockPlacement(plugin_id=raw["plugin_id"], configuration=dict(raw.get("configuration") or {}))
    if kind == SlotKind.LAYOUT_SECTION and isinstance(raw, dict):
        components = tuple(
            LayoutComponent(plugin_id=c["plugin_id"], configuration=dict(c.get("configuration") or {}))
            for c in raw.get("components") or []
        )
        return LayoutSection(components=components)
    if kind in (SlotKind.REFERENCE, SlotKind.HYPERLINK) and raw is not None:
        return str(raw)
    return raw


class SlotIn(BaseModel):
    name: str
    kind: str
    values: list[Any] = Field(default_factory=list)
    target_type: str | None = None
    base: bool = False

    def to_slot(self) -> Slot:
        return Slot(
            name=self.name,
            kind=self.kind,
            values=tuple(_slot_value(self.kind, v) for v in self.values),
            target_type=self.target_type,
            base=self.base,
        )


class ItemIn(BaseModel):
    type: str
    id: str
    locale: str = "en"
    version: str | None = None
    stable_id: str | None = None
    default_locale: bool = True
    affected: bool = True
    slots: list[SlotIn] = Field(default_factory=list)

    @field_validator("id", "version", mode="before")
    @classmethod
    def _ids_as_text(cls, v: Any) -> Any:
        return _as_text(v)

    def to_state(self) -> ItemState:
        return ItemState(
            id=self.id,
            type=self.type,
            locale=self.locale,
            version=self.version,
            stable_id=self.stable_id,
            slots={s.name: s.to_slot() for s in self.slots},
            affected=self.affected,
            default_locale=self.default_locale,
        )


class SnapshotFile(BaseModel):
    config_types: list[str] = Field(default_factory=lambda: ["view"])
    routes: dict[str, str] = Field(default_factory=dict)
    aliases: dict[str, tuple[str, str]] = Field(default_factory=dict)
    config_entities: list[tuple[str, str]] = Field(default_factory=list)
    items: list[ItemIn] = Field(default_factory=list)

    @field_validator("aliases", mode="before")
    @classmethod
    def _alias_ids_as_text(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {path: [_as_text(x) for x in pair] for path, pair in v.items()}
        return v

    @field_validator("config_entities", mode="before")
    @classmethod
    def _config_ids_as_text(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [[_as_text(x) for x in pair] for pair in v]
        return v


def _vkey(version: str | None) -> str:
    return "" if version is None else str(version)


def _normalize_path(path: str) -> str:
    path = urlsplit(path).path or "/"
    return "/" + path.strip("/")


class SnapshotStore:
    """Dict-backed `ItemStore`.

    Versions of an item are kept in save order; saving a new version copies the
    other locale variants of the previous version forward, marked unaffected.
    """

    def __init__(
        self,
        *,
        config_types: tuple[str, ...] | list[str] = ("view",),
        routes: dict[str, str] | None = None,
    ):
        self.config_types = frozenset(config_types)
        self.routes: dict[str, re.Pattern[str]] = {}
        for type_, template in (routes or {}).items():
            self.add_route(type_, template)
        self._aliases: dict[str, tuple[str, str]] = {}
        self._config: set[tuple[str, str]] = set()
        self._versions: dict[tuple[str, str], dict[str, dict[str, ItemState]]] = {}
        self._originals: dict[tuple[str, str, str, str], ItemState | None] = {}
        self._stable: dict[tuple[str, str], str] = {}
        self._block_revisions: dict[str, str] = {}

    # ----- loading -----

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotStore:
        return cls.from_model(SnapshotFile.model_validate(data))

    @classmethod
    def from_json_file(cls, path: str | Path) -> SnapshotStore:
        return cls.from_model(SnapshotFile.model_validate_json(Path(path).expanduser().read_text(encoding="utf-8")))

    @classmethod
    def from_model(cls, doc: SnapshotFile) -> SnapshotStore:
        store = cls(config_types=doc.config_types, routes=doc.routes)
        for path, (type_, id_) in doc.aliases.items():
            store.add_alias(path, type_, id_)
        for type_, id_ in doc.config_entities:
            store.add_config(type_, id_)
        for item in doc.items:
            store.save(item.to_state())
        logger.info("Loaded %d snapshot(s) of %d item(s)", len(doc.items), len(store._versions))
        return store

    # ----- writing -----

    def add_route(self, type_: str, template: str) -> None:
        """Register the canonical path of a type, e.g. `/node/{id}`."""
        escaped = re.escape(_normalize_path(template)).replace(r"\{id\}", r"(?P<id>[^/]+)")
        self.routes[type_] = re.compile(f"^{escaped}$")

    def add_alias(self, path: str, type_: str, id_: str) -> None:
        self._aliases[_normalize_path(path)] = (type_, str(id_))

    def add_config(self, type_: str, id_: str) -> None:
        self._config.add((type_, str(id_)))

    def save(self, item: ItemState) -> ItemState | None:
        """Store `item` and return the snapshot it replaces (its original)."""
        versions = self._versions.setdefault((item.type, item.id), {})
        latest = next(reversed(versions.values()), None) if versions else None
        previous = dict(latest) if latest else {}
        original = previous.get(item.locale)

        vkey = _vkey(item.version)
        if vkey not in versions:
            carried = {
                locale: replace(state, version=item.version, affected=False)
                for locale, state in previous.items()
                if locale != item.locale
            }
            versions[vkey] = carried
        versions[vkey][item.locale] = item

        # Every variant of the saved version compares against its pre-save state.
        for locale in versions[vkey]:
            self._originals[(item.type, item.id, vkey, locale)] = previous.get(locale)
        if item.stable_id:
            self._stable[(item.type, item.stable_id)] = item.id
        if item.type == "block_content" and item.version is not None:
            self._block_revisions[str(item.version)] = item.id
        return original

    def delete(self, type_: str, id_: str, *, version: str | None = None, locale: str | None = None) -> None:
        versions = self._versions.get((type_, id_))
        if versions is None:
            return
        if version is not None:
            versions.pop(_vkey(version), None)
        elif locale is not None:
            for variants in versions.values():
                variants.pop(locale, None)
        else:
            versions.clear()
        for vkey in [k for k, v in versions.items() if not v]:
            del versions[vkey]
        if not versions:
            del self._versions[(type_, id_)]
            self._stable = {k: v for k, v in self._stable.items() if not (k[0] == type_ and v == id_)}

    # ----- ItemStore -----

    def get_item(
        self, type_: str, id_: str, version: str | None = None, locale: str | None = None
    ) -> ItemState | None:
        versions = self._versions.get((type_, id_))
        if not versions:
            return None
        variants = versions.get(_vkey(version)) if version is not None else next(reversed(versions.values()))
        if not variants:
            return None
        if locale is not None:
            return variants.get(locale)
        for state in variants.values():
            if state.default_locale:
                return state
        return next(iter(variants.values()))

    def get_original(self, item: ItemState) -> ItemState | None:
        return self._originals.get((item.type, item.id, _vkey(item.version), item.locale))

    def list_locales(self, item: ItemState) -> list[ItemState]:
        variants = self._versions.get((item.type, item.id), {}).get(_vkey(item.version), {})
        return list(variants.values())

    def list_versions(self, type_: str, id_: str) -> list[str | None]:
        versions = self._versions.get((type_, id_), {})
        return [k or None for k in reversed(versions.keys())]

    def _ids(self, type_: str) -> list[str]:
        return sorted((i for t, i in self._versions if t == type_), key=natural_key)

    def iter_ids(self, type_: str, *, after: str | None, limit: int) -> list[str]:
        ids = self._ids(type_)
        if after is not None:
            floor = natural_key(str(after))
            ids = [i for i in ids if natural_key(i) > floor]
        return ids[:limit]

    def count(self, type_: str) -> int:
        return len(self._ids(type_))

    def types(self) -> list[str]:
        return sorted({t for t, _ in self._versions})

    def exists(self, type_: str, id_: str) -> bool:
        return (type_, str(id_)) in self._versions or (type_, str(id_)) in self._config

    def is_content_type(self, type_: str) -> bool:
        return type_ not in self.config_types

    def resolve_by_stable_id(self, type_: str, stable_id: str) -> str | None:
        id_ = self._stable.get((type_, stable_id))
        return id_ if id_ is not None and self.exists(type_, id_) else None

    def resolve_routed_link(self, path: str) -> tuple[str, str] | None:
        path = _normalize_path(path)
        if path in self._aliases:
            return self._aliases[path]
        for type_, pattern in self.routes.items():
            m = pattern.match(path)
            if m:
                return type_, m.group("id")
        return None

    def resolve_block_revision(self, revision_id: str) -> str | None:
        id_ = self._block_revisions.get(str(revision_id))
        return id_ if id_ is not None and self.exists("block_content", id_) else None
