from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from .errors import InvalidDeletionScopeError


class SlotKind(str, Enum):
    """Slot kinds the built-in extractors know how to read.

    Items may carry slots of any other kind; those are never scanned.
    """

    REFERENCE = "reference"
    HYPERLINK = "hyperlink"
    RICH_TEXT = "rich_text"
    BLOCK = "block"
    LAYOUT_SECTION = "layout_section"


class DeletionScope(str, Enum):
    VERSION = "version"
    LOCALE = "locale"
    ITEM = "item"

    @classmethod
    def parse(cls, value: DeletionScope | str) -> DeletionScope:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidDeletionScopeError(value) from None


@dataclass(frozen=True, slots=True)
class FormattedText:
    """Rich-text slot value. `summary` is scanned as well when present."""

    value: str
    summary: str | None = None


@dataclass(frozen=True, slots=True)
class BlockPlacement:
    """A block placed in a block slot.

    `plugin_id` is `base[:derivative]`, e.g. `views_block:frontpage-page_1`
    or `block_content:4b1d...`.
    """

    plugin_id: str
    configuration: Mapping[str, Any] = field(default_factory=dict)

    @property
    def base_id(self) -> str:
        return self.plugin_id.split(":", 1)[0]

    @property
    def derivative_id(self) -> str | None:
        parts = self.plugin_id.split(":", 1)
        return parts[1] if len(parts) > 1 else None


@dataclass(frozen=True, slots=True)
class LayoutComponent:
    plugin_id: str
    configuration: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LayoutSection:
    components: tuple[LayoutComponent, ...] = ()


@dataclass(frozen=True, slots=True)
class Slot:
    """A named field on an item capable of holding references.

    Values by kind:
    - reference: target ids
    - hyperlink: URL strings
    - rich_text: markup strings or FormattedText
    - block: BlockPlacement
    - layout_section: LayoutSection
    """

    name: str
    kind: str
    values: tuple[Any, ...] = ()
    target_type: str | None = None  # declared target type (reference slots)
    base: bool = False  # non-configurable slot

    def is_empty(self) -> bool:
        return not self.values


@dataclass(frozen=True, slots=True)
class ItemState:
    """Read-only projection of one version+locale of an item."""

    id: str
    type: str
    locale: str
    version: str | None = None
    stable_id: str | None = None
    slots: Mapping[str, Slot] = field(default_factory=dict)
    # Whether this locale variant changed in the save that produced it.
    affected: bool = True
    default_locale: bool = True

    def slot(self, name: str) -> Slot | None:
        return self.slots.get(name)

    def slots_of_kind(self, *kinds: str) -> list[Slot]:
        return [s for s in self.slots.values() if s.kind in kinds]

    def describe(self) -> str:
        return f"{self.type}:{self.id}@{self.version or '-'}/{self.locale}"


@dataclass(frozen=True, slots=True)
class ExtractedTuple:
    target_type: str
    target_id: str
    slot_name: str


@dataclass(frozen=True, slots=True)
class EdgeKey:
    """Uniqueness key of a ledger row."""

    target_id: str
    target_type: str
    source_id: str
    source_type: str
    source_locale: str
    source_version: str | None
    method: str
    slot_name: str

    @classmethod
    def for_tuple(cls, item: ItemState, method: str, tup: ExtractedTuple) -> EdgeKey:
        return cls(
            target_id=tup.target_id,
            target_type=tup.target_type,
            source_id=item.id,
            source_type=item.type,
            source_locale=item.locale,
            source_version=item.version,
            method=method,
            slot_name=tup.slot_name,
        )


@dataclass(frozen=True, slots=True)
class UsageEdge:
    """A directed, weighted record that a source item references a target."""

    target_id: str
    target_type: str
    source_id: str
    source_type: str
    source_locale: str
    source_version: str | None
    method: str
    slot_name: str
    count: int

    @classmethod
    def from_key(cls, key: EdgeKey, count: int) -> UsageEdge:
        return cls(
            target_id=key.target_id,
            target_type=key.target_type,
            source_id=key.source_id,
            source_type=key.source_type,
            source_locale=key.source_locale,
            source_version=key.source_version,
            method=key.method,
            slot_name=key.slot_name,
            count=count,
        )

    @property
    def key(self) -> EdgeKey:
        return EdgeKey(
            target_id=self.target_id,
            target_type=self.target_type,
            source_id=self.source_id,
            source_type=self.source_type,
            source_locale=self.source_locale,
            source_version=self.source_version,
            method=self.method,
            slot_name=self.slot_name,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
