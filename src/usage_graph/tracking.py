from __future__ import annotations

from dataclasses import dataclass

from .settings import UsageGraphSettings


@dataclass(frozen=True, slots=True)
class TrackingConfig:
    """Capability predicate consulted before any extraction or ledger write.

    An empty set means every value is enabled.
    """

    source_types: frozenset[str] = frozenset()
    target_types: frozenset[str] = frozenset()
    methods: frozenset[str] = frozenset()
    base_slots: bool = False
    site_domains: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, s: UsageGraphSettings) -> TrackingConfig:
        return cls(
            source_types=frozenset(s.source_types),
            target_types=frozenset(s.target_types),
            methods=frozenset(s.methods),
            base_slots=s.track_base_slots,
            site_domains=tuple(s.site_domains),
        )

    def is_source_type_tracked(self, type_: str) -> bool:
        return not self.source_types or type_ in self.source_types

    def is_target_type_tracked(self, type_: str) -> bool:
        return not self.target_types or type_ in self.target_types

    def is_method_enabled(self, method: str) -> bool:
        return not self.methods or method in self.methods

    def track_base_slots(self) -> bool:
        return self.base_slots
