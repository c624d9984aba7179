from __future__ import annotations

import logging

from ..errors import UnknownExtractorError
from ..items import ItemStore
from ..tracking import TrackingConfig
from .base import ReferenceExtractor
from .block import BlockExtractor
from .embed import EmbedExtractor
from .hyperlink import HyperlinkExtractor
from .layout import LayoutSectionExtractor
from .reference import StructuredReferenceExtractor

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """Open set of extractors keyed by method, in registration order."""

    def __init__(self) -> None:
        self._extractors: dict[str, ReferenceExtractor] = {}

    def register(self, extractor: ReferenceExtractor, *, replace: bool = False) -> None:
        if extractor.method in self._extractors and not replace:
            raise ValueError(f"Extractor {extractor.method!r} is already registered")
        self._extractors[extractor.method] = extractor
        logger.debug("Registered extractor %s", extractor.method)

    def get(self, method: str) -> ReferenceExtractor:
        try:
            return self._extractors[method]
        except KeyError:
            raise UnknownExtractorError(method) from None

    def __contains__(self, method: object) -> bool:
        return method in self._extractors

    def __len__(self) -> int:
        return len(self._extractors)

    def all(self) -> list[ReferenceExtractor]:
        return list(self._extractors.values())

    def enabled(self, tracking: TrackingConfig) -> list[ReferenceExtractor]:
        return [e for e in self._extractors.values() if tracking.is_method_enabled(e.method)]


def build_default_registry(items: ItemStore, tracking: TrackingConfig | None = None) -> ExtractorRegistry:
    tracking = tracking or TrackingConfig()
    base = tracking.track_base_slots()
    registry = ExtractorRegistry()
    registry.register(StructuredReferenceExtractor(items, track_base=base))
    registry.register(HyperlinkExtractor(items, site_domains=tracking.site_domains, track_base=base))
    registry.register(EmbedExtractor(items, track_base=base))
    registry.register(BlockExtractor(items, track_base=base))
    registry.register(LayoutSectionExtractor(items, track_base=base))
    return registry
