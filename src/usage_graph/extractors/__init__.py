"""Reference extractors, one per referencing mechanism."""

from .base import ReferenceExtractor, TupleMap, referencing_slots, scan_embeds
from .block import BlockExtractor
from .embed import EmbedExtractor
from .hyperlink import HyperlinkExtractor
from .layout import LayoutSectionExtractor
from .reference import StructuredReferenceExtractor
from .registry import ExtractorRegistry, build_default_registry

__all__ = [
    "ReferenceExtractor",
    "TupleMap",
    "referencing_slots",
    "scan_embeds",
    "BlockExtractor",
    "EmbedExtractor",
    "HyperlinkExtractor",
    "LayoutSectionExtractor",
    "StructuredReferenceExtractor",
    "ExtractorRegistry",
    "build_default_registry",
]
