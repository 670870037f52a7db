"""linkshelf: saved short links with streamed title and favicon enrichment."""

from .errors import humanize
from .model import EnrichedLink, ImageIcon, LinkRecord, PlaceholderIcon
from .pipeline import EnrichmentPipeline
from .service import LinkService
from .shelf import LinkShelf

__all__ = [
    "LinkRecord",
    "EnrichedLink",
    "ImageIcon",
    "PlaceholderIcon",
    "EnrichmentPipeline",
    "LinkService",
    "LinkShelf",
    "humanize",
]
