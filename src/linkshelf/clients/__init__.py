"""HTTP clients: the shortening service and best-effort page metadata."""

from .metadata import MetadataClient, decode_icon, extract_title
from .shortener import ShortenerClient

__all__ = ["ShortenerClient", "MetadataClient", "extract_title", "decode_icon"]
