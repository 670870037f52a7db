"""
Metadata fetchers
=================
1. ``fetch_favicon(url, size)``
   a. GET the favicon aggregation endpoint for ``url`` at ``size`` px.
   b. Keep the body only for 2xx, non-empty, ``image/*`` (or untyped) responses.
2. ``fetch_page_title(url)``
   a. GET ``url`` itself with a descriptive user agent, bypassing caches.
   b. Extract ``og:title``, else ``<title>``.

NOTE: Both fetchers are soft. Every failure (transport, timeout, status,
content) collapses to ``None``; nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import html
import logging
import re
from collections import OrderedDict
from io import BytesIO
from typing import Dict, Optional, Tuple

import aiohttp
from PIL import Image

from ..model import ImageIcon

logger = logging.getLogger(__name__)

OG_TITLE_RE = re.compile(
    r"""<meta[^>]+property=["']og:title["'][^>]+content=["']([^"']+)["']""",
    re.IGNORECASE,
)
TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def extract_title(page: str) -> Optional[str]:
    """
    Return the page title from raw HTML.

    ``og:title`` wins over ``<title>``. Angle brackets left in the inner text
    are dropped and surrounding whitespace trimmed; an empty result is ``None``.

    Beyond returning the raw match, HTML entities are unescaped
    (``&amp;`` -> ``&``) and ``<title>`` may span several lines.
    """
    match = OG_TITLE_RE.search(page)
    if match:
        title = html.unescape(match.group(1)).strip()
        if title:
            return title

    match = TITLE_RE.search(page)
    if match:
        inner = match.group(1).replace("<", "").replace(">", "")
        title = html.unescape(inner).strip()
        if title:
            return title

    return None


def decode_icon(data: bytes) -> Optional[ImageIcon]:
    """Return an :class:`ImageIcon` when ``data`` decodes as an image, else ``None``."""
    if not data:
        return None
    try:
        with Image.open(BytesIO(data)) as im:
            im.load()
            width, height = im.size
            return ImageIcon(data=data, format=im.format, width=width, height=height)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        logger.debug("Favicon bytes did not decode as an image: %s", e)
        return None


def _is_success(status: int) -> bool:
    return 200 <= status < 300


class MetadataClient:
    """Best-effort title and favicon lookups for a target URL."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        favicon_endpoint: str = "https://t0.gstatic.com/faviconV2",
        user_agent: str = "Mozilla/5.0 (compatible; GPTBot/1.0)",
        timeout: float = 15,
        cache_size: int = 256,
    ) -> None:
        self.session = session
        self.favicon_endpoint = favicon_endpoint
        self.user_agent = user_agent
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        # (url, size) -> favicon bytes, least recently used first
        self._favicon_cache: "OrderedDict[Tuple[str, int], bytes]" = OrderedDict()
        self._cache_size = cache_size

    def _cache_get(self, key: Tuple[str, int]) -> Optional[bytes]:
        data = self._favicon_cache.get(key)
        if data is not None:
            self._favicon_cache.move_to_end(key)
        return data

    def _cache_put(self, key: Tuple[str, int], data: bytes) -> None:
        self._favicon_cache[key] = data
        self._favicon_cache.move_to_end(key)
        while len(self._favicon_cache) > self._cache_size:
            self._favicon_cache.popitem(last=False)

    # ---------- favicon ---------------------------------------------- #

    def favicon_params(self, url: str, size: int) -> Dict[str, str]:
        return {
            "client": "SOCIAL",
            "type": "FAVICON",
            "fallback_opts": "TYPE,SIZE,URL",
            "url": url,
            "size": str(size),
        }

    async def fetch_favicon(self, url: str, size: int = 64) -> Optional[bytes]:
        """
        Return favicon bytes for ``url`` or ``None``.

        :param url: Site whose favicon is wanted.
        :param size: Requested edge length in pixels.
        """
        key = (url, size)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        try:
            async with self.session.get(
                self.favicon_endpoint,
                params=self.favicon_params(url, size),
                timeout=self.timeout,
            ) as resp:
                if not _is_success(resp.status):
                    logger.debug("Favicon lookup for %s returned %s", url, resp.status)
                    return None
                data = await resp.read()
                mime = resp.headers.get("Content-Type")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("Favicon lookup for %s failed: %s", url, e)
            return None

        if not data:
            return None
        if mime is not None and not mime.lower().startswith("image/"):
            logger.debug("Favicon lookup for %s returned %s", url, mime)
            return None

        self._cache_put(key, data)
        return data

    # ---------- page title ------------------------------------------- #

    async def fetch_page_title(self, url: str) -> Optional[str]:
        """Return the title of the page at ``url`` or ``None``."""
        headers = {
            "User-Agent": self.user_agent,
            "Cache-Control": "no-cache",
        }
        try:
            async with self.session.get(url, headers=headers, timeout=self.timeout) as resp:
                if not _is_success(resp.status):
                    logger.debug("Title fetch for %s returned %s", url, resp.status)
                    return None
                data = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("Title fetch for %s failed: %s", url, e)
            return None

        if not data:
            return None
        try:
            page = data.decode("utf-8")
        except UnicodeDecodeError:
            return None
        return extract_title(page)


__all__ = ["MetadataClient", "extract_title", "decode_icon", "OG_TITLE_RE", "TITLE_RE"]
