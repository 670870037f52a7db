"""
LinkShelf
=========

Headless consumer of :class:`LinkService`: keeps the displayed collection
and runs the user actions (search, save, delete) against it.

- ``links`` holds one snapshot per ``server_id``; later snapshots replace
  earlier ones in place.
- ``error_message`` holds the last humanized failure, cleared when the next
  action starts.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import Iterable, List, Optional, Set
from urllib.parse import urlsplit, urlunsplit

from .clients.metadata import decode_icon
from .errors import LinkShelfError, humanize
from .model import EnrichedLink
from .service import LinkService

logger = logging.getLogger(__name__)


def _is_likely_valid_host(host: str) -> bool:
    h = host.lower()
    if h == "localhost":
        return True
    if ":" in h:  # IPv6 literal
        return True
    return len([part for part in h.split(".") if part]) >= 2


def normalize_url(raw: str) -> Optional[str]:
    """
    Return ``raw`` as an absolute http(s) URL, or ``None`` when it is not one.

    A missing scheme defaults to ``https``.
    """
    trimmed = raw.strip()
    if not trimmed:
        return None

    candidate = trimmed if "://" in trimmed else f"https://{trimmed}"
    try:
        parts = urlsplit(candidate)
        host = parts.hostname
    except ValueError:
        return None

    if parts.scheme.lower() not in ("http", "https"):
        return None
    if not host or not _is_likely_valid_host(host):
        return None

    return urlunsplit(parts)


class LinkShelf:
    """Display state plus user actions over a :class:`LinkService`."""

    def __init__(self, service: LinkService) -> None:
        self.service = service
        self.links: List[EnrichedLink] = []
        self.error_message: Optional[str] = None
        self.is_searching: bool = False
        self.search_result: Optional[EnrichedLink] = None
        self.last_search_attempted: bool = False
        self.is_saving_search_result: bool = False
        self._load_task: Optional[asyncio.Task] = None
        # server ids deleted by the user; late snapshots for them are dropped
        self._removed: Set[str] = set()

    # ---------- listing ---------------------------------------------- #

    def load_all(self) -> asyncio.Task:
        """Restart the enrichment stream and return the task consuming it."""
        if self._load_task is not None:
            self._load_task.cancel()
        self.error_message = None
        self._load_task = asyncio.create_task(self._consume())
        return self._load_task

    async def _consume(self) -> None:
        self.links.clear()
        self._removed.clear()
        try:
            async with aclosing(self.service.enrich_all()) as stream:
                async for item in stream:
                    self._upsert(item)
        except LinkShelfError as e:
            logger.error("Loading links failed: %s", e)
            self.error_message = humanize(e)

    def _index_of(self, server_id: str) -> Optional[int]:
        return next((i for i, link in enumerate(self.links) if link.server_id == server_id), None)

    def _upsert(self, item: EnrichedLink) -> None:
        # delete/save may reorder self.links mid-stream, so positions are looked up fresh
        if item.server_id in self._removed:
            return
        idx = self._index_of(item.server_id)
        if idx is not None:
            self.links[idx] = item
        else:
            self.links.append(item)

    async def close(self) -> None:
        if self._load_task is None:
            return
        self._load_task.cancel()
        try:
            await self._load_task
        except asyncio.CancelledError:  # pragma: no cover - normal cancellation
            pass
        self._load_task = None

    # ---------- search ----------------------------------------------- #

    async def try_search(self, raw_input: str) -> None:
        url = normalize_url(raw_input)
        if url is None:
            self.error_message = "Invalid URL"
            return
        await self.search_by_url(url)

    async def search_by_url(self, url: str) -> None:
        """Shorten ``url``, resolve it back and attach a favicon when one decodes."""
        self.error_message = None
        self.is_searching = True
        self.last_search_attempted = False
        try:
            record = await self.service.create(url)
            target = await self.service.resolve(record.server_id)
            result = EnrichedLink(record=record, url=target)

            data = await self.service.fetch_favicon(target, self.service.config.metadata.SEARCH_ICON_SIZE)
            icon = decode_icon(data) if data else None
            if icon is not None:
                result = result.with_icon(icon)

            self.search_result = result
        except LinkShelfError as e:
            logger.warning("Search for %s failed: %s", url, e)
            self.error_message = humanize(e)
            self.search_result = None
        finally:
            self.is_searching = False
            self.last_search_attempted = True

    def clear_search(self) -> None:
        self.search_result = None
        self.last_search_attempted = False
        self.is_searching = False

    async def save_search_result(self) -> None:
        result = self.search_result
        if result is None:
            return
        self.error_message = None
        self.is_saving_search_result = True
        try:
            await self.service.save(result.record)
            self._insert_or_promote_to_top(result)
            self.clear_search()
        except LinkShelfError as e:
            self.error_message = humanize(e)
        finally:
            self.is_saving_search_result = False

    def _insert_or_promote_to_top(self, item: EnrichedLink) -> None:
        self._removed.discard(item.server_id)
        idx = self._index_of(item.server_id)
        if idx is not None:
            del self.links[idx]
        self.links.insert(0, item)

    # ---------- delete ----------------------------------------------- #

    async def delete(self, server_id: str) -> None:
        """Remove ``server_id`` optimistically; restore the entry if the store refuses."""
        self.error_message = None

        idx = self._index_of(server_id)
        if idx is None:
            return

        removed = self.links.pop(idx)
        self._removed.add(server_id)

        try:
            await self.service.delete(server_id)
        except LinkShelfError as e:
            # the list may have grown or shrunk while the store was busy
            self._removed.discard(server_id)
            if self._index_of(server_id) is None:
                self.links.insert(min(idx, len(self.links)), removed)
            self.error_message = humanize(e)

    async def delete_at(self, offsets: Iterable[int]) -> None:
        for index in sorted(set(offsets), reverse=True):
            if 0 <= index < len(self.links):
                await self.delete(self.links[index].server_id)


__all__ = ["LinkShelf", "normalize_url"]
