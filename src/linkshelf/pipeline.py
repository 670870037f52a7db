"""
Enrichment Pipeline
===================
1. Load every :class:`LinkRecord` from the store.
   A failed load ends the stream with :class:`StoredLinksError`; nothing is emitted.
2. For each record, one task (all running concurrently)
   a. Resolve ``server_id`` with the shortening service.
      - ``AliasNotFound``: delete the local record, emit nothing.
      - any other resolver error: emit nothing, keep the record.
   b. Emit a ``partial`` snapshot (URL only).
   c. Fetch page title and favicon concurrently (both soft).
   d. Emit a ``final`` snapshot: title or the URL, decoded favicon or a
      named placeholder.
   Steps c-d are skipped when the resolved URL is not a well-formed URL.
3. The stream ends once every task has finished.

NOTE: Per-record failures never end the stream. Snapshots from different
records interleave in completion order; within one record the partial always
comes first.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable, List, Optional
from urllib.parse import urlparse

from .clients.metadata import MetadataClient, decode_icon
from .clients.shortener import ShortenerClient
from .errors import AliasNotFound, ResolverError, StoredLinksError, StoreError
from .model import EnrichedLink, LinkRecord, PlaceholderIcon
from .store import LinkStore

logger = logging.getLogger(__name__)

_DONE = object()


def is_well_formed(url: str) -> bool:
    """Return True when ``url`` has both a scheme and a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


class EnrichmentPipeline:
    """Turns stored records into a stream of progressively enriched snapshots."""

    def __init__(
        self,
        store: LinkStore,
        resolver: ShortenerClient,
        metadata: MetadataClient,
        *,
        icon_size: int = 128,
        placeholder_icon: str = "globe",
        max_concurrency: int = 0,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.metadata = metadata
        self.icon_size = icon_size
        self.placeholder_icon = placeholder_icon
        self.max_concurrency = max_concurrency

    async def enrich_all(self) -> AsyncIterator[EnrichedLink]:
        """
        Yield :class:`EnrichedLink` snapshots for every stored record.

        Closing the generator (or cancelling the task iterating it) cancels
        every outstanding per-record task before returning.

        :raises StoredLinksError: the initial store load failed.
        """
        try:
            records = await self.store.load_all()
        except StoreError as exc:
            logger.error("Loading stored links failed: %s", exc)
            raise StoredLinksError(exc) from exc

        if not records:
            return

        logger.info("Enriching %d stored links", len(records))

        queue: asyncio.Queue = asyncio.Queue()
        sem = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def _process_bounded(record: LinkRecord) -> None:
            if sem is None:
                await self._process(record, queue.put_nowait)
                return
            async with sem:
                await self._process(record, queue.put_nowait)

        tasks: List[asyncio.Task] = []
        for record in records:
            task = asyncio.create_task(_process_bounded(record))
            # runs after every put from this task, so it always trails them
            task.add_done_callback(lambda _t: queue.put_nowait(_DONE))
            tasks.append(task)

        remaining = len(tasks)
        try:
            while remaining:
                item = await queue.get()
                if item is _DONE:
                    remaining -= 1
                    continue
                yield item
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("Enrichment finished for %d stored links", len(records))

    async def _process(self, record: LinkRecord, emit: Callable[[EnrichedLink], None]) -> None:
        """Run :meth:`enrich_one` for one record, logging unexpected failures."""
        try:
            await self.enrich_one(record, emit)
        except Exception:
            logger.exception("Enrichment failed for %s", record.server_id)

    async def enrich_one(self, record: LinkRecord, emit: Callable[[EnrichedLink], None]) -> None:
        """
        Resolve and enrich a single record, passing each snapshot to ``emit``.

        :param record: Stored record to resolve.
        :param emit: Receives the partial snapshot, then the final one.
        """
        try:
            url = await self.resolver.resolve(record.server_id)
        except AliasNotFound:
            logger.info("Alias %s no longer exists; removing local link", record.server_id)
            await self._forget(record)
            return
        except ResolverError as e:
            logger.warning("Resolving %s failed: %s", record.server_id, e)
            return

        partial = EnrichedLink(record=record, url=url)
        emit(partial)

        if not is_well_formed(url):
            logger.debug("Skipping metadata for %s: malformed URL %r", record.server_id, url)
            return

        title, favicon = await asyncio.gather(
            self.metadata.fetch_page_title(url),
            self.metadata.fetch_favicon(url, self.icon_size),
        )

        icon = decode_icon(favicon) if favicon else None
        emit(
            partial.enriched(
                title=title or url,
                icon=icon or PlaceholderIcon(self.placeholder_icon),
            )
        )

    async def _forget(self, record: LinkRecord) -> None:
        try:
            await self.store.delete(record.server_id)
        except StoreError as e:
            logger.warning("Could not remove stale link %s: %s", record.server_id, e)


async def collect(stream: AsyncIterator[EnrichedLink], limit: Optional[int] = None) -> List[EnrichedLink]:
    """Drain ``stream`` into a list, stopping early after ``limit`` items."""
    items: List[EnrichedLink] = []
    try:
        async for item in stream:
            items.append(item)
            if limit is not None and len(items) >= limit:
                break
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()
    return items


__all__ = ["EnrichmentPipeline", "collect", "is_well_formed"]
