"""
Service wiring
==============

:class:`LinkService` owns one ``aiohttp.ClientSession`` shared by the
shortener and metadata clients, the local :class:`LinkStore`, and the
:class:`EnrichmentPipeline` built over them. Use it as an async context
manager so the session and database are closed on exit::

    async with LinkService.from_config() as service:
        async for snapshot in service.enrich_all():
            ...
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, List, Optional

import aiohttp

from .clients.metadata import MetadataClient
from .clients.shortener import ShortenerClient
from .config import Config
from .config import config as default_config
from .model import EnrichedLink, LinkRecord
from .pipeline import EnrichmentPipeline
from .store import LinkStore

logger = logging.getLogger(__name__)


class LinkService:
    """Facade over the store, the remote clients and the enrichment pipeline."""

    def __init__(
        self,
        store: LinkStore,
        session: aiohttp.ClientSession,
        cfg: Config | None = None,
        *,
        owns_session: bool = True,
    ) -> None:
        cfg = cfg or default_config
        self.config = cfg
        self.store = store
        self.session = session
        # a session handed in by the caller stays open on close()
        self._owns_session = owns_session
        self.shortener = ShortenerClient(
            session,
            cfg.service.BASE_URL,
            timeout=cfg.service.REQUEST_TIMEOUT,
        )
        self.metadata = MetadataClient(
            session,
            favicon_endpoint=cfg.metadata.FAVICON_ENDPOINT,
            user_agent=cfg.metadata.USER_AGENT,
            timeout=cfg.metadata.FETCH_TIMEOUT,
            cache_size=cfg.metadata.FAVICON_CACHE_SIZE,
        )
        self.pipeline = EnrichmentPipeline(
            store,
            self.shortener,
            self.metadata,
            icon_size=cfg.metadata.ICON_SIZE,
            placeholder_icon=cfg.pipeline.PLACEHOLDER_ICON,
            max_concurrency=cfg.pipeline.MAX_CONCURRENCY,
        )

    @classmethod
    def from_config(
        cls,
        cfg: Config | None = None,
        *,
        in_memory: Optional[bool] = None,
        session: aiohttp.ClientSession | None = None,
    ) -> LinkService:
        """
        Build a service from ``cfg`` (the loaded config.toml by default).

        :param in_memory: Overrides ``[linkshelf.store] in_memory``.
        :param session: Reuse an existing session instead of opening one.
            The caller keeps ownership; :meth:`close` leaves it open.
        """
        cfg = cfg or default_config
        memory = cfg.store.IN_MEMORY if in_memory is None else in_memory
        store = LinkStore.open(None if memory else cfg.store.DB_PATH)
        if session is None:
            return cls(store, aiohttp.ClientSession(), cfg)
        return cls(store, session, cfg, owns_session=False)

    async def close(self) -> None:
        if self._owns_session:
            await self.session.close()
        self.store.close()

    async def __aenter__(self) -> LinkService:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ---------- store ------------------------------------------------ #

    async def save(self, record: LinkRecord) -> None:
        await self.store.save(record)

    async def load_all(self) -> List[LinkRecord]:
        return await self.store.load_all()

    async def delete(self, server_id: str) -> None:
        await self.store.delete(server_id)

    # ---------- remote ----------------------------------------------- #

    async def create(self, url: str) -> LinkRecord:
        return await self.shortener.create(url)

    async def resolve(self, server_id: str) -> str:
        return await self.shortener.resolve(server_id)

    async def fetch_favicon(self, url: str, size: int | None = None) -> bytes | None:
        return await self.metadata.fetch_favicon(url, size or self.config.metadata.ICON_SIZE)

    async def fetch_page_title(self, url: str) -> str | None:
        return await self.metadata.fetch_page_title(url)

    # ---------- pipeline --------------------------------------------- #

    def enrich_all(self) -> AsyncIterator[EnrichedLink]:
        return self.pipeline.enrich_all()


__all__ = ["LinkService"]
