"""
Shortening-service client
=========================

Contract of the remote API::

    POST {base}/api/alias        {"url": "<raw url>"}
         200/201 -> {"alias": "<server id>", "_links": {...}}
    GET  {base}/api/alias/{id}
         200     -> {"url": "<target url>"}

404 becomes :class:`AliasNotFound`; any other unexpected status becomes
:class:`HttpError`. Transport failures and timeouts become
:class:`NetworkError`. Nothing from aiohttp escapes this module.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

import aiohttp

from ..errors import (
    AliasNotFound,
    DecodingFailed,
    EncodingFailed,
    HttpError,
    InvalidResponse,
    InvalidURL,
    NetworkError,
)
from ..model import LinkRecord

logger = logging.getLogger(__name__)

CREATE_PATH = "/api/alias"
SERVER_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


def alias_path(server_id: str) -> str:
    return f"{CREATE_PATH}/{server_id}"


def _body_text(data: bytes) -> str | None:
    return data.decode("utf-8", errors="replace") if data else None


def _decode_json(data: bytes) -> Any:
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodingFailed(exc) from exc


class ShortenerClient:
    """Async client for the alias endpoints of the shortening service."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        timeout: float = 15,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _request(self, method: str, path: str, **kwargs) -> tuple[int, bytes]:
        url = self.base_url + path
        try:
            async with self.session.request(method, url, timeout=self.timeout, **kwargs) as resp:
                return resp.status, await resp.read()
        except aiohttp.InvalidURL as exc:
            raise InvalidURL(str(exc)) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(exc) from exc

    async def create(self, url: str) -> LinkRecord:
        """
        Shorten ``url`` and return a new, unsaved :class:`LinkRecord`.

        :param url: Raw URL to register with the service.
        :returns: Record with a fresh ``local_id`` and the returned alias.
        """
        try:
            payload = json.dumps({"url": url})
        except (TypeError, ValueError) as exc:
            raise EncodingFailed(exc) from exc

        logger.debug("Creating alias for %s", url)
        status, data = await self._request(
            "POST",
            CREATE_PATH,
            data=payload,
            headers={"Content-Type": "application/json"},
        )

        if status in (200, 201):
            body = _decode_json(data)
            alias = body.get("alias") if isinstance(body, dict) else None
            if not isinstance(alias, str):
                raise DecodingFailed(ValueError("missing 'alias' in create response"))
            logger.info("Created alias %s for %s", alias, url)
            return LinkRecord(server_id=alias)
        if status == 404:
            raise AliasNotFound("create endpoint not found")
        raise HttpError(status, _body_text(data))

    async def resolve(self, server_id: str) -> str:
        """
        Return the target URL behind ``server_id``.

        :raises InvalidURL: ``server_id`` contains characters outside
            ``[A-Za-z0-9_-]``; no request is made.
        :raises AliasNotFound: the service no longer knows the alias.
        """
        if not SERVER_ID_RE.fullmatch(server_id):
            raise InvalidURL(f"invalid server id: {server_id!r}")

        status, data = await self._request("GET", alias_path(server_id))

        if status == 200:
            if not data:
                raise InvalidResponse(f"empty body resolving {server_id}")
            body = _decode_json(data)
            url = body.get("url") if isinstance(body, dict) else None
            if not isinstance(url, str):
                raise DecodingFailed(ValueError("missing 'url' in alias response"))
            return url
        if status == 404:
            raise AliasNotFound(server_id)
        raise HttpError(status, _body_text(data))


__all__ = ["ShortenerClient", "SERVER_ID_RE", "CREATE_PATH", "alias_path"]
