"""
Error taxonomy
==============

Three families, all rooted at :class:`LinkShelfError`:

- :class:`StoreError` - local record store failures.
- :class:`ResolverError` - shortening-service client failures.
- :class:`PipelineError` - enrichment stream failures (only the initial store load).

:func:`humanize` renders any of them as the one-line message shown to users.
"""

from __future__ import annotations

from typing import Optional


class LinkShelfError(Exception):
    """Base class for every error raised by linkshelf."""


class _CausedError:
    """Mixin for variants that wrap a lower-level exception."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.cause = cause


# ------------------------------------------------------------------ #
# Store
# ------------------------------------------------------------------ #


class StoreError(LinkShelfError):
    pass


class DuplicateServerID(StoreError):
    def __init__(self, server_id: str) -> None:
        super().__init__(f"server id already stored: {server_id}")
        self.server_id = server_id


class RecordNotFound(StoreError):
    def __init__(self, server_id: str) -> None:
        super().__init__(f"no stored link for server id: {server_id}")
        self.server_id = server_id


class PersistenceFailed(_CausedError, StoreError):
    pass


# ------------------------------------------------------------------ #
# Resolver
# ------------------------------------------------------------------ #


class ResolverError(LinkShelfError):
    pass


class InvalidURL(ResolverError):
    pass


class InvalidResponse(ResolverError):
    pass


class AliasNotFound(ResolverError):
    """The shortening service reports the alias (or resource) does not exist."""


class HttpError(ResolverError):
    def __init__(self, status: int, body: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status}")
        self.status = status
        self.body = body


class NetworkError(_CausedError, ResolverError):
    pass


class DecodingFailed(_CausedError, ResolverError):
    pass


class EncodingFailed(_CausedError, ResolverError):
    pass


# ------------------------------------------------------------------ #
# Pipeline
# ------------------------------------------------------------------ #


class PipelineError(LinkShelfError):
    pass


class StoredLinksError(PipelineError):
    """Loading the stored records failed, so the stream ended before any item."""

    def __init__(self, cause: StoreError) -> None:
        super().__init__(str(cause))
        self.cause = cause


# ------------------------------------------------------------------ #
# User-facing messages
# ------------------------------------------------------------------ #


def _humanize_store(error: StoreError) -> str:
    if isinstance(error, DuplicateServerID):
        return "Duplicate link"
    if isinstance(error, RecordNotFound):
        return "Local item not found"
    if isinstance(error, PersistenceFailed):
        return f"Persistence failed: {error.cause}"
    return str(error) or type(error).__name__


def _humanize_resolver(error: ResolverError) -> str:
    if isinstance(error, InvalidURL):
        return "Invalid URL"
    if isinstance(error, InvalidResponse):
        return "Invalid response"
    if isinstance(error, AliasNotFound):
        return "Not found"
    if isinstance(error, HttpError):
        return f"HTTP error: {error.status}"
    if isinstance(error, NetworkError):
        return f"Network error: {error.cause}"
    if isinstance(error, DecodingFailed):
        return f"Decoding failed: {error.cause}"
    if isinstance(error, EncodingFailed):
        return f"Encoding failed: {error.cause}"
    return str(error) or type(error).__name__


def humanize(error: BaseException) -> str:
    """Return the display string for ``error``."""
    if isinstance(error, StoredLinksError):
        return f"Storage error: {_humanize_store(error.cause)}"
    if isinstance(error, StoreError):
        return _humanize_store(error)
    if isinstance(error, ResolverError):
        return _humanize_resolver(error)
    return str(error) or type(error).__name__


__all__ = [
    "LinkShelfError",
    "StoreError",
    "DuplicateServerID",
    "RecordNotFound",
    "PersistenceFailed",
    "ResolverError",
    "InvalidURL",
    "InvalidResponse",
    "AliasNotFound",
    "HttpError",
    "NetworkError",
    "DecodingFailed",
    "EncodingFailed",
    "PipelineError",
    "StoredLinksError",
    "humanize",
]
