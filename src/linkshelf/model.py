"""Dataclass models for stored and displayed links.

Snapshot schema (output of :meth:`EnrichedLink.to_dict`):

```
{"stage": "partial", "local_id": "<uuid>", "server_id": "A1B2C3",
 "url": "https://example.com"}
{"stage": "final", "local_id": "<uuid>", "server_id": "A1B2C3",
 "url": "https://example.com", "title": "Example",
 "icon": {"kind": "image", "format": "PNG", "width": 16, "height": 16}}
{"stage": "final", ..., "icon": {"kind": "placeholder", "name": "globe"}}
```

Only :class:`LinkRecord` is persisted. ``EnrichedLink`` snapshots are built
fresh by every enrichment pass and keep only non-``None`` attributes when
serialized.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Literal, Optional, Union


def _drop_nones(d: Dict[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy of ``d`` without keys mapped to ``None``."""
    return {k: v for k, v in d.items() if v is not None}


def new_local_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True, frozen=True)
class LinkRecord:
    """Local pointer to a remote alias. ``server_id`` is unique per store."""

    server_id: str
    local_id: str = field(default_factory=new_local_id)


@dataclass(slots=True, frozen=True)
class PlaceholderIcon:
    """Named generic icon used when no favicon could be decoded."""

    name: str = "globe"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "placeholder", "name": self.name}


@dataclass(slots=True, frozen=True)
class ImageIcon:
    """Favicon bytes that decoded as an image."""

    data: bytes = field(repr=False)
    format: Optional[str] = None
    width: int = 0
    height: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return _drop_nones(
            {
                "kind": "image",
                "format": self.format,
                "width": self.width,
                "height": self.height,
            }
        )


IconState = Union[PlaceholderIcon, ImageIcon]
Stage = Literal["partial", "final"]


@dataclass(slots=True, frozen=True)
class EnrichedLink:
    """One display snapshot of a stored link.

    A ``partial`` snapshot carries only the resolved URL. A ``final`` snapshot
    supersedes it with a title (fetched, or the URL itself) and an icon.
    """

    record: LinkRecord
    url: str
    title: Optional[str] = None
    icon: Optional[IconState] = None
    stage: Stage = "partial"

    @property
    def server_id(self) -> str:
        return self.record.server_id

    @property
    def display_title(self) -> str:
        return self.title or self.url

    @property
    def is_final(self) -> bool:
        return self.stage == "final"

    def enriched(self, *, title: str, icon: IconState) -> EnrichedLink:
        """Return the final snapshot for this link."""
        return replace(self, title=title, icon=icon, stage="final")

    def with_icon(self, icon: IconState) -> EnrichedLink:
        return replace(self, icon=icon)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_nones(
            {
                "stage": self.stage,
                "local_id": self.record.local_id,
                "server_id": self.record.server_id,
                "url": self.url,
                "title": self.title,
                "icon": self.icon.to_dict() if self.icon is not None else None,
            }
        )

    def __str__(self) -> str:  # pragma: no cover - convenience only
        import json
        return json.dumps(self.to_dict(), ensure_ascii=False)


__all__ = [
    "LinkRecord",
    "PlaceholderIcon",
    "ImageIcon",
    "IconState",
    "EnrichedLink",
    "Stage",
    "new_local_id",
]
