"""Local link store (SQLite)."""

from .db import connect, migrate
from .repositories import LinkStore

__all__ = ["LinkStore", "connect", "migrate"]
