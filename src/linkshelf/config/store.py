import os
from pathlib import Path

from .loader import as_bool, section

_DEFAULT_DB_PATH = Path("data") / "links.db"


class Store:
    def __init__(self, config: dict | None = None) -> None:
        cfg = section(config, "store")
        self.DB_PATH: str = str(cfg.get("db_path", os.getenv("LINKSHELF_DB_PATH", str(_DEFAULT_DB_PATH))))
        self.IN_MEMORY: bool = as_bool(cfg.get("in_memory", os.getenv("LINKSHELF_IN_MEMORY", "0")))
