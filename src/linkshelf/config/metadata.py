import os

from .loader import section


class Metadata:
    def __init__(self, config: dict | None = None) -> None:
        cfg = section(config, "metadata")
        self.FAVICON_ENDPOINT: str = str(
            cfg.get("favicon_endpoint", os.getenv("LINKSHELF_FAVICON_ENDPOINT", "https://t0.gstatic.com/faviconV2"))
        )
        self.ICON_SIZE: int = int(cfg.get("icon_size", os.getenv("LINKSHELF_ICON_SIZE", "128")))
        self.SEARCH_ICON_SIZE: int = int(cfg.get("search_icon_size", os.getenv("LINKSHELF_SEARCH_ICON_SIZE", "64")))
        self.USER_AGENT: str = str(
            cfg.get("user_agent", os.getenv("LINKSHELF_USER_AGENT", "Mozilla/5.0 (compatible; GPTBot/1.0)"))
        )
        self.FETCH_TIMEOUT: float = float(cfg.get("fetch_timeout", os.getenv("LINKSHELF_FETCH_TIMEOUT", "15")))
        self.FAVICON_CACHE_SIZE: int = int(
            cfg.get("favicon_cache_size", os.getenv("LINKSHELF_FAVICON_CACHE_SIZE", "256"))
        )
        if self.ICON_SIZE <= 0 or self.SEARCH_ICON_SIZE <= 0:
            raise ValueError("icon sizes must be positive")
        if self.FETCH_TIMEOUT <= 0:
            raise ValueError("fetch_timeout must be positive")
        if self.FAVICON_CACHE_SIZE <= 0:
            raise ValueError("favicon_cache_size must be positive")
