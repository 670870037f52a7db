import os

from .loader import section


class Service:
    def __init__(self, config: dict | None = None) -> None:
        cfg = section(config, "service")
        self.BASE_URL: str = str(
            cfg.get("base_url", os.getenv("LINKSHELF_BASE_URL", "https://url-shortener-server.onrender.com"))
        ).rstrip("/")
        self.REQUEST_TIMEOUT: float = float(cfg.get("request_timeout", os.getenv("LINKSHELF_REQUEST_TIMEOUT", "15")))
        if self.REQUEST_TIMEOUT <= 0:
            raise ValueError("request_timeout must be positive")
