import os

from .loader import section


class Pipeline:
    def __init__(self, config: dict | None = None) -> None:
        cfg = section(config, "pipeline")
        # 0 keeps one task per stored record with no cap
        self.MAX_CONCURRENCY: int = int(cfg.get("max_concurrency", os.getenv("LINKSHELF_MAX_CONCURRENCY", "0")))
        self.PLACEHOLDER_ICON: str = str(cfg.get("placeholder_icon", os.getenv("LINKSHELF_PLACEHOLDER_ICON", "globe")))
        if self.MAX_CONCURRENCY < 0:
            raise ValueError("max_concurrency must be >= 0")
