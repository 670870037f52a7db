"""Application configuration"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .loader import load_raw_config
from .service import Service
from .metadata import Metadata
from .store import Store
from .pipeline import Pipeline

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=os.getenv("LINKSHELF_LOG_LEVEL", "INFO").upper(),
)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


class Config:
    """Every config section built from one raw config dict."""

    def __init__(self, raw: dict | None = None) -> None:
        self.service = Service(raw)
        self.metadata = Metadata(raw)
        self.store = Store(raw)
        self.pipeline = Pipeline(raw)

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "Config":
        return cls(load_raw_config(path))


config = Config(load_raw_config())

service = config.service
metadata = config.metadata
store = config.store
pipeline = config.pipeline


__all__ = ["service", "metadata", "store", "pipeline", "config", "Config"]
