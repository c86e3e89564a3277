"""
Settings and logging setup.

Every setting is read from the environment; defaults suit a controller
running on the same host.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

LOGGER_NAME = "trafficwatch"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    controller_url: str = "http://127.0.0.1:8080"
    history_file: str = "data/traffic_history.json"
    history_key: str = "traffic_history"
    request_timeout: Optional[float] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cors_origins: List[str] = ["*"]

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = os.getenv("REQUEST_TIMEOUT", "").strip()
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            controller_url=os.getenv("CONTROLLER_URL", "http://127.0.0.1:8080"),
            history_file=os.getenv("HISTORY_FILE", "data/traffic_history.json"),
            history_key=os.getenv("HISTORY_KEY", "traffic_history"),
            request_timeout=float(timeout) if timeout else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def init_logging(settings: Settings) -> logging.Logger:
    """Configure the ``trafficwatch`` logger: console + optional rotating file.

    Module loggers are its children (``trafficwatch.<module>``). Handlers are
    only attached on the first call; later calls just update the level.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False  # avoid duplicate logs if root has handlers

    if logger.handlers:
        return logger

    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(ch)

    if settings.log_file:
        log_file = Path(settings.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(fh)

    return logger
