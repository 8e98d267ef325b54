"""Shared logging format and configuration for video publish services."""

import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def _level_from_env() -> int:
    name = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None) -> None:
    """Configure the root logger for this process. Call once at application startup.

    When level is None, LOG_LEVEL (e.g. DEBUG) is read from the environment.
    """
    logging.basicConfig(
        level=_level_from_env() if level is None else level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    # botocore logs every request at DEBUG; keep it quiet unless asked for
    logging.getLogger("botocore").setLevel(logging.WARNING)
