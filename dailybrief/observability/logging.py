"""
Logger factory.

Every module calls get_logger(__name__). The first call attaches one stream
handler to the root logger; the level comes from DAILYBRIEF_LOG_LEVEL.
Chatty client libraries (HTTP pool, Vertex SDK) are held at WARNING unless
the service itself runs at DEBUG.
"""

from __future__ import annotations

import logging
import os
from typing import Final

_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
_QUIET_LIBRARIES: Final[tuple[str, ...]] = ("urllib3", "google", "httpx", "psycopg.pool")

_configured = False


def _resolve_level(level: str | None = None) -> int:
    level_name = (level or os.getenv("DAILYBRIEF_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """
    Attach the stream handler (once) and apply the level.

    Entry points call this after load_dotenv() so a level set in .env wins.
    """
    global _configured

    resolved = _resolve_level(level)
    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)
        _configured = True
    root.setLevel(resolved)

    library_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; records propagate to the root handler."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
