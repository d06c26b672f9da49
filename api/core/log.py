"""
Process-wide logging setup.
"""

from __future__ import annotations

import logging

from . import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    level_name = (level or settings.log_level()).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    # asyncpg is chatty at DEBUG; keep it at WARNING unless asked otherwise.
    if level_name != "DEBUG":
        logging.getLogger("asyncpg").setLevel(logging.WARNING)
