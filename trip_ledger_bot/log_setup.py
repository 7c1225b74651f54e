from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", *, sql_echo: bool = False) -> None:
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        force=True,
    )
    # aiogram logs every handled update at INFO.
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)
    if not sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
