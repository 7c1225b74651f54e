from __future__ import annotations

import logging

from trip_ledger_bot.log_setup import configure_logging


def test_configure_logging_quiets_noisy_loggers():
    configure_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("aiogram.event").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_configure_logging_keeps_sql_echo():
    logging.getLogger("sqlalchemy.engine").setLevel(logging.NOTSET)
    configure_logging("INFO", sql_echo=True)
    assert logging.getLogger("sqlalchemy.engine").level == logging.NOTSET
