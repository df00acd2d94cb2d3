"""
Tweet Delivery Engine — scheduled and immediate publishing to Twitter / X.

Packages:
    • delivery_engine.twitter    — OAuth 1.0a signing + API client
    • delivery_engine.scheduler  — Supabase queue storage, pass runner, post-now path
"""

import logging

LOG_FORMAT = "%(asctime)s [Publisher] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def setup_logging(level=logging.INFO):
    """Attach a single stream handler to the package logger (idempotent)."""
    logger = logging.getLogger("delivery_engine")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(handler)
    return logger
