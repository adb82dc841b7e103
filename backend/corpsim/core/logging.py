"""
logging.py — Engine-Wide Logging Configuration

Purpose:
- Configure a standardized logging format for the whole engine.
- Keep job summaries, per-entity failures and trigger decisions in one format.

Format: timestamp | level | module | message

Levels used by the engine:
- INFO: one summary line per job run, trigger dispatch/skip, admin grants.
- DEBUG: cooldown skips, lost compare-and-set races, per-corporation valuations.
- WARNING / exception: rejected triggers, per-entity failures (with traceback).
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers that drown out job summaries at DEBUG
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once, typically from `corpsim.main` at app startup.

    Parameters:
        level (str): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
    """
    resolved = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    logging.getLogger(__name__).info("Logging initialized with level %s", logging.getLevelName(resolved))


def get_logger(name: str) -> logging.Logger:
    """
    Return a module logger:

        from corpsim.core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)
