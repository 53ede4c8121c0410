"""
utils/logger.py — Project-wide logging configuration
=====================================================
Provides a single `get_logger(name)` factory so every pipeline stage gets a
consistently-formatted logger, plus `set_level()` so the CLI demo can turn
the per-sample chatter up (`--verbose`) in one call.

Fallback substitutions (a default value used in place of a computed one)
are logged at WARNING; routine "not enough data yet" skips at DEBUG.
"""

import logging
import sys

# Colour codes (ANSI, works on most terminals)
_COLOURS = {
    logging.DEBUG:    "\033[36m",   # cyan
    logging.INFO:     "\033[32m",   # green
    logging.WARNING:  "\033[33m",   # yellow
    logging.ERROR:    "\033[31m",   # red
    logging.CRITICAL: "\033[35m",   # magenta
}
_RESET = "\033[0m"


class _ColourFormatter(logging.Formatter):
    """Colour the level tag without mutating the shared LogRecord."""

    def format(self, record: logging.LogRecord) -> str:
        colour = _COLOURS.get(record.levelno, _RESET)
        original = record.levelname
        record.levelname = f"{colour}{original:<8}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


_BASE_FMT = "%(asctime)s  %(levelname)s  %(name)-22s  %(message)s"
_DATE_FMT = "%H:%M:%S"

# Module-level registry to avoid adding duplicate handlers
_loggers: dict[str, logging.Logger] = {}
_default_level: int | str = logging.INFO


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Return (or create) a named logger.

    Parameters
    ----------
    name  : str          Component name shown in log lines, e.g. "ppg.peaks".
    level : int | None   Minimum severity; defaults to the project level
                         (INFO unless changed with `set_level`).
    """
    if name in _loggers:
        return _loggers[name]

    level = _default_level if level is None else level

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False          # Avoid duplicate messages from root

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)   # The logger level does the filtering
    handler.setFormatter(_ColourFormatter(fmt=_BASE_FMT, datefmt=_DATE_FMT))
    logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def set_level(level: int | str) -> None:
    """Change the level of every project logger, existing and future."""
    global _default_level
    _default_level = level
    for logger in _loggers.values():
        logger.setLevel(level)
