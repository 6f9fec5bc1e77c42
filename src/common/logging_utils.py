"""Logging helpers shared by the CLI and the resolution engine."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_FIELDS = ("event", "component", "action", "target", "outcome", "count")


class _ContextFormatter(logging.Formatter):
    """Append structured context (from extra_context) to debug records."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        pairs = [
            f"{name}={getattr(record, name)}"
            for name in _CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if pairs and record.levelno <= logging.DEBUG:
            return f"{base} [{' '.join(pairs)}]"
        return base


def configure_logging(level: str = "INFO", logfile: Optional[str] = None, quiet: bool = False) -> None:
    """Configure the root logger once for CLI usage.

    Args:
        level: Name of the logging level (DEBUG, INFO, ...).
        logfile: Optional file to write log output to instead of stderr.
        quiet: Suppress console output entirely.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if logfile:
        handler: logging.Handler = logging.FileHandler(logfile, encoding="utf-8")
    elif quiet:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(_ContextFormatter(Constants.LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by logger."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an `extra=` mapping for structured debug records, dropping Nones."""
    return {k: v for k, v in fields.items() if k in _CONTEXT_FIELDS and v is not None}
