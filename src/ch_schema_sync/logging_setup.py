"""Logging configuration.

Every module logs through ``logging.getLogger(__name__)``.  Context such as
host, database, table and column is passed explicitly on each call:

    logger.error(
        "Column type mismatch",
        extra=log_fields(host="ch1", database="db", table="t", column="c"),
    )

``configure_logging()`` installs a ``rich`` handler on the package logger
whose formatter appends the fields as ``key=value`` pairs.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "ch_schema_sync"

# Rendered first, in this order; any other field follows alphabetically
_FIELD_ORDER = ("host", "database", "table", "view", "column", "need_type", "has_type", "type")


def log_fields(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` mapping for a structured log call.

    ``None`` values are dropped so callers can pass optional context as-is.
    """
    return {"fields": {k: v for k, v in fields.items() if v is not None}}


def format_fields(fields: dict[str, Any]) -> str:
    """Render context fields as ``key=value`` pairs in a stable order."""
    ordered = [k for k in _FIELD_ORDER if k in fields]
    ordered += sorted(k for k in fields if k not in _FIELD_ORDER)
    return " ".join(f"{k}={fields[k]}" for k in ordered)


class FieldsFormatter(logging.Formatter):
    """Formatter that appends structured context fields to the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, "fields", None)
        if fields:
            message = f"{message}  {format_fields(fields)}"
        return message


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Install the rich handler on the package logger.

    Args:
        verbose: Log at DEBUG (includes every issued statement) instead of INFO.
        console: Optional rich console; defaults to stderr.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Reconfiguring replaces the previous handler instead of stacking
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(FieldsFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
