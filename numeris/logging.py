"""Process-wide logging for the numeris CLI and HTTP API."""

import logging
import sys

from numeris.settings import settings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Invoice routes log their own request lines.
QUIET_LOGGERS = ("uvicorn.access",)


def resolve_level(name: str) -> int:
    level = logging.getLevelNamesMapping().get(name.strip().upper())
    if level is None:
        raise ValueError(f"Unknown log level {name!r}")
    return level


def _formatter() -> logging.Formatter:
    if settings.log_json:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(fmt=JSON_FIELDS, rename_fields={"asctime": "timestamp", "levelname": "level"})
    return logging.Formatter(TEXT_FORMAT)


def configure_logging() -> None:
    """Send every record to a single stderr handler on the root logger.

    SQL statements from ``sqlalchemy.engine`` are shown only when the level
    is DEBUG. Raises ``ValueError`` for an unknown ``log_level``.
    """
    level = resolve_level(settings.log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if level <= logging.DEBUG else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Alembic's fileConfig replaces root handlers during initialize_db().
reconfigure = configure_logging
