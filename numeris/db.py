import logging
import os

from alembic.config import Config
from sqlalchemy import Connection, create_engine
from sqlalchemy.engine import Engine

from alembic import command
from numeris.settings import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

_engine: Engine | None = None
_connection: Connection | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(
            settings.db_url,
            pool_pre_ping=True,
            pool_recycle=1800,
            pool_timeout=settings.db_pool_timeout,
        )
        logger.info("Database engine created for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_connection() -> Connection:
    """Shared connection for the CLI process.

    Web requests never use it; DBConnectionMiddleware opens one per request.
    """
    global _connection
    if _connection is None:
        _connection = get_engine().connect()
        logger.debug("CLI connection opened")
    return _connection


def close_connection() -> None:
    global _connection
    if _connection is not None:
        _connection.close()
        _connection = None
        logger.debug("CLI connection closed")


def _get_alembic_config() -> Config:
    ini_path = os.path.join(PROJECT_ROOT, "alembic.ini")
    if not os.path.exists(ini_path):
        ini_path = os.path.join(os.getcwd(), "alembic.ini")
    cfg = Config(ini_path)
    # Resolve migrations relative to the package, not the working directory.
    cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "alembic"))
    return cfg


def initialize_db() -> None:
    """Upgrade the invoice schema to the latest Alembic revision."""
    logger.info("Applying invoice schema migrations")
    command.upgrade(_get_alembic_config(), "head")
    logger.info("Invoice schema is up to date")
