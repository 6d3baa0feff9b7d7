"""Alembic migration helpers.

The schema is owned by the revisions under ``alembic/versions``; these
helpers apply them from application code (startup, tests) without going
through the alembic CLI.
"""

import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy.ext.asyncio import AsyncEngine

from shortlink.core.config import settings

logger = logging.getLogger(__name__)

# Project paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ALEMBIC_DIR = PROJECT_ROOT / "alembic"
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"


def get_alembic_config(database_url: Optional[str] = None) -> Config:
    """Build the Alembic config pointing at the project's migration scripts.

    Args:
        database_url: Database to migrate, the configured one by default
    """
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    alembic_cfg.set_main_option(
        "sqlalchemy.url",
        # configparser interpolation
        (database_url or settings.SQLALCHEMY_DATABASE_URI).replace("%", "%%"),
    )
    # Logging is already routed through loguru
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations(database_url: Optional[str] = None, revision: str = "head") -> None:
    """Upgrade the database schema to ``revision``.

    The migration environment drives its own event loop, so this must be
    called from a thread without a running loop (``asyncio.to_thread`` from
    async code).

    Raises:
        Exception: Whatever Alembic raised, after logging it
    """
    try:
        command.upgrade(get_alembic_config(database_url), revision)
        logger.info(f"Database schema upgraded to {revision}")
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}")
        raise


def downgrade(target: str = "-1", database_url: Optional[str] = None) -> None:
    """Downgrade the database schema, one revision back by default.

    Destructive; not called by the application itself.
    """
    try:
        command.downgrade(get_alembic_config(database_url), target)
        logger.info(f"Database schema downgraded to {target}")
    except Exception as e:
        logger.error(f"Failed to downgrade: {e}")
        raise


async def get_current_revision(db_engine: AsyncEngine) -> Optional[str]:
    """Return the revision stamped in the database, or None if unmigrated."""
    async with db_engine.connect() as conn:
        return await conn.run_sync(
            lambda sync_conn: MigrationContext.configure(sync_conn).get_current_revision()
        )
