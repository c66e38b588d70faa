"""Database initialization module.

Creates the ORM tables on app startup when ``AUTO_CREATE_SCHEMA`` is enabled.
Production deployments run ``alembic upgrade head`` instead and switch the flag off.
"""

import logging

from sqlalchemy import inspect

from campus_queue.models import Base

from .db import get_engine

logger = logging.getLogger(__name__)


def init_database_schema() -> None:
    """Create missing tables. Existing tables are left untouched."""

    engine = get_engine()
    try:
        existing = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine)
        created = sorted(set(Base.metadata.tables) - existing)
        if created:
            logger.info("Database schema initialized, created tables: %s", ", ".join(created))
        else:
            logger.info("Database schema already up to date")
    except Exception as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
