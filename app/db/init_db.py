"""
Create all tables directly from the models.

Used for local development and SQLite; production schemas go through
Alembic (see app.db.migrate).
"""
import logging

from app.db.session import engine
from app.db.base import Base
import app.db.models  # noqa: F401  (registers every table)

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
