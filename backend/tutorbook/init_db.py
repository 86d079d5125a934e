# backend/tutorbook/init_db.py
"""Create all tables directly (local development; deployments use alembic)."""

import logging

from . import models  # noqa: F401
from .database import Base, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created on %s", engine.url.render_as_string(hide_password=True))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
