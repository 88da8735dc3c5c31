"""Startup script for production deployment.

On a fresh database (no tables), creates all tables from models and stamps
Alembic to head. On an existing database, runs Alembic migrations normally.
"""

import logging
import subprocess
import sys

from sqlalchemy import inspect

from study_calendar.core.logging import configure_logging
from study_calendar.db.session import engine
from study_calendar.db.base import Base
from study_calendar.models import Alert, StudyPlan, Task, Topic, User  # noqa: F401

logger = logging.getLogger("study_calendar.start")


def main():
    configure_logging()
    inspector = inspect(engine)
    tables = inspector.get_table_names()

    if "tasks" not in tables:
        logger.info("Fresh database detected, creating all tables")
        Base.metadata.create_all(bind=engine)
        subprocess.check_call([sys.executable, "-m", "alembic", "stamp", "head"])
        logger.info("Tables created and Alembic stamped to head")
    else:
        logger.info("Existing database, running migrations")
        subprocess.check_call([sys.executable, "-m", "alembic", "upgrade", "head"])
        logger.info("Migrations complete")


if __name__ == "__main__":
    main()
