import logging
import sys

from study_calendar.core.logging import configure_logging
from study_calendar.db.base import Base
from study_calendar.db.seed import seed_demo_data
from study_calendar.db.session import engine, session_scope
from study_calendar.models import Alert, StudyPlan, Task, Topic, User  # noqa: F401

logger = logging.getLogger("study_calendar.init_db")


def init_db(with_demo_data: bool = False) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    if with_demo_data:
        with session_scope() as db:
            user = seed_demo_data(db)
            logger.info("Demo data ready for user %s", user.id)


if __name__ == "__main__":
    configure_logging()
    init_db(with_demo_data="--seed" in sys.argv[1:])
