from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from study_calendar.db.base import Base
from study_calendar.models import Alert, StudyPlan, Task, Topic, User  # noqa: F401
from study_calendar.models.task import TaskStatus, TaskType
from study_calendar.models.topic import Difficulty

# Monday 19 October 2026, 08:00 UTC
REFERENCE = datetime(2026, 10, 19, 8, 0)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine):
    with Session(engine) as session:
        yield session
        session.rollback()


@pytest.fixture()
def user(db_session: Session) -> User:
    user = User(
        email="student@example.com",
        full_name="Test Student",
        timezone="UTC",
        available_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
        study_hours_per_day=3,
    )
    db_session.add(user)
    db_session.flush()
    return user


@pytest.fixture()
def plan(db_session: Session, user: User) -> StudyPlan:
    plan = StudyPlan(
        user_id=user.id,
        exam_date=REFERENCE + timedelta(days=30),
        start_date=REFERENCE - timedelta(days=14),
        end_date=REFERENCE + timedelta(days=30),
    )
    db_session.add(plan)
    db_session.flush()
    return plan


@pytest.fixture()
def topics(db_session: Session) -> list[Topic]:
    topics = [
        Topic(name="Anatomy", difficulty=Difficulty.MEDIUM),
        Topic(name="Biochemistry", difficulty=Difficulty.HARD),
        Topic(name="Cardiology", difficulty=Difficulty.EASY),
        Topic(name="Dermatology", difficulty=Difficulty.MEDIUM),
        Topic(name="Endocrinology", difficulty=Difficulty.HARD),
    ]
    db_session.add_all(topics)
    db_session.flush()
    return topics


@pytest.fixture()
def make_task(db_session: Session, plan: StudyPlan):
    def _make(
        start_time: datetime,
        duration: int = 60,
        topic: Topic | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        task_type: TaskType = TaskType.READING,
        title: str | None = None,
        meta: dict | None = None,
    ) -> Task:
        task = Task(
            plan_id=plan.id,
            topic_id=topic.id if topic else None,
            title=title or f"Task at {start_time:%Y-%m-%d %H:%M}",
            description="",
            type=task_type,
            status=status,
            start_time=start_time,
            duration=duration,
            meta=meta or {},
        )
        db_session.add(task)
        db_session.flush()
        return task

    return _make
