from datetime import datetime, timedelta
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import relationship, validates

from study_calendar.db.base import Base
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.topic import Difficulty, Topic


class TaskType(str, PyEnum):
    VIDEO = "VIDEO"
    QUIZ = "QUIZ"
    READING = "READING"
    PRACTICE = "PRACTICE"
    REVIEW = "REVIEW"


class TaskStatus(str, PyEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_tasks_interval_order"),
        CheckConstraint("duration >= 1", name="ck_tasks_duration_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(
        Integer, ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    topic_id = Column(
        Integer, ForeignKey("topics.id", ondelete="SET NULL"), nullable=True
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(SQLEnum(TaskType), nullable=False)
    status = Column(SQLEnum(TaskStatus), nullable=False, default=TaskStatus.PENDING)
    difficulty = Column(SQLEnum(Difficulty), nullable=False, default=Difficulty.MEDIUM)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False)  # minutes
    # Set by the first reschedule only
    original_start_time = Column(DateTime, nullable=True)
    original_end_time = Column(DateTime, nullable=True)
    # "metadata" is reserved on declarative classes, so the attribute is `meta`
    meta = Column("metadata", MutableDict.as_mutable(JSON), nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    plan = relationship("StudyPlan", back_populates="tasks")
    topic = relationship("Topic")

    def __init__(self, **kwargs):
        if kwargs.get("end_time") is None and kwargs.get("start_time") and kwargs.get("duration"):
            kwargs["end_time"] = kwargs["start_time"] + timedelta(minutes=kwargs["duration"])
        super().__init__(**kwargs)
        _check_interval(self.start_time, self.end_time, self.duration)

    @validates("type")
    def _validate_type(self, key, value):
        return TaskType(value)

    @validates("status")
    def _validate_status(self, key, value):
        return TaskStatus(value)

    @validates("difficulty")
    def _validate_difficulty(self, key, value):
        return Difficulty(value)

    @validates("duration")
    def _validate_duration(self, key, value):
        if value is None or int(value) < 1:
            raise ValueError("Task duration must be at least one minute")
        return int(value)

    @property
    def is_remediation(self) -> bool:
        return bool((self.meta or {}).get("is_remediation"))

    def move_to(self, start_time: datetime, end_time: datetime) -> None:
        """Move the task to a new interval, remembering where it was first scheduled."""
        _check_interval(start_time, end_time, self.duration)
        if self.original_start_time is None:
            self.original_start_time = self.start_time
        if self.original_end_time is None:
            self.original_end_time = self.end_time
        self.start_time = start_time
        self.end_time = end_time


def _check_interval(start_time: datetime | None, end_time: datetime | None, duration: int | None) -> None:
    if start_time is None or end_time is None:
        raise ValueError("Task requires both start_time and end_time")
    if start_time >= end_time:
        raise ValueError("Task start_time must be before end_time")
    if duration is not None and end_time - start_time != timedelta(minutes=duration):
        raise ValueError("Task end_time must equal start_time plus duration")
