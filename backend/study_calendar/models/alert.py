from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    Text,
)
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import relationship, validates

from study_calendar.db.base import Base
from study_calendar.models.task import Task
from study_calendar.models.user import User


class AlertType(str, PyEnum):
    MISSED_TASK = "MISSED_TASK"
    LOW_PERFORMANCE = "LOW_PERFORMANCE"
    SCHEDULE_DEVIATION = "SCHEDULE_DEVIATION"
    TOPIC_DIFFICULTY = "TOPIC_DIFFICULTY"
    STUDY_PATTERN = "STUDY_PATTERN"
    GENERAL = "GENERAL"
    REMEDIATION = "REMEDIATION"
    SCHEDULE_CHANGE = "SCHEDULE_CHANGE"


class AlertSeverity(str, PyEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(
        Integer, ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(SQLEnum(AlertType), nullable=False)
    severity = Column(SQLEnum(AlertSeverity), nullable=False, default=AlertSeverity.MEDIUM)
    message = Column(Text, nullable=False)
    related_task_id = Column(
        Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )
    related_topic_id = Column(
        Integer, ForeignKey("topics.id", ondelete="SET NULL"), nullable=True
    )
    # Cleanup matches on meta["scheduled_task_id"]
    meta = Column("metadata", MutableDict.as_mutable(JSON), nullable=False, default=dict)
    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="alerts")
    related_task = relationship("Task")
    related_topic = relationship("Topic")

    @validates("type")
    def _validate_type(self, key, value):
        return AlertType(value)

    @validates("severity")
    def _validate_severity(self, key, value):
        return AlertSeverity(value)

    @property
    def scheduled_task_id(self) -> int | None:
        # Free-form metadata: anything that is not a task id links nothing
        value = (self.meta or {}).get("scheduled_task_id")
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def resolve(self, when: datetime) -> None:
        self.is_resolved = True
        self.resolved_at = when
