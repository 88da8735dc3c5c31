from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy import JSON
from sqlalchemy.orm import relationship

from study_calendar.db.base import Base

CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
DEFAULT_AVAILABLE_DAYS = list(WEEKDAY_NAMES[:5])


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    # Weekday names, e.g. ["Monday", "Wednesday", "Friday"]
    available_days = Column(JSON, nullable=False, default=lambda: list(DEFAULT_AVAILABLE_DAYS))
    study_hours_per_day = Column(Integer, nullable=False, default=2)
    preferred_study_time = Column(String(32), nullable=True)  # morning, afternoon, evening
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    study_plans = relationship(
        "StudyPlan", back_populates="user", cascade=CASCADE_ALL_DELETE_ORPHAN
    )
    alerts = relationship(
        "Alert", back_populates="user", cascade=CASCADE_ALL_DELETE_ORPHAN
    )
