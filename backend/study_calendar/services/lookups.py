"""Readers for the records every scheduling operation starts from."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from study_calendar.core.errors import NotFoundError
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.topic import Topic
from study_calendar.models.user import User


def get_user_or_raise(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_plan_for_user(db: Session, user_id: int) -> StudyPlan:
    plan = (
        db.query(StudyPlan)
        .filter(StudyPlan.user_id == user_id)
        .order_by(StudyPlan.id.asc())
        .first()
    )
    if plan is None:
        raise NotFoundError("Study plan", user_id)
    return plan


def get_topic_or_raise(db: Session, topic_id: int) -> Topic:
    topic = db.get(Topic, topic_id)
    if topic is None:
        raise NotFoundError("Topic", topic_id)
    return topic


def topic_names(db: Session, topic_ids) -> dict[int, str]:
    """Resolve topic names up front so grouping never touches lazy relationships."""
    ids = {topic_id for topic_id in topic_ids if topic_id is not None}
    if not ids:
        return {}
    rows = db.query(Topic.id, Topic.name).filter(Topic.id.in_(ids)).all()
    return {row.id: row.name for row in rows}


def utc_now(reference: datetime | None = None) -> datetime:
    """Return `reference` (or now) as a naive UTC datetime, the storage convention."""
    ref = reference or datetime.now(timezone.utc)
    if ref.tzinfo is not None:
        ref = ref.astimezone(timezone.utc).replace(tzinfo=None)
    return ref
