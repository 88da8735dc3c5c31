from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from study_calendar.models.alert import Alert, AlertSeverity, AlertType
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.task import Task, TaskStatus, TaskType
from study_calendar.models.topic import Topic
from study_calendar.schemas.schedule import ReviewScheduleResult
from study_calendar.schemas.task import TaskPublic
from study_calendar.services.lookups import (
    get_plan_for_user,
    get_topic_or_raise,
    get_user_or_raise,
    utc_now,
)
from study_calendar.services.plan_lock import plan_lock
from study_calendar.services.slot_finder import (
    TimeSlot,
    intervals_conflict,
    local_day_bounds,
    local_to_utc,
    tasks_on_day,
    to_local,
)

logger = logging.getLogger(__name__)

REVIEW_DURATION_MINUTES = 30
PREFERRED_REVIEW_HOURS = (9, 14, 18)
SWEEP_START_HOUR = 9
SWEEP_END_HOUR = 20  # inclusive
SWEEP_DAYS = 3
DEFAULT_SOURCE = "REMEDIATION_AGENT"


def _is_free(start: datetime, existing: Sequence[Any], tz: ZoneInfo) -> bool:
    end = start + timedelta(minutes=REVIEW_DURATION_MINUTES)
    day = to_local(start, tz).date()
    return not any(
        intervals_conflict(start, end, task.start_time, task.end_time)
        for task in tasks_on_day(existing, day, tz)
    )


def _slot_at(start: datetime, is_fallback: bool = False) -> TimeSlot:
    return TimeSlot(
        start_time=start,
        end_time=start + timedelta(minutes=REVIEW_DURATION_MINUTES),
        is_fallback=is_fallback,
    )


def find_review_slot(
    existing_tasks: Iterable[Any], now: datetime, tz: ZoneInfo
) -> TimeSlot:
    """Pick a 30 minute review slot in the next few days.

    Tries the preferred hours tomorrow (skipping any already past), then the
    preferred hours the day after, then every hour from 9:00 to 20:00 over the
    next three days. If all of those are taken, tomorrow at 9:00 is returned
    with `is_fallback=True` even though it conflicts.
    """
    existing = list(existing_tasks)
    today = to_local(now, tz).date()
    tomorrow = today + timedelta(days=1)

    for hour in PREFERRED_REVIEW_HOURS:
        start = local_to_utc(tomorrow, hour, tz)
        if start < now:
            continue
        if _is_free(start, existing, tz):
            return _slot_at(start)

    day_after = today + timedelta(days=2)
    for hour in PREFERRED_REVIEW_HOURS:
        start = local_to_utc(day_after, hour, tz)
        if _is_free(start, existing, tz):
            return _slot_at(start)

    for offset in range(1, SWEEP_DAYS + 1):
        day = today + timedelta(days=offset)
        for hour in range(SWEEP_START_HOUR, SWEEP_END_HOUR + 1):
            start = local_to_utc(day, hour, tz)
            if _is_free(start, existing, tz):
                return _slot_at(start)

    return _slot_at(local_to_utc(tomorrow, SWEEP_START_HOUR, tz), is_fallback=True)


def _format_when(start: datetime, tz: ZoneInfo) -> str:
    local = to_local(start, tz)
    return f"{local:%Y-%m-%d} at {local:%H:%M}"


def _find_existing_review(
    db: Session, plan: StudyPlan, topic: Topic, now: datetime
) -> Task | None:
    candidates = (
        db.query(Task)
        .filter(
            Task.plan_id == plan.id,
            Task.topic_id == topic.id,
            Task.type == TaskType.REVIEW,
            Task.status == TaskStatus.PENDING,
            Task.start_time >= now,
        )
        .order_by(Task.start_time.asc())
        .all()
    )
    return next((task for task in candidates if task.is_remediation), None)


def _load_nearby_tasks(db: Session, plan: StudyPlan, now: datetime, tz: ZoneInfo) -> list[Task]:
    today = to_local(now, tz).date()
    window_start, _ = local_day_bounds(today, tz)
    _, window_end = local_day_bounds(today + timedelta(days=SWEEP_DAYS), tz)
    return (
        db.query(Task)
        .filter(
            Task.plan_id == plan.id,
            Task.start_time >= window_start,
            Task.start_time < window_end,
        )
        .order_by(Task.start_time.asc())
        .all()
    )


def _link_triggering_alert(
    db: Session, alert_id: int | None, task: Task, tz: ZoneInfo
) -> None:
    if alert_id is None:
        return
    alert = db.get(Alert, alert_id)
    if alert is None:
        logger.warning("Triggering alert %s not found, skipping link", alert_id)
        return
    alert.meta["scheduled_task_id"] = task.id
    alert.meta["suggested_action"] = (
        f"Complete the scheduled review session on {_format_when(task.start_time, tz)}"
    )


def schedule_review(
    db: Session,
    user_id: int,
    topic_id: int,
    alert_id: int | None = None,
    source: str | None = None,
    reference: datetime | None = None,
) -> ReviewScheduleResult:
    """
    Book a remediation review session for a topic.

    Reuses a pending future remediation review for the same topic when one
    exists. Otherwise creates a REVIEW task in the first free review slot and
    a REMEDIATION alert pointing at it. When `alert_id` names the alert that
    triggered the request, that alert is linked to the session.

    Raises:
        NotFoundError: the user, topic or study plan does not exist.
    """
    now = utc_now(reference)
    user = get_user_or_raise(db, user_id)
    topic = get_topic_or_raise(db, topic_id)
    plan = get_plan_for_user(db, user_id)
    tz = ZoneInfo(user.timezone or "UTC")
    origin = source or DEFAULT_SOURCE

    with plan_lock(plan.id):
        existing_review = _find_existing_review(db, plan, topic, now)
        if existing_review is not None:
            _link_triggering_alert(db, alert_id, existing_review, tz)
            db.commit()
            return ReviewScheduleResult(
                message="Review session already scheduled for this topic",
                task=TaskPublic.model_validate(existing_review),
                is_existing=True,
            )

        slot = find_review_slot(_load_nearby_tasks(db, plan, now, tz), now, tz)
        if slot.is_fallback:
            logger.warning(
                "No free review slot for topic %s, falling back to %s", topic.id, slot.start_time
            )

        task = Task(
            plan_id=plan.id,
            topic_id=topic.id,
            title=f"Review: {topic.name}",
            description=f"Review session for {topic.name} scheduled by the Remediation Agent.",
            type=TaskType.REVIEW,
            status=TaskStatus.PENDING,
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration=REVIEW_DURATION_MINUTES,
            difficulty=topic.difficulty,
            meta={
                "source": origin,
                "priority": "HIGH",
                "is_remediation": True,
                "related_alert_id": alert_id,
            },
        )
        db.add(task)
        db.flush()

        when = _format_when(slot.start_time, tz)
        alert = Alert(
            user_id=user.id,
            plan_id=plan.id,
            type=AlertType.REMEDIATION,
            severity=AlertSeverity.MEDIUM,
            message=f"A review session for {topic.name} has been scheduled on {when}.",
            related_task_id=task.id,
            related_topic_id=topic.id,
            meta={
                "remediation_type": "CONCEPT_REVIEW",
                "title": f"Review Session Scheduled: {topic.name}",
                "suggested_action": f"Complete the scheduled review session on {when}",
                "task_id": task.id,
                "source": origin,
            },
            is_resolved=False,
        )
        db.add(alert)
        _link_triggering_alert(db, alert_id, task, tz)
        db.commit()
        db.refresh(task)

    logger.info("Scheduled review task %s for topic %s at %s", task.id, topic.id, slot.start_time)
    return ReviewScheduleResult(
        message="Review session scheduled successfully",
        task=TaskPublic.model_validate(task),
        alert_id=alert.id,
        is_fallback=slot.is_fallback,
    )
