from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from study_calendar.core.config import get_settings
from study_calendar.models.alert import Alert, AlertSeverity, AlertType
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.task import Task, TaskStatus
from study_calendar.models.user import WEEKDAY_NAMES
from study_calendar.schemas.schedule import FailedTask, RescheduledTask, RescheduleResult
from study_calendar.schemas.user import UserPreferences
from study_calendar.services.lookups import (
    get_plan_for_user,
    get_user_or_raise,
    topic_names,
    utc_now,
)
from study_calendar.services.plan_lock import plan_lock
from study_calendar.services.slot_finder import find_available_slot, to_local

logger = logging.getLogger(__name__)

NO_SLOT_REASON = "No available time slot found"


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def build_candidate_days(
    now: datetime,
    exam_date: datetime,
    available_days: list[str],
    tz: ZoneInfo,
    horizon_days: int = 14,
    fallback_days: int = 7,
) -> list[date]:
    """Local dates a missed task may move to, nearest first.

    Covers the days after today up to the exam or `horizon_days`, whichever is
    sooner, keeping only the user's available weekdays. When that leaves
    nothing (exam already past, or no matching weekday) the next
    `fallback_days` days are used regardless of availability.
    """
    today = to_local(now, tz).date()
    days_until_exam = math.ceil((exam_date - now).total_seconds() / 86400)
    max_days = min(days_until_exam, horizon_days)
    allowed = set(available_days)

    days = [
        today + timedelta(days=offset)
        for offset in range(1, max_days + 1)
        if WEEKDAY_NAMES[(today + timedelta(days=offset)).weekday()] in allowed
    ]
    if not days:
        days = [today + timedelta(days=offset) for offset in range(1, fallback_days + 1)]
    return days


def _load_missed_tasks(db: Session, plan: StudyPlan, now: datetime) -> list[Task]:
    # Oldest deadline first: it gets first pick of the free slots
    return (
        db.query(Task)
        .filter(
            Task.plan_id == plan.id,
            Task.status == TaskStatus.PENDING,
            Task.end_time < now,
        )
        .order_by(Task.end_time.asc(), Task.id.asc())
        .all()
    )


def _load_future_tasks(db: Session, plan: StudyPlan, now: datetime) -> list[Task]:
    return (
        db.query(Task)
        .filter(Task.plan_id == plan.id, Task.start_time >= now)
        .order_by(Task.start_time.asc())
        .all()
    )


def _create_summary_alert(
    db: Session, user_id: int, plan: StudyPlan, rescheduled_count: int, failed_count: int
) -> Alert:
    verb = _plural(rescheduled_count, "task has", "tasks have")
    alert = Alert(
        user_id=user_id,
        plan_id=plan.id,
        type=AlertType.SCHEDULE_CHANGE,
        severity=AlertSeverity.MEDIUM,
        message=f"{rescheduled_count} missed {verb} been rescheduled.",
        meta={
            "rescheduled_task_count": rescheduled_count,
            "failed_task_count": failed_count,
            "title": "Tasks Rescheduled",
            "suggested_action": "Check your calendar for the updated schedule",
        },
        is_resolved=False,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    return alert


def _build_message(rescheduled: int, failed: int) -> str:
    message = f"Rescheduled {rescheduled} missed {_plural(rescheduled, 'task', 'tasks')}"
    if failed:
        message += f", failed to reschedule {failed} {_plural(failed, 'task', 'tasks')}"
    return message


def reschedule_missed_tasks(
    db: Session, user_id: int, reference: datetime | None = None
) -> RescheduleResult:
    """
    Move every overdue PENDING task of the user's plan into a free slot.

    Tasks are placed one at a time, oldest deadline first, against a working
    set that grows with each placement so no two moved tasks share a slot.
    A task that cannot be placed is reported in `failed` and the batch goes
    on. One SCHEDULE_CHANGE alert summarizes the run when anything moved.

    Raises:
        NotFoundError: the user or their study plan does not exist.
    """
    settings = get_settings()
    now = utc_now(reference)

    user = get_user_or_raise(db, user_id)
    plan = get_plan_for_user(db, user_id)
    preferences = UserPreferences.model_validate(user)
    tz = ZoneInfo(preferences.timezone)

    with plan_lock(plan.id):
        missed_tasks = _load_missed_tasks(db, plan, now)
        if not missed_tasks:
            return RescheduleResult(message="No missed tasks found to reschedule")

        working_set: list[Task] = _load_future_tasks(db, plan, now)
        candidate_days = build_candidate_days(
            now,
            plan.exam_date,
            preferences.available_days,
            tz,
            horizon_days=settings.reschedule_horizon_days,
            fallback_days=settings.fallback_window_days,
        )
        names = topic_names(db, (task.topic_id for task in missed_tasks))

        rescheduled: list[RescheduledTask] = []
        failed: list[FailedTask] = []

        for task in missed_tasks:
            task_id, title = task.id, task.title
            try:
                slot = find_available_slot(
                    candidate_days,
                    working_set,
                    task.duration,
                    work_start_hour=settings.work_start_hour,
                    work_end_hour=settings.work_end_hour,
                    tz=tz,
                )
                if slot is None:
                    failed.append(FailedTask(id=task_id, title=title, reason=NO_SLOT_REASON))
                    continue
                if slot.is_fallback:
                    logger.warning(
                        "No free slot for task %s, using end-of-day fallback %s",
                        task_id,
                        slot.start_time,
                    )

                old_start = task.start_time
                task.move_to(slot.start_time, slot.end_time)
                db.commit()
            except Exception as exc:
                logger.exception("Error rescheduling task %s", task_id)
                db.rollback()
                failed.append(FailedTask(id=task_id, title=title, reason=str(exc)))
                continue

            working_set.append(task)
            rescheduled.append(
                RescheduledTask(
                    id=task_id,
                    title=title,
                    old_start_time=old_start,
                    new_start_time=slot.start_time,
                    new_end_time=slot.end_time,
                    topic=names.get(task.topic_id, "Unknown Topic"),
                    is_fallback=slot.is_fallback,
                )
            )

        alert_id = None
        if rescheduled:
            alert = _create_summary_alert(db, user.id, plan, len(rescheduled), len(failed))
            alert_id = alert.id

    logger.info(
        "Plan %s: rescheduled %d missed tasks, %d failed",
        plan.id,
        len(rescheduled),
        len(failed),
    )
    return RescheduleResult(
        message=_build_message(len(rescheduled), len(failed)),
        rescheduled=rescheduled,
        failed=failed,
        alert_id=alert_id,
    )
