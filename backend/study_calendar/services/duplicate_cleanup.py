"""Detection and removal of duplicate study sessions.

Duplicates come from three different failure modes of plan generation, and
each needs its own grouping key:

* the same session generated twice (same date, time and topic),
* a topic regenerated at the same time of day, where several copies land on
  one date,
* unbounded rescheduling that piles many sessions onto one time of day.

All three passes read one snapshot of the plan's pending tasks. A task marked
by an earlier pass is still a member of later groups; only the shared
`processed_ids` set keeps it from being counted twice.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from study_calendar.models.alert import Alert
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.task import Task, TaskStatus, TaskType
from study_calendar.schemas.cleanup import (
    DeletedTask,
    DuplicateCleanupResult,
    PassCounts,
    ReviewCleanupResult,
    TimeSummary,
)
from study_calendar.services.lookups import (
    get_plan_for_user,
    get_user_or_raise,
    topic_names,
    utc_now,
)
from study_calendar.services.plan_lock import plan_lock
from study_calendar.services.slot_finder import to_local

logger = logging.getLogger(__name__)

EXCESSIVE_SAME_TIME_LIMIT = 3


@dataclass
class DuplicateScan:
    duplicates: list[Task] = field(default_factory=list)
    by_time: dict[str, list[Task]] = field(default_factory=dict)
    pass_counts: PassCounts = field(default_factory=PassCounts)


def time_key(value: datetime, tz: ZoneInfo) -> str:
    local = to_local(value, tz)
    return f"{local.hour:02d}:{local.minute:02d}"


def date_key(value: datetime, tz: ZoneInfo) -> date:
    return to_local(value, tz).date()


def _time_sort_key(label: str) -> tuple[int, int]:
    hours, minutes = label.split(":")
    return int(hours), int(minutes)


class _Marker:
    """Collects duplicates across passes without marking any task twice."""

    def __init__(self, tz: ZoneInfo) -> None:
        self.tz = tz
        self.processed_ids: set[int] = set()
        self.scan = DuplicateScan()

    def mark(self, task: Task) -> bool:
        if task.id in self.processed_ids:
            return False
        self.processed_ids.add(task.id)
        self.scan.duplicates.append(task)
        self.scan.by_time.setdefault(time_key(task.start_time, self.tz), []).append(task)
        return True

    def mark_all(self, tasks: Iterable[Task]) -> int:
        return sum(1 for task in tasks if self.mark(task))


def _group_same_date_time_topic(tasks: Sequence[Task], tz: ZoneInfo) -> dict[tuple, list[Task]]:
    groups: dict[tuple, list[Task]] = defaultdict(list)
    for task in tasks:
        if task.topic_id is None:
            continue
        key = (date_key(task.start_time, tz), time_key(task.start_time, tz), task.topic_id)
        groups[key].append(task)
    return groups


def _group_same_time_topic(tasks: Sequence[Task], tz: ZoneInfo) -> dict[tuple, list[Task]]:
    groups: dict[tuple, list[Task]] = defaultdict(list)
    for task in tasks:
        if task.topic_id is None:
            continue
        groups[(time_key(task.start_time, tz), task.topic_id)].append(task)
    return groups


def _group_same_time(tasks: Sequence[Task], tz: ZoneInfo) -> dict[str, list[Task]]:
    groups: dict[str, list[Task]] = defaultdict(list)
    for task in tasks:
        groups[time_key(task.start_time, tz)].append(task)
    return groups


def find_duplicate_tasks(tasks: Sequence[Task], tz: ZoneInfo) -> DuplicateScan:
    """Run the three duplicate passes over one snapshot of pending tasks.

    Pass A keeps the first task (snapshot order) of every (date, time, topic)
    group. Pass B sorts each (time, topic) group by start time and keeps the
    first task per date. Pass C keeps the first three tasks, by start time then
    topic id, of any time-of-day shared by more than three tasks. Tasks
    without a topic only take part in pass C.
    """
    marker = _Marker(tz)
    counts = marker.scan.pass_counts

    for group in _group_same_date_time_topic(tasks, tz).values():
        if len(group) > 1:
            counts.same_date_time_topic += marker.mark_all(group[1:])

    for group in _group_same_time_topic(tasks, tz).values():
        if len(group) < 2:
            continue
        by_date: dict[date, list[Task]] = defaultdict(list)
        for task in sorted(group, key=lambda item: item.start_time):
            by_date[date_key(task.start_time, tz)].append(task)
        for date_group in by_date.values():
            if len(date_group) > 1:
                counts.same_time_topic_per_date += marker.mark_all(date_group[1:])

    for group in _group_same_time(tasks, tz).values():
        if len(group) <= EXCESSIVE_SAME_TIME_LIMIT:
            continue
        ordered = sorted(
            group,
            key=lambda item: (item.start_time, str(item.topic_id) if item.topic_id is not None else ""),
        )
        counts.excessive_same_time += marker.mark_all(ordered[EXCESSIVE_SAME_TIME_LIMIT:])

    return marker.scan


def summarize_by_time(by_time: dict[str, list[Task]]) -> list[TimeSummary]:
    return [
        TimeSummary(time=label, count=len(tasks))
        for label, tasks in sorted(by_time.items(), key=lambda item: _time_sort_key(item[0]))
    ]


def _alerts_by_scheduled_task(db: Session, plan: StudyPlan) -> dict[int, list[Alert]]:
    index: dict[int, list[Alert]] = defaultdict(list)
    for alert in db.query(Alert).filter(Alert.plan_id == plan.id).all():
        scheduled_id = alert.scheduled_task_id
        if scheduled_id is not None:
            index[scheduled_id].append(alert)
    return index


def _deleted_summary(task: Task, names: dict[int, str]) -> DeletedTask:
    return DeletedTask(
        id=task.id,
        title=task.title,
        topic=names.get(task.topic_id),
        start_time=task.start_time,
    )


def cleanup_duplicate_sessions(
    db: Session, user_id: int, reference: datetime | None = None
) -> DuplicateCleanupResult:
    """
    Delete duplicate pending sessions from the user's plan.

    Alerts whose `scheduled_task_id` points at a deleted task are resolved,
    never deleted.

    Raises:
        NotFoundError: the user or their study plan does not exist.
    """
    now = utc_now(reference)
    user = get_user_or_raise(db, user_id)
    plan = get_plan_for_user(db, user_id)
    tz = ZoneInfo(user.timezone or "UTC")

    with plan_lock(plan.id):
        snapshot = (
            db.query(Task)
            .filter(Task.plan_id == plan.id, Task.status == TaskStatus.PENDING)
            .order_by(Task.id.asc())
            .all()
        )
        logger.info("Found %d pending tasks for cleanup on plan %s", len(snapshot), plan.id)
        names = topic_names(db, (task.topic_id for task in snapshot))

        scan = find_duplicate_tasks(snapshot, tz)
        counts = scan.pass_counts
        logger.info(
            "Duplicate passes on plan %s: date/time/topic=%d, time/topic=%d, excessive=%d",
            plan.id,
            counts.same_date_time_topic,
            counts.same_time_topic_per_date,
            counts.excessive_same_time,
        )

        deleted = [_deleted_summary(task, names) for task in scan.duplicates]
        times_summary = summarize_by_time(scan.by_time)
        alert_index = _alerts_by_scheduled_task(db, plan)

        resolved_alert_ids: list[int] = []
        for task in scan.duplicates:
            for alert in alert_index.get(task.id, []):
                alert.resolve(now)
                resolved_alert_ids.append(alert.id)
            db.delete(task)
        db.commit()

    return DuplicateCleanupResult(
        message=f"Cleaned up {len(deleted)} duplicate sessions across the calendar",
        deleted_tasks=deleted,
        times_summary=times_summary,
        pass_counts=counts,
        resolved_alert_ids=resolved_alert_ids,
    )


def cleanup_duplicate_reviews(
    db: Session, user_id: int, reference: datetime | None = None
) -> ReviewCleanupResult:
    """
    Keep only the earliest upcoming remediation review per topic.

    Alerts that pointed at a removed review are re-pointed to the kept one.

    Raises:
        NotFoundError: the user or their study plan does not exist.
    """
    now = utc_now(reference)
    user = get_user_or_raise(db, user_id)
    plan = get_plan_for_user(db, user_id)
    tz = ZoneInfo(user.timezone or "UTC")

    with plan_lock(plan.id):
        reviews = (
            db.query(Task)
            .filter(
                Task.plan_id == plan.id,
                Task.type == TaskType.REVIEW,
                Task.status == TaskStatus.PENDING,
                Task.start_time >= now,
            )
            .order_by(Task.start_time.asc(), Task.id.asc())
            .all()
        )
        by_topic: dict[int, list[Task]] = defaultdict(list)
        for review in reviews:
            if review.topic_id is not None and review.is_remediation:
                by_topic[review.topic_id].append(review)

        names = topic_names(db, by_topic.keys())
        alert_index = _alerts_by_scheduled_task(db, plan)
        deleted: list[DeletedTask] = []
        updated_alert_ids: list[int] = []

        for group in by_topic.values():
            keeper, extras = group[0], group[1:]
            local_start = to_local(keeper.start_time, tz)
            for extra in extras:
                deleted.append(_deleted_summary(extra, names))
                for alert in alert_index.get(extra.id, []):
                    alert.meta["scheduled_task_id"] = keeper.id
                    alert.meta["suggested_action"] = (
                        "Complete the scheduled review session on "
                        f"{local_start:%Y-%m-%d} at {local_start:%H:%M}"
                    )
                    updated_alert_ids.append(alert.id)
                db.delete(extra)
        db.commit()

    logger.info("Removed %d duplicate review sessions on plan %s", len(deleted), plan.id)
    return ReviewCleanupResult(
        message=f"Cleaned up {len(deleted)} duplicate review sessions",
        deleted_tasks=deleted,
        updated_alert_ids=updated_alert_ids,
    )
