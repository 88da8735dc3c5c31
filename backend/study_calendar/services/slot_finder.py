from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Sequence
from zoneinfo import ZoneInfo

DEFAULT_WORK_START_HOUR = 9
DEFAULT_WORK_END_HOUR = 20

UTC = ZoneInfo("UTC")


@dataclass(frozen=True)
class TimeSlot:
    """A half-open interval [start_time, end_time) in naive UTC."""

    start_time: datetime
    end_time: datetime
    is_fallback: bool = False

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


def to_local(value: datetime, tz: ZoneInfo) -> datetime:
    """Convert a stored (naive UTC) datetime to the user's wall clock."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def local_to_utc(day: date, hour: int, tz: ZoneInfo, minute: int = 0) -> datetime:
    """Wall-clock `hour:minute` on `day` in `tz`, returned as naive UTC for storage."""
    local = datetime.combine(day, time(hour=hour, minute=minute), tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Start of `day` and start of the following day, both naive UTC."""
    return local_to_utc(day, 0, tz), local_to_utc(day + timedelta(days=1), 0, tz)


def intervals_conflict(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """Three-way overlap test between a candidate and an existing interval.

    Conflicts when the candidate starts inside the other interval, ends inside
    it, or contains it. A candidate that sits entirely inside the other
    interval is caught by the first clause.
    """
    return (
        (other_start <= start < other_end)
        or (other_start < end <= other_end)
        or (start <= other_start and end >= other_end)
    )


def tasks_on_day(existing_tasks: Iterable[Any], day: date, tz: ZoneInfo) -> list[Any]:
    """Existing tasks touching the local calendar day, sorted by start time.

    Items only need `start_time` and `end_time` attributes, so ORM tasks and
    `TimeSlot`s can be mixed.
    """
    day_start, day_end = local_day_bounds(day, tz)
    touching = [
        task
        for task in existing_tasks
        if (day_start <= task.start_time <= day_end)
        or (day_start <= task.end_time <= day_end)
        or (task.start_time <= day_start and task.end_time >= day_end)
    ]
    touching.sort(key=lambda task: task.start_time)
    return touching


def _has_conflict(start: datetime, end: datetime, day_tasks: Sequence[Any]) -> bool:
    return any(
        intervals_conflict(start, end, task.start_time, task.end_time)
        for task in day_tasks
    )


def _fits_working_hours(end: datetime, day: date, work_end_hour: int, tz: ZoneInfo) -> bool:
    # Only the end hour is compared, so 19:00 + 90min (20:30) still fits
    end_local = to_local(end, tz)
    return end_local.date() == day and end_local.hour <= work_end_hour


def find_available_slot(
    candidate_days: Sequence[date],
    existing_tasks: Iterable[Any],
    duration_minutes: int,
    work_start_hour: int = DEFAULT_WORK_START_HOUR,
    work_end_hour: int = DEFAULT_WORK_END_HOUR,
    tz: ZoneInfo = UTC,
) -> TimeSlot | None:
    """Earliest conflict-free whole-hour slot across `candidate_days`.

    Days are tried in the order given, then hours in ascending order. When
    every combination conflicts the last candidate day at `work_end_hour:00`
    is returned with `is_fallback=True`; that slot may overlap an existing
    task. Returns None only when there are no candidate days at all.
    """
    if not candidate_days:
        return None

    existing = list(existing_tasks)
    length = timedelta(minutes=duration_minutes)

    for day in candidate_days:
        day_tasks = tasks_on_day(existing, day, tz)
        for hour in range(work_start_hour, work_end_hour):
            start = local_to_utc(day, hour, tz)
            end = start + length
            if not _fits_working_hours(end, day, work_end_hour, tz):
                continue
            if not _has_conflict(start, end, day_tasks):
                return TimeSlot(start_time=start, end_time=end)

    fallback_start = local_to_utc(candidate_days[-1], work_end_hour % 24, tz)
    if work_end_hour >= 24:
        fallback_start += timedelta(days=1)
    return TimeSlot(
        start_time=fallback_start,
        end_time=fallback_start + length,
        is_fallback=True,
    )
