from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from study_calendar.core.errors import NotFoundError
from study_calendar.models.alert import Alert, AlertSeverity, AlertType
from study_calendar.models.task import Task, TaskType
from study_calendar.services.review_scheduler import find_review_slot, schedule_review
from study_calendar.services.slot_finder import TimeSlot

from conftest import REFERENCE

UTC = ZoneInfo("UTC")
TUESDAY = datetime(2026, 10, 20)
WEDNESDAY = datetime(2026, 10, 21)
THURSDAY = datetime(2026, 10, 22)


def _busy(day: datetime, hour: int, minutes: int = 30) -> TimeSlot:
    start = day.replace(hour=hour)
    return TimeSlot(start_time=start, end_time=start + timedelta(minutes=minutes))


def _low_performance_alert(db_session, user, plan, topic) -> Alert:
    alert = Alert(
        user_id=user.id,
        plan_id=plan.id,
        type=AlertType.LOW_PERFORMANCE,
        severity=AlertSeverity.HIGH,
        message=f"Struggling with {topic.name}",
        related_topic_id=topic.id,
        meta={},
    )
    db_session.add(alert)
    db_session.flush()
    return alert


def test_review_slot_prefers_tomorrow_morning():
    slot = find_review_slot([], REFERENCE, UTC)

    assert slot.start_time == datetime(2026, 10, 20, 9, 0)
    assert slot.end_time == datetime(2026, 10, 20, 9, 30)
    assert not slot.is_fallback


def test_review_slot_tries_preferred_hours_in_order():
    existing = [_busy(TUESDAY, 9)]

    slot = find_review_slot(existing, REFERENCE, UTC)

    assert slot.start_time == datetime(2026, 10, 20, 14, 0)


def test_review_slot_moves_to_day_after_when_tomorrow_is_taken():
    existing = [_busy(TUESDAY, 9), _busy(TUESDAY, 14), _busy(TUESDAY, 18)]

    slot = find_review_slot(existing, REFERENCE, UTC)

    assert slot.start_time == datetime(2026, 10, 21, 9, 0)


def test_review_slot_sweeps_every_hour_when_preferred_hours_are_taken():
    existing = [_busy(day, hour) for day in (TUESDAY, WEDNESDAY) for hour in (9, 14, 18)]

    slot = find_review_slot(existing, REFERENCE, UTC)

    assert slot.start_time == datetime(2026, 10, 20, 10, 0)
    assert not slot.is_fallback


def test_review_slot_sweep_reaches_the_third_day():
    existing = [_busy(day, 8, minutes=13 * 60) for day in (TUESDAY, WEDNESDAY)]
    existing.append(_busy(THURSDAY, 8, minutes=10 * 60))

    slot = find_review_slot(existing, REFERENCE, UTC)

    assert slot.start_time == datetime(2026, 10, 22, 18, 0)


def test_review_slot_falls_back_to_tomorrow_morning():
    existing = [_busy(day, 8, minutes=13 * 60) for day in (TUESDAY, WEDNESDAY, THURSDAY)]

    slot = find_review_slot(existing, REFERENCE, UTC)

    assert slot.is_fallback
    assert slot.start_time == datetime(2026, 10, 20, 9, 0)


def test_review_slot_uses_the_user_timezone():
    tokyo = ZoneInfo("Asia/Tokyo")

    slot = find_review_slot([], REFERENCE, tokyo)

    # REFERENCE is 17:00 Monday in Tokyo, tomorrow 09:00 JST is 00:00 UTC
    assert slot.start_time == datetime(2026, 10, 20, 0, 0)


def test_schedule_review_creates_task_and_alert(db_session, user, plan, topics):
    topic = topics[1]

    result = schedule_review(db_session, user.id, topic.id, reference=REFERENCE)

    assert result.success
    assert not result.is_existing
    assert result.message == "Review session scheduled successfully"
    task = db_session.get(Task, result.task.id)
    assert task.type == TaskType.REVIEW
    assert task.duration == 30
    assert task.topic_id == topic.id
    assert task.difficulty == topic.difficulty
    assert task.title == "Review: Biochemistry"
    assert task.start_time == datetime(2026, 10, 20, 9, 0)
    assert task.is_remediation
    assert task.meta["source"] == "REMEDIATION_AGENT"
    assert task.meta["priority"] == "HIGH"

    alert = db_session.get(Alert, result.alert_id)
    assert alert.type == AlertType.REMEDIATION
    assert alert.related_task_id == task.id
    assert alert.related_topic_id == topic.id
    assert alert.meta["task_id"] == task.id
    assert alert.meta["remediation_type"] == "CONCEPT_REVIEW"
    assert "2026-10-20 at 09:00" in alert.message
    assert not alert.is_resolved


def test_schedule_review_avoids_existing_plan_tasks(db_session, user, plan, topics, make_task):
    make_task(datetime(2026, 10, 20, 8, 30), duration=60)

    result = schedule_review(db_session, user.id, topics[0].id, reference=REFERENCE)

    assert result.task.start_time.replace(tzinfo=None) == datetime(2026, 10, 20, 14, 0)


def test_schedule_review_links_the_triggering_alert(db_session, user, plan, topics):
    trigger = _low_performance_alert(db_session, user, plan, topics[0])

    result = schedule_review(
        db_session, user.id, topics[0].id, alert_id=trigger.id, source="QUIZ_AGENT", reference=REFERENCE
    )

    db_session.refresh(trigger)
    assert trigger.scheduled_task_id == result.task.id
    assert trigger.meta["suggested_action"] == (
        "Complete the scheduled review session on 2026-10-20 at 09:00"
    )
    assert result.task.meta["related_alert_id"] == trigger.id
    assert result.task.meta["source"] == "QUIZ_AGENT"


def test_schedule_review_reuses_pending_review(db_session, user, plan, topics):
    first = schedule_review(db_session, user.id, topics[0].id, reference=REFERENCE)
    trigger = _low_performance_alert(db_session, user, plan, topics[0])

    second = schedule_review(
        db_session, user.id, topics[0].id, alert_id=trigger.id, reference=REFERENCE
    )

    assert second.is_existing
    assert second.task.id == first.task.id
    assert second.alert_id is None
    reviews = db_session.query(Task).filter(Task.type == TaskType.REVIEW).all()
    assert len(reviews) == 1
    remediation_alerts = db_session.query(Alert).filter(Alert.type == AlertType.REMEDIATION).all()
    assert len(remediation_alerts) == 1
    db_session.refresh(trigger)
    assert trigger.scheduled_task_id == first.task.id


def test_plain_review_task_is_not_reused(db_session, user, plan, topics, make_task):
    make_task(datetime(2026, 10, 20, 9, 0), duration=30, topic=topics[0], task_type=TaskType.REVIEW)

    result = schedule_review(db_session, user.id, topics[0].id, reference=REFERENCE)

    assert not result.is_existing
    assert result.task.start_time.replace(tzinfo=None) == datetime(2026, 10, 20, 14, 0)


def test_schedule_review_for_unknown_topic(db_session, user, plan):
    with pytest.raises(NotFoundError) as excinfo:
        schedule_review(db_session, user.id, 404, reference=REFERENCE)

    assert str(excinfo.value) == "Topic not found"
