from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from study_calendar.api.routes import tasks as task_routes
from study_calendar.db.session import get_db
from study_calendar.main import create_app
from study_calendar.models.task import Task


@pytest.fixture()
def client(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


def _utcnow() -> datetime:
    return datetime.utcnow().replace(second=0, microsecond=0)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_reschedule_for_unknown_user_is_404(client):
    response = client.post("/tasks/reschedule-missed", json={"user_id": 42})

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "User not found"}


def test_reschedule_missed_tasks(client, db_session, user, plan, make_task):
    now = _utcnow()
    make_task(now - timedelta(days=2))
    make_task(now - timedelta(days=1), duration=45)
    db_session.commit()

    response = client.post("/tasks/reschedule-missed", json={"user_id": user.id})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["rescheduled"]) == 2
    assert body["failed"] == []
    assert body["rescheduled_count"] == 2
    assert body["failed_count"] == 0
    assert body["alert_id"] is not None
    assert body["rescheduled"][0]["new_start_time"].endswith("Z")


def test_reschedule_with_nothing_missed_reports_zero_counts(client, db_session, user, plan):
    db_session.commit()

    response = client.post("/tasks/reschedule-missed", json={"user_id": user.id})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "No missed tasks found to reschedule"
    assert body["rescheduled_count"] == 0
    assert body["failed_count"] == 0


def test_reschedule_reports_unexpected_errors(client, user, plan, db_session, monkeypatch):
    db_session.commit()

    def explode(db, user_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(task_routes, "reschedule_missed_tasks", explode)

    response = client.post("/tasks/reschedule-missed", json={"user_id": user.id})

    assert response.status_code == 500
    assert response.json()["detail"] == {
        "message": "Failed to reschedule missed tasks",
        "error": "database went away",
    }


def test_schedule_review(client, db_session, user, plan, topics):
    db_session.commit()

    response = client.post(
        "/remediation/schedule-review",
        json={"user_id": user.id, "topic_id": topics[0].id, "source": "QUIZ_AGENT"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["is_existing"] is False
    assert body["task"]["type"] == "REVIEW"
    assert body["task"]["duration"] == 30
    assert body["task"]["meta"]["source"] == "QUIZ_AGENT"
    assert body["alert_id"] is not None


def test_schedule_review_for_unknown_topic_is_404(client, db_session, user, plan):
    db_session.commit()

    response = client.post(
        "/remediation/schedule-review", json={"user_id": user.id, "topic_id": 999}
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Topic not found"


def test_cleanup_duplicate_sessions(client, db_session, user, plan, topics, make_task):
    start = _utcnow().replace(hour=10, minute=0) + timedelta(days=3)
    make_task(start, topic=topics[0])
    make_task(start, topic=topics[0])
    db_session.commit()

    response = client.post("/cleanup/duplicate-sessions", json={"user_id": user.id})

    assert response.status_code == 200
    body = response.json()
    assert len(body["deleted_tasks"]) == 1
    assert body["deleted_count"] == 1
    assert body["times_summary"] == [{"time": "10:00", "count": 1}]
    assert body["pass_counts"]["same_date_time_topic"] == 1
    db_session.expire_all()
    assert db_session.query(Task).count() == 1


def test_full_cleanup(client, db_session, user, plan):
    db_session.commit()

    response = client.post("/cleanup", json={"user_id": user.id})

    assert response.status_code == 200
    body = response.json()
    assert set(body) >= {"reviews", "alerts", "sessions"}
    assert body["sessions"]["deleted_tasks"] == []
    # Counts are reported even when nothing was cleaned up
    assert body["sessions"]["deleted_count"] == 0
    assert body["reviews"]["deleted_count"] == 0
    assert body["alerts"]["deleted_count"] == 0


@pytest.mark.parametrize(
    "path",
    ["/cleanup", "/cleanup/duplicate-reviews", "/cleanup/excessive-alerts"],
)
def test_cleanup_for_unknown_user_is_404(client, path):
    response = client.post(path, json={"user_id": 7})

    assert response.status_code == 404
    assert response.json()["success"] is False
