from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from study_calendar.db.session import session_scope
from study_calendar.models.alert import Alert, AlertSeverity, AlertType
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.task import Task, TaskStatus, TaskType
from study_calendar.models.topic import Difficulty, Topic
from study_calendar.models.user import User


def seed_demo_data(db: Session) -> User:
    """Demo plan with missed tasks and a few generated duplicates to clean up."""
    existing = db.query(User).filter(User.email == "demo@student.com").first()
    if existing:
        return existing
    user = User(
        email="demo@student.com",
        full_name="Demo Student",
        timezone="America/New_York",
        available_days=["Monday", "Wednesday", "Friday"],
        study_hours_per_day=3,
        preferred_study_time="morning",
    )
    db.add(user)
    db.flush()

    today = datetime.utcnow().replace(hour=14, minute=0, second=0, microsecond=0)
    plan = StudyPlan(
        user_id=user.id,
        exam_date=today + timedelta(days=30),
        start_date=today - timedelta(days=7),
        end_date=today + timedelta(days=30),
    )
    topics = [
        Topic(name="Cardiology", difficulty=Difficulty.HARD),
        Topic(name="Pharmacology", difficulty=Difficulty.MEDIUM),
        Topic(name="Biostatistics", difficulty=Difficulty.EASY),
    ]
    db.add(plan)
    db.add_all(topics)
    db.flush()

    tasks: list[Task] = []
    # Missed work from the past few days
    for day_offset, topic in zip((3, 2, 1), topics):
        start = today - timedelta(days=day_offset)
        tasks.append(
            Task(
                plan_id=plan.id,
                topic_id=topic.id,
                title=f"Read: {topic.name} chapter",
                description=f"Core reading for {topic.name}",
                type=TaskType.READING,
                status=TaskStatus.PENDING,
                start_time=start,
                duration=60,
                difficulty=topic.difficulty,
            )
        )
    # The same quiz generated twice, plus a pile-up at one time of day
    quiz_start = today + timedelta(days=2)
    for _ in range(2):
        tasks.append(
            Task(
                plan_id=plan.id,
                topic_id=topics[0].id,
                title=f"Quiz: {topics[0].name}",
                type=TaskType.QUIZ,
                start_time=quiz_start,
                duration=30,
            )
        )
    for day_offset in range(3, 8):
        topic = topics[day_offset % len(topics)]
        tasks.append(
            Task(
                plan_id=plan.id,
                topic_id=topic.id,
                title=f"Practice: {topic.name}",
                type=TaskType.PRACTICE,
                start_time=today + timedelta(days=day_offset),
                duration=45,
            )
        )
    db.add_all(tasks)
    db.flush()

    db.add(
        Alert(
            user_id=user.id,
            plan_id=plan.id,
            type=AlertType.LOW_PERFORMANCE,
            severity=AlertSeverity.HIGH,
            message=f"Quiz scores for {topics[0].name} dropped below 60%.",
            related_topic_id=topics[0].id,
            meta={"scheduled_task_id": tasks[4].id},
        )
    )
    db.flush()
    return user


if __name__ == "__main__":
    with session_scope() as session:
        seed_demo_data(session)
