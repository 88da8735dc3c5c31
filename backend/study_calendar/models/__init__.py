from study_calendar.models.user import User
from study_calendar.models.study_plan import StudyPlan
from study_calendar.models.topic import Topic
from study_calendar.models.task import Task
from study_calendar.models.alert import Alert

__all__ = [
    "User",
    "StudyPlan",
    "Topic",
    "Task",
    "Alert",
]
