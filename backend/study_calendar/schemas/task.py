from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict

from study_calendar.models.task import TaskStatus, TaskType
from study_calendar.models.topic import Difficulty


def _attach_utc(value: datetime | None) -> datetime | None:
    # Stored as naive UTC; serialize with an explicit offset
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UTCDatetime = Annotated[datetime, AfterValidator(_attach_utc)]


class TaskPublic(BaseModel):
    id: int
    plan_id: int
    topic_id: int | None = None
    title: str
    description: str
    type: TaskType
    status: TaskStatus
    difficulty: Difficulty
    start_time: UTCDatetime
    end_time: UTCDatetime
    duration: int
    original_start_time: UTCDatetime | None = None
    original_end_time: UTCDatetime | None = None
    meta: dict[str, Any] = {}

    model_config = ConfigDict(from_attributes=True)
