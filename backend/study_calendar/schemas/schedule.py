from pydantic import BaseModel, Field, computed_field

from study_calendar.schemas.task import TaskPublic, UTCDatetime


class RescheduleRequest(BaseModel):
    user_id: int


class RescheduledTask(BaseModel):
    id: int
    title: str
    old_start_time: UTCDatetime
    new_start_time: UTCDatetime
    new_end_time: UTCDatetime
    topic: str
    is_fallback: bool = False


class FailedTask(BaseModel):
    id: int
    title: str
    reason: str


class RescheduleResult(BaseModel):
    success: bool = True
    message: str
    rescheduled: list[RescheduledTask] = Field(default_factory=list)
    failed: list[FailedTask] = Field(default_factory=list)
    alert_id: int | None = None

    @computed_field
    @property
    def rescheduled_count(self) -> int:
        return len(self.rescheduled)

    @computed_field
    @property
    def failed_count(self) -> int:
        return len(self.failed)


class ReviewRequest(BaseModel):
    user_id: int
    topic_id: int
    alert_id: int | None = None
    source: str | None = None


class ReviewScheduleResult(BaseModel):
    success: bool = True
    message: str
    task: TaskPublic
    alert_id: int | None = None
    is_existing: bool = False
    is_fallback: bool = False
