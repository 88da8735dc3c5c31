from pydantic import BaseModel, Field, computed_field

from study_calendar.schemas.task import UTCDatetime


class CleanupRequest(BaseModel):
    user_id: int


class DeletedTask(BaseModel):
    id: int
    title: str
    topic: str | None = None
    start_time: UTCDatetime


class TimeSummary(BaseModel):
    time: str  # "HH:MM" in the user's timezone
    count: int


class PassCounts(BaseModel):
    same_date_time_topic: int = 0
    same_time_topic_per_date: int = 0
    excessive_same_time: int = 0


class DuplicateCleanupResult(BaseModel):
    success: bool = True
    message: str
    deleted_tasks: list[DeletedTask] = Field(default_factory=list)
    times_summary: list[TimeSummary] = Field(default_factory=list)
    pass_counts: PassCounts = Field(default_factory=PassCounts)
    resolved_alert_ids: list[int] = Field(default_factory=list)

    @computed_field
    @property
    def deleted_count(self) -> int:
        return len(self.deleted_tasks)


class ReviewCleanupResult(BaseModel):
    success: bool = True
    message: str
    deleted_tasks: list[DeletedTask] = Field(default_factory=list)
    updated_alert_ids: list[int] = Field(default_factory=list)

    @computed_field
    @property
    def deleted_count(self) -> int:
        return len(self.deleted_tasks)


class ResolvedAlert(BaseModel):
    id: int
    message: str
    topic: str | None = None
    created_at: UTCDatetime


class AlertCleanupResult(BaseModel):
    success: bool = True
    message: str
    resolved_alerts: list[ResolvedAlert] = Field(default_factory=list)

    # Number of alerts resolved
    @computed_field
    @property
    def deleted_count(self) -> int:
        return len(self.resolved_alerts)


class FullCleanupResult(BaseModel):
    success: bool = True
    message: str
    reviews: ReviewCleanupResult
    alerts: AlertCleanupResult
    sessions: DuplicateCleanupResult
