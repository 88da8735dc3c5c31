from pydantic import BaseModel, ConfigDict, Field, field_validator

from study_calendar.models.user import DEFAULT_AVAILABLE_DAYS, WEEKDAY_NAMES


class UserPreferences(BaseModel):
    """Scheduling preferences read from a user record."""

    available_days: list[str] = Field(default_factory=lambda: list(DEFAULT_AVAILABLE_DAYS))
    study_hours_per_day: int = Field(default=2, ge=0, le=24)
    preferred_study_time: str | None = None
    timezone: str = "UTC"

    model_config = ConfigDict(from_attributes=True)

    @field_validator("available_days", mode="before")
    @classmethod
    def _normalize_days(cls, value):
        if not value:
            return list(DEFAULT_AVAILABLE_DAYS)
        days = []
        for name in value:
            normalized = str(name).strip().capitalize()
            if normalized not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday: {name}")
            days.append(normalized)
        return days
