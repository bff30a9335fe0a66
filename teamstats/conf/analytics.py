from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class AnalyticsSettings(BaseSettings):
    """Tuning knobs for the aggregation engine."""

    # Schedule progress blend
    issue_progress_weight: float = Field(
        default=0.7,
        description="Weight of the issue completion ratio in schedule progress",
    )
    time_progress_weight: float = Field(
        default=0.3,
        description="Weight of the elapsed-vs-planned time ratio in schedule progress",
    )

    # Due date classification
    due_soon_days: int = Field(
        default=7,
        description="Open issues due within this many days are flagged as due soon",
    )

    # Activity windows
    activity_window_days: int = Field(
        default=7,
        description="Number of calendar days covered by activity time series",
    )
    recent_activity_limit: int = Field(
        default=5,
        description="Number of events shown in a repository's recent activity feed",
    )

    # Time spent heuristic
    full_day_hours: int = Field(
        default=8,
        description="Hours credited for a day with more than one activity",
    )
    half_day_hours: int = Field(
        default=4,
        description="Hours credited for a day with a single activity",
    )

    # Derived views
    page_size: int = Field(
        default=10,
        description="Number of rows per page in paginated views",
    )

    @field_validator("due_soon_days")
    @classmethod
    def validate_due_soon_days(cls, v: int) -> int:
        """Validate the due soon threshold is not negative."""
        if v < 0:
            raise ValueError("due_soon_days must not be negative")
        return v

    @field_validator("activity_window_days", "recent_activity_limit", "page_size", "full_day_hours", "half_day_hours")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate that windows, limits and hour counts are at least 1."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_progress_weights(self) -> "AnalyticsSettings":
        """Validate that the progress weights form a proper blend."""
        for weight in (self.issue_progress_weight, self.time_progress_weight):
            if not 0 <= weight <= 1:
                raise ValueError("progress weights must be between 0 and 1")
        if abs(self.issue_progress_weight + self.time_progress_weight - 1) > 1e-9:
            raise ValueError("issue_progress_weight and time_progress_weight must sum to 1")
        return self
