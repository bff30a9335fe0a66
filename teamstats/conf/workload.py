from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class WorkloadSettings(BaseSettings):
    """Capacity model for member resource utilization."""

    weekly_capacity_hours: float = Field(
        default=40,
        description="Working hours available to one member per week",
    )

    # Load thresholds in hours; above workload_high_hours a member is critical
    workload_low_hours: float = Field(
        default=15,
        description="Estimated weekly load at or below this is under-utilized",
    )
    workload_optimal_hours: float = Field(
        default=30,
        description="Estimated weekly load at or below this is the target range",
    )
    workload_high_hours: float = Field(
        default=45,
        description="Estimated weekly load at or below this is high; anything above is critical",
    )

    # Hour estimates per unit of open work
    active_issue_hours: float = Field(default=2, description="Hours for an open issue")
    review_issue_hours: float = Field(default=1, description="Hours for an open issue labelled for review")
    active_task_hours: float = Field(default=0.5, description="Hours per unchecked task on an open issue")
    pr_review_hours: float = Field(default=1, description="Hours per unmerged pull request")
    commit_hours: float = Field(default=0.25, description="Hours per commit in the recent activity window")

    workload_statuses: list[str] = Field(
        default=["todo", "in progress", "review"],
        description="Project board statuses counted as workload; issues without a status count as 'backlog'",
    )

    @field_validator("weekly_capacity_hours")
    @classmethod
    def validate_capacity(cls, v: float) -> float:
        """Validate the weekly capacity is positive."""
        if v <= 0:
            raise ValueError("weekly_capacity_hours must be positive")
        return v

    @field_validator(
        "active_issue_hours", "review_issue_hours", "active_task_hours", "pr_review_hours", "commit_hours"
    )
    @classmethod
    def validate_estimate(cls, v: float) -> float:
        if v < 0:
            raise ValueError("hour estimates must not be negative")
        return v

    @field_validator("workload_statuses")
    @classmethod
    def normalize_statuses(cls, v: list[str]) -> list[str]:
        return [status.lower() for status in v]

    @model_validator(mode="after")
    def validate_thresholds(self) -> "WorkloadSettings":
        """Validate that the load thresholds are ascending."""
        if not 0 <= self.workload_low_hours <= self.workload_optimal_hours <= self.workload_high_hours:
            raise ValueError("workload thresholds must satisfy 0 <= low <= optimal <= high")
        return self
