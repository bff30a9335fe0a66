"""Tests for settings configuration."""

import pytest
from pydantic import ValidationError

from teamstats.conf.analytics import AnalyticsSettings
from teamstats.conf.settings import Settings
from teamstats.conf.workload import WorkloadSettings
from teamstats.settings import settings


def test_settings_is_settings_class():
    """Test that settings is an instance of Settings."""
    assert isinstance(settings, Settings)


def test_settings_has_project_name():
    assert settings.project_name == "teamstats"


def test_settings_inherits_from_analytics_settings():
    assert issubclass(Settings, AnalyticsSettings)


def test_analytics_defaults():
    """Test the default aggregation parameters."""
    test_settings = Settings()

    assert test_settings.issue_progress_weight == 0.7
    assert test_settings.time_progress_weight == 0.3
    assert test_settings.due_soon_days == 7
    assert test_settings.activity_window_days == 7
    assert test_settings.recent_activity_limit == 5
    assert test_settings.page_size == 10
    assert test_settings.full_day_hours == 8
    assert test_settings.half_day_hours == 4
    assert test_settings.debug is False


def test_debug_from_env(monkeypatch):
    monkeypatch.setenv("DEBUG", "True")
    assert Settings().debug is True


def test_page_size_from_env(monkeypatch):
    monkeypatch.setenv("PAGE_SIZE", "25")
    assert Settings().page_size == 25


def test_progress_weights_must_sum_to_one():
    with pytest.raises(ValidationError):
        Settings(issue_progress_weight=0.5, time_progress_weight=0.3)


def test_progress_weights_custom_blend():
    test_settings = Settings(issue_progress_weight=0.5, time_progress_weight=0.5)
    assert test_settings.time_progress_weight == 0.5


def test_progress_weights_out_of_range():
    with pytest.raises(ValidationError):
        Settings(issue_progress_weight=1.5, time_progress_weight=-0.5)


@pytest.mark.parametrize("field", ["activity_window_days", "recent_activity_limit", "page_size", "full_day_hours"])
def test_positive_fields(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_due_soon_days_not_negative():
    with pytest.raises(ValidationError):
        Settings(due_soon_days=-1)
    assert Settings(due_soon_days=0).due_soon_days == 0


def test_settings_inherits_from_workload_settings():
    assert issubclass(Settings, WorkloadSettings)


def test_workload_defaults():
    """Test the default capacity model."""
    test_settings = Settings()

    assert test_settings.weekly_capacity_hours == 40
    assert test_settings.workload_low_hours == 15
    assert test_settings.workload_optimal_hours == 30
    assert test_settings.workload_high_hours == 45
    assert test_settings.active_issue_hours == 2
    assert test_settings.review_issue_hours == 1
    assert test_settings.active_task_hours == 0.5
    assert test_settings.pr_review_hours == 1
    assert test_settings.commit_hours == 0.25
    assert test_settings.workload_statuses == ["todo", "in progress", "review"]


def test_workload_statuses_from_env(monkeypatch):
    monkeypatch.setenv("WORKLOAD_STATUSES", '["Backlog", "Todo"]')
    assert Settings().workload_statuses == ["backlog", "todo"]


def test_weekly_capacity_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(weekly_capacity_hours=0)


def test_workload_thresholds_must_ascend():
    with pytest.raises(ValidationError):
        Settings(workload_low_hours=30, workload_optimal_hours=20)


def test_hour_estimates_not_negative():
    with pytest.raises(ValidationError):
        Settings(commit_hours=-1)
    assert Settings(commit_hours=0).commit_hours == 0
