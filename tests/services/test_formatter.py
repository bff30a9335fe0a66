from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from teamstats.services.dashboard import Dashboard
from teamstats.services.filters import paginate
from teamstats.services.formatter import (
    format_member_stats,
    format_overall_stats,
    format_progress_analysis,
    format_project_page,
    format_repository,
    format_utilization,
)
from teamstats.services.github.models import DataSnapshot


@pytest.fixture
def dashboard(snapshot_data, now) -> Dashboard:
    return Dashboard(DataSnapshot.model_validate(snapshot_data), now=now)


def _capture(func, *args) -> str:
    output = StringIO()
    console = Console(file=output, force_terminal=True, width=160)

    with patch("teamstats.services.formatter.Console", return_value=console):
        func(*args)

    return output.getvalue()


def test_format_overall_stats(dashboard):
    result = _capture(format_overall_stats, dashboard.overall_stats(), {"overdue": 1, "soon": 0, "safe": 1, "none": 1})

    assert "Summary" in result
    assert "Issues:" in result
    assert "Status Distribution" in result
    assert "In Progress" in result
    assert "Overdue" in result


def test_format_overall_stats_without_data():
    result = _capture(format_overall_stats, None)

    assert "No Results" in result
    assert "No data loaded" in result


def test_format_member_stats(dashboard):
    result = _capture(format_member_stats, dashboard.member_detailed_stats())

    assert "Members" in result
    assert "alice" in result
    assert "bob" in result
    assert "Total" in result


def test_format_member_stats_empty():
    result = _capture(format_member_stats, [])

    assert "No members found" in result


def test_format_project_page(dashboard):
    result = _capture(format_project_page, paginate(dashboard.project_timelines(), page=1, page_size=10))

    assert "Projects" in result
    assert "Auth" in result
    assert "Website" in result
    assert "Showing" in result


def test_format_project_page_empty():
    result = _capture(format_project_page, paginate([]))

    assert "No projects found" in result


def test_format_repository(dashboard):
    result = _capture(format_repository, dashboard.repository_stats("api"), dashboard.repository_timeline("api"))

    assert "api" in result
    assert "Backend API" in result
    assert "Activity" in result
    assert "Contributors" in result
    assert "Recent Activity" in result
    assert "Login endpoint" in result


def test_format_utilization(dashboard):
    result = _capture(format_utilization, dashboard.member_utilization(statuses=[]))

    assert "Resource Utilization" in result
    assert "alice" in result
    assert "bob" in result
    assert "low" in result


def test_format_utilization_empty():
    result = _capture(format_utilization, [])

    assert "No Results" in result


def test_format_progress_analysis(dashboard, snapshot_data):
    snapshot_data["issues"][0]["state"] = "open"
    baseline = DataSnapshot.model_validate(snapshot_data)

    result = _capture(format_progress_analysis, dashboard.compare_with(baseline))

    assert "Progress Analysis" in result
    assert "Issues Completed" in result
    assert "Projects" in result
    assert "Members" in result
    assert "Repositories" in result
    assert "Auth" in result


def test_format_progress_analysis_without_data():
    result = _capture(format_progress_analysis, None)

    assert "No data loaded" in result
