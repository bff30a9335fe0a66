import pytest

from teamstats.services.dashboard import Dashboard
from teamstats.services.filters import IssueFilter
from teamstats.services.github.models import DataSnapshot


@pytest.fixture
def dashboard(snapshot_data, now) -> Dashboard:
    return Dashboard(DataSnapshot.model_validate(snapshot_data), now=now)


def test_dashboard_without_snapshot():
    """Test that a pending fetch yields empty views rather than errors."""
    dashboard = Dashboard()

    assert dashboard.filtered_issues() == []
    assert dashboard.member_detailed_stats() == []
    assert dashboard.overall_stats() is None
    assert dashboard.report_categories() == []
    assert dashboard.project_timelines() == []
    assert dashboard.repository_stats("api") is None
    assert not dashboard.is_project_data_available()


def test_member_detailed_stats(dashboard):
    stats = {s.member.login: s for s in dashboard.member_detailed_stats()}

    assert stats["alice"].issue_stats.total == 2
    assert stats["alice"].issue_stats.completed == 1
    assert stats["alice"].task_stats.total == 2
    assert stats["alice"].code_stats.total_prs == 1
    assert stats["alice"].code_stats.total_commits == 1
    assert stats["bob"].issue_stats.total == 1
    assert stats["bob"].code_stats.total_prs == 0


def test_filter_changes_are_reflected(dashboard):
    """Test that derived views are recomputed after the filter changes."""
    assert len(dashboard.filtered_issues()) == 3

    dashboard.update_filter("repository", ["web"])

    assert [(i.number, i.repository.name) for i in dashboard.filtered_issues()] == [(1, "web")]
    assert dashboard.member("alice").issue_stats.total == 1
    assert dashboard.member("bob").issue_stats.total == 0
    assert dashboard.overall_stats().issues.total == 1


def test_project_filter(dashboard):
    dashboard.update_filter("project", ["Auth"])

    assert [i.title for i in dashboard.filtered_issues()] == ["Add login endpoint", "Rate limiting"]


def test_overall_stats(dashboard):
    stats = dashboard.overall_stats()

    assert stats.issues.total == 3
    assert stats.issues.completed == 1
    assert stats.tasks.total == 4
    assert stats.tasks.completed == 3
    assert stats.status_distribution.closed == 1
    assert stats.status_distribution.in_progress == 1
    assert stats.status_distribution.open == 1


def test_report_categories(dashboard):
    categories = dashboard.report_categories()

    assert categories[0].id == "all"
    names = {c.id: c.name for c in categories}
    assert names["repo-api"] == "api (2 issues)"
    assert names["project-7"] == "Auth (2 issues)"
    assert names["member-alice"] == "alice (2 issues)"
    assert names["member-bob"] == "bob (1 issues)"


def test_repository_views(dashboard):
    stats = dashboard.repository_stats("api")
    timeline = dashboard.repository_timeline("api")

    assert stats.contributors == ["alice", "bob"]
    assert len(stats.merged_prs) == 1
    assert timeline.total_issues == 2
    assert {m.login for m in timeline.members} == {"alice", "bob"}
    assert dashboard.repository_stats("missing") is None


def test_project_views(dashboard):
    rows = {row.project.name: row for row in dashboard.project_timelines()}

    assert rows["Auth"].state == "open"
    assert rows["Auth"].timeline.total_issues == 2
    assert rows["Website"].timeline.total_issues == 1
    assert dashboard.project_stats(7).members == ["alice", "bob"]
    assert dashboard.project_stats(99) is None
    assert dashboard.is_project_data_available()


def test_refresh_replaces_snapshot(dashboard):
    dashboard.refresh(DataSnapshot())

    assert dashboard.filtered_issues() == []
    assert dashboard.overall_stats().issues.total == 0


def test_dashboard_is_idempotent(snapshot_data, now):
    dashboard = Dashboard(DataSnapshot.model_validate(snapshot_data), issue_filter=IssueFilter(), now=now)

    assert dashboard.member_detailed_stats() == dashboard.member_detailed_stats()
    assert dashboard.project_timelines() == dashboard.project_timelines()


def test_member_activity(dashboard):
    series = dashboard.member_activity("alice")

    assert [day.date for day in series] == [f"2024-06-{day:02d}" for day in range(9, 16)]
    # Only the landing page issue was created inside the window
    assert {day.date: day.issues for day in series if day.issues} == {"2024-06-12": 1}
    assert sum(day.commits + day.pull_requests for day in series) == 0
    assert dashboard.member_activity("nobody") == []


def test_involved_projects(dashboard):
    assert [project.name for project in dashboard.involved_projects("alice")] == ["Auth", "Website"]
    assert [project.name for project in dashboard.involved_projects("bob")] == ["Auth"]
    assert dashboard.involved_projects("nobody") == []


def test_member_utilization(dashboard):
    """Test that issues off the project boards only count when backlog work is included."""
    default = {row.member.login: row for row in dashboard.member_utilization()}
    everything = {row.member.login: row for row in dashboard.member_utilization(statuses=[])}

    assert default["alice"].estimated_hours == 0
    assert default["bob"].estimated_hours == 0
    # Alice: one open issue without tasks; her only PR is merged and her commit is old
    assert everything["alice"].estimated_hours == 2.0
    # Bob: one open issue with one unchecked task
    assert everything["bob"].estimated_hours == 2.5


def test_compare_with(dashboard, snapshot_data):
    analysis = dashboard.compare_with(DataSnapshot.model_validate(snapshot_data))

    assert [change.name for change in analysis.project_changes] == ["Auth", "Website"]
    assert analysis.summary.overall_progress == 0
    assert Dashboard().compare_with(DataSnapshot()) is None


def test_dashboard_without_snapshot_member_views():
    dashboard = Dashboard()

    assert dashboard.member_activity("alice") == []
    assert dashboard.involved_projects("alice") == []
    assert dashboard.member_utilization() == []
