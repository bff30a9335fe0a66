"""Dashboard facade over a fetched data snapshot.

The dashboard holds the current snapshot and filter state. Every accessor is
recomputed from scratch on each call, so replacing the snapshot or the filter
is all it takes to refresh the derived views.
"""

from dataclasses import dataclass
from datetime import datetime
from logging import getLogger

from .comparison import ProgressAnalysis, calculate_progress_analysis
from .filters import IssueFilter, ProjectRow, filter_issues
from .github.models import DataSnapshot, Issue, Project
from .stats import (
    DailyActivity,
    MemberDetailedStats,
    OverallStats,
    ProjectStats,
    RepositoryStats,
    build_activity_series,
    calculate_code_stats,
    calculate_member_stats,
    calculate_overall_stats,
    calculate_project_stats,
    calculate_repository_stats,
    issue_in_project,
)
from .timeline import RepositoryTimeline, get_project_state, get_project_timeline, get_repository_timeline
from .utilization import MemberUtilization, calculate_team_utilization

logger = getLogger(__name__)


@dataclass
class ReportCategory:
    id: str
    name: str
    type: str
    value: str | None = None


class Dashboard:
    """Derived views over one snapshot and the active filter.

    Args:
        snapshot: Result of the upstream fetch, or None while it is pending
        issue_filter: Active filter state (default: no filtering)
        now: Fixed reference time for schedule calculations (default: current time)
    """

    def __init__(
        self,
        snapshot: DataSnapshot | None = None,
        issue_filter: IssueFilter | None = None,
        now: datetime | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.filter = issue_filter or IssueFilter()
        self.now = now

    def refresh(self, snapshot: DataSnapshot) -> None:
        """Replace the snapshot; previously derived results are simply discarded."""
        self.snapshot = snapshot

    def update_filter(self, kind: str, values: list[str]) -> None:
        self.filter = self.filter.with_values(kind, values)
        logger.debug(f"Filter {kind} set to {values}")

    def is_project_data_available(self) -> bool:
        return bool(self.snapshot and self.snapshot.projects)

    def filtered_issues(self) -> list[Issue]:
        if self.snapshot is None:
            return []
        return filter_issues(self.snapshot.issues, self.snapshot.projects, self.filter)

    def member_detailed_stats(self) -> list[MemberDetailedStats]:
        """Issue, task and code statistics for every member.

        Issue and task statistics follow the active filter; code statistics
        cover all pull requests and commits.
        """
        if self.snapshot is None:
            return []

        issues = self.filtered_issues()
        results = []
        for member in self.snapshot.members:
            member_stats = calculate_member_stats(member, issues)
            results.append(
                MemberDetailedStats(
                    member=member_stats.member,
                    issue_stats=member_stats.issue_stats,
                    task_stats=member_stats.task_stats,
                    issues=member_stats.issues,
                    code_stats=calculate_code_stats(member, self.snapshot.pull_requests, self.snapshot.commits),
                )
            )
        return results

    def member(self, login: str) -> MemberDetailedStats | None:
        for stats in self.member_detailed_stats():
            if stats.member.login == login:
                return stats
        return None

    def member_activity(self, login: str) -> list[DailyActivity]:
        """Daily commits, PRs and assigned issues of one member over the activity window."""
        stats = self.member(login)
        if stats is None:
            return []
        return build_activity_series(
            stats.code_stats.commits, stats.code_stats.pull_requests, stats.issues, now=self.now
        )

    def involved_projects(self, login: str) -> list[Project]:
        """Projects containing at least one issue assigned to the member."""
        stats = self.member(login)
        if stats is None or self.snapshot is None:
            return []
        return [
            project
            for project in self.snapshot.projects
            if any(
                issue_in_project(issue, project) or (issue.project and issue.project.name == project.name)
                for issue in stats.issues
            )
        ]

    def member_utilization(self, statuses: list[str] | None = None) -> list[MemberUtilization]:
        """Estimated workload per member over the filtered issues."""
        if self.snapshot is None:
            return []
        return calculate_team_utilization(
            self.member_detailed_stats(), self.snapshot.projects, now=self.now, statuses=statuses
        )

    def compare_with(self, baseline: DataSnapshot) -> ProgressAnalysis | None:
        """Progress since an older snapshot, None without a current snapshot."""
        if self.snapshot is None:
            return None
        return calculate_progress_analysis(baseline, self.snapshot)

    def overall_stats(self) -> OverallStats | None:
        if self.snapshot is None:
            return None
        return calculate_overall_stats(self.filtered_issues())

    def report_categories(self) -> list[ReportCategory]:
        """Selectable report scopes with their issue counts."""
        if self.snapshot is None:
            return []

        categories = [ReportCategory(id="all", name="All Issues", type="all")]

        for repo in self.snapshot.repositories:
            count = sum(1 for issue in self.snapshot.issues if issue.repository.name == repo.name)
            categories.append(
                ReportCategory(
                    id=f"repo-{repo.name}",
                    name=f"{repo.name} ({count} issues)",
                    type="repository",
                    value=repo.name,
                )
            )

        for project in self.snapshot.projects:
            categories.append(
                ReportCategory(
                    id=f"project-{project.number}",
                    name=f"{project.name} ({len(project.issues)} issues)",
                    type="project",
                    value=project.name,
                )
            )

        for member in self.snapshot.members:
            count = sum(
                1 for issue in self.snapshot.issues if issue.assignee and issue.assignee.login == member.login
            )
            categories.append(
                ReportCategory(
                    id=f"member-{member.login}",
                    name=f"{member.login} ({count} issues)",
                    type="member",
                    value=member.login,
                )
            )

        return categories

    def repository_stats(self, name: str) -> RepositoryStats | None:
        if self.snapshot is None:
            return None
        for repo in self.snapshot.repositories:
            if repo.name == name:
                return calculate_repository_stats(
                    repo, self.snapshot.issues, self.snapshot.pull_requests, self.snapshot.commits, now=self.now
                )
        return None

    def repository_timeline(self, name: str) -> RepositoryTimeline | None:
        if self.snapshot is None:
            return None
        return get_repository_timeline(name, self.snapshot.issues, self.snapshot.timeline_events, now=self.now)

    def find_project(self, number: int) -> Project | None:
        if self.snapshot is None:
            return None
        for project in self.snapshot.projects:
            if project.number == number:
                return project
        return None

    def project_stats(self, number: int) -> ProjectStats | None:
        project = self.find_project(number)
        if project is None or self.snapshot is None:
            return None
        return calculate_project_stats(project, self.snapshot.issues)

    def project_timelines(self) -> list[ProjectRow]:
        """One row per project with its timeline and open/closed state."""
        if self.snapshot is None:
            return []
        return [
            ProjectRow(
                project=project,
                timeline=get_project_timeline(
                    project, self.snapshot.issues, self.snapshot.timeline_events, now=self.now
                ),
                state=get_project_state(project, self.snapshot.issues),
            )
            for project in self.snapshot.projects
        ]
