"""Member workload estimation against a weekly capacity.

Open work is converted into estimated hours: unchecked tasks, open issues,
unmerged pull requests and recent commits each carry a fixed hour cost. The
estimate is a planning heuristic; it does not measure time actually spent.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from logging import getLogger

from ..settings import settings
from .dates import utcnow
from .github.models import Issue, Member, Project, ProjectItem
from .stats import MemberDetailedStats
from .tasks import count_completed_tasks, count_tasks

logger = getLogger(__name__)

# Checked in order; the first label match wins
ISSUE_TYPES = ("bug", "feature", "documentation")
OTHER_ISSUE_TYPE = "other"
BACKLOG_STATUS = "backlog"
REVIEW_LABEL = "review"


@dataclass
class TaskCount:
    total: int = 0
    completed: int = 0

    @property
    def remaining(self) -> int:
        return self.total - self.completed


@dataclass
class IssueTypeStats:
    count: int = 0
    tasks: int = 0
    completed: int = 0


@dataclass
class WorkloadBreakdown:
    task_hours: float = 0.0
    issue_hours: float = 0.0
    pr_hours: float = 0.0
    commit_hours: float = 0.0

    @property
    def total(self) -> float:
        return self.task_hours + self.issue_hours + self.pr_hours + self.commit_hours


@dataclass
class MemberUtilization:
    member: Member
    active_issues: int
    active_prs: int
    total_commits: int
    estimated_hours: float
    utilization_percentage: float
    status: str
    workload: WorkloadBreakdown
    tasks: TaskCount
    completion_efficiency: int
    completed_last_week: int
    average_completion_time: float
    issue_types: dict[str, IssueTypeStats] = field(default_factory=dict)
    issues: list[Issue] = field(default_factory=list)


def find_project_item(issue: Issue, projects: list[Project]) -> ProjectItem | None:
    """First project board item referencing the issue, searching projects in order."""
    for project in projects:
        for item in project.issues:
            if item.number == issue.number and item.repository == issue.repository.name:
                return item
    return None


def matches_workload_status(issue: Issue, projects: list[Project], statuses: list[str]) -> bool:
    """Whether an issue's board status counts as workload.

    Statuses match by case-insensitive substring, so "in progress" matches a
    board column named "In Progress (sprint 3)". Issues that are on no board,
    or have no status there, are treated as backlog. An empty status list
    matches everything.
    """
    if not statuses:
        return True

    item = find_project_item(issue, projects)
    if item is None or not item.status:
        return BACKLOG_STATUS in statuses

    issue_status = item.status.lower()
    return any(status in issue_status for status in statuses)


def count_issue_tasks(issues: list[Issue]) -> TaskCount:
    counts = TaskCount()
    for issue in issues:
        counts.total += count_tasks(issue.body)
        counts.completed += count_completed_tasks(issue.body)
    return counts


def calculate_completion_efficiency(issues: list[Issue]) -> int:
    """Mean task completion percentage over the issues that have tasks.

    Returns:
        Whole percentage in [0, 100], 0 when no issue has tasks
    """
    percentages = []
    for issue in issues:
        total = count_tasks(issue.body)
        if total > 0:
            percentages.append(count_completed_tasks(issue.body) / total * 100)

    if not percentages:
        return 0
    return min(math.floor(sum(percentages) / len(percentages) + 0.5), 100)


def calculate_average_completion_time(issues: list[Issue]) -> float:
    """Task-weighted average days from creation to close.

    Each closed issue is weighted by its task count (at least 1), so a large
    checklist counts for more than a one-line fix. ``closed_at`` is used when
    known, otherwise ``updated_at``.

    Args:
        issues: Issues to consider; open issues are ignored

    Returns:
        Days rounded to one decimal, never negative, 0 without closed issues
    """
    weighted_days = 0.0
    total_weight = 0
    for issue in issues:
        completed_at = issue.closed_at or issue.updated_at
        if not issue.is_closed or issue.created_at is None or completed_at is None:
            continue

        days = (completed_at - issue.created_at).total_seconds() / 86400
        weight = max(count_tasks(issue.body), 1)
        weighted_days += days * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0

    logger.debug(f"Average completion time over weight {total_weight}: {weighted_days / total_weight:.2f} days")
    return max(round(weighted_days / total_weight, 1), 0.0)


def classify_issue_type(issue: Issue) -> str:
    """Issue type from its labels: bug, feature, documentation or other."""
    labels = [label.lower() for label in issue.labels]
    for issue_type in ISSUE_TYPES:
        if any(issue_type in label for label in labels):
            return issue_type
    return OTHER_ISSUE_TYPE


def analyze_issue_types(issues: list[Issue]) -> dict[str, IssueTypeStats]:
    breakdown = {issue_type: IssueTypeStats() for issue_type in (*ISSUE_TYPES, OTHER_ISSUE_TYPE)}
    for issue in issues:
        stats = breakdown[classify_issue_type(issue)]
        stats.count += 1
        stats.tasks += count_tasks(issue.body)
        stats.completed += count_completed_tasks(issue.body)
    return breakdown


def get_workload_status(estimated_hours: float) -> str:
    """Classify estimated weekly hours as low, optimal, high or critical."""
    if estimated_hours <= settings.workload_low_hours:
        return "low"
    elif estimated_hours <= settings.workload_optimal_hours:
        return "optimal"
    elif estimated_hours <= settings.workload_high_hours:
        return "high"
    return "critical"


def calculate_member_utilization(
    member_stats: MemberDetailedStats,
    projects: list[Project],
    now: datetime | None = None,
    statuses: list[str] | None = None,
) -> MemberUtilization:
    """Estimate a member's open workload and how it compares to weekly capacity.

    Args:
        member_stats: Detailed statistics for the member (assigned issues and code activity)
        projects: Projects used to look up each issue's board status
        now: Reference time for the recent activity window (default: current UTC time)
        statuses: Board statuses that count as workload (default: settings.workload_statuses)

    Returns:
        MemberUtilization with the hour breakdown, utilization and supporting metrics
    """
    now = now or utcnow()
    if statuses is None:
        statuses = settings.workload_statuses
    statuses = [status.lower() for status in statuses]
    window_start = now - timedelta(days=settings.activity_window_days)

    issues = [issue for issue in member_stats.issues if matches_workload_status(issue, projects, statuses)]
    active_issues = [issue for issue in issues if not issue.is_closed]
    review_issues = [issue for issue in active_issues if REVIEW_LABEL in issue.labels]
    code = member_stats.code_stats
    open_prs = code.total_prs - code.merged_prs
    recent_commits = [c for c in code.commits if c.authored_at is not None and c.authored_at >= window_start]

    tasks = count_issue_tasks(active_issues)
    workload = WorkloadBreakdown(
        task_hours=tasks.remaining * settings.active_task_hours,
        issue_hours=(len(active_issues) - len(review_issues)) * settings.active_issue_hours
        + len(review_issues) * settings.review_issue_hours,
        pr_hours=open_prs * settings.pr_review_hours,
        commit_hours=len(recent_commits) * settings.commit_hours,
    )
    estimated_hours = workload.total

    logger.debug(
        f"Workload for {member_stats.member.login}: {len(issues)} issues in scope, "
        f"{estimated_hours:.2f} estimated hours"
    )

    return MemberUtilization(
        member=member_stats.member,
        active_issues=len(active_issues),
        active_prs=open_prs,
        total_commits=code.total_commits,
        estimated_hours=estimated_hours,
        utilization_percentage=estimated_hours / settings.weekly_capacity_hours * 100,
        status=get_workload_status(estimated_hours),
        workload=workload,
        tasks=tasks,
        completion_efficiency=calculate_completion_efficiency(issues),
        completed_last_week=sum(
            1 for issue in issues if issue.is_closed and issue.closed_at is not None and issue.closed_at > window_start
        ),
        average_completion_time=calculate_average_completion_time(issues),
        issue_types=analyze_issue_types(issues),
        issues=issues,
    )


def calculate_team_utilization(
    detailed_stats: list[MemberDetailedStats],
    projects: list[Project],
    now: datetime | None = None,
    statuses: list[str] | None = None,
) -> list[MemberUtilization]:
    now = now or utcnow()
    return [calculate_member_utilization(stats, projects, now=now, statuses=statuses) for stats in detailed_stats]
