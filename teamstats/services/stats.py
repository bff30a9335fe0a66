"""Per-member, per-repository and per-project statistics.

Each calculator partitions the raw collections by an ownership key (member
login, repository name, or project membership) and folds the subset into a
summary. Missing optional relations count as no contribution.
"""

import math
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger

from ..settings import settings
from .dates import falls_on_day, last_n_days, utcnow
from .github.models import Commit, Issue, Member, Project, PullRequest, Repository
from .tasks import (
    TaskMetrics,
    calculate_percentage,
    calculate_task_progress,
    count_completed_tasks,
    count_tasks,
    sum_task_metrics,
)

logger = getLogger(__name__)


@dataclass
class MemberStats:
    member: Member
    issue_stats: TaskMetrics
    task_stats: TaskMetrics
    issues: list[Issue]


@dataclass
class MemberCodeStats:
    total_commits: int = 0
    total_prs: int = 0
    merged_prs: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    files_changed: int = 0
    average_commits_per_day: float = 0.0
    average_pr_size: float = 0.0
    commits: list[Commit] = field(default_factory=list)
    pull_requests: list[PullRequest] = field(default_factory=list)


@dataclass
class MemberDetailedStats(MemberStats):
    code_stats: MemberCodeStats = field(default_factory=MemberCodeStats)


@dataclass
class StatusDistribution:
    open: int = 0
    in_progress: int = 0
    closed: int = 0


@dataclass
class OverallStats:
    issues: TaskMetrics
    tasks: TaskMetrics
    status_distribution: StatusDistribution


@dataclass
class DailyActivity:
    date: str
    commits: int = 0
    pull_requests: int = 0
    issues: int = 0


@dataclass
class RepositoryStats:
    repository: Repository
    issues: list[Issue]
    pull_requests: list[PullRequest]
    commits: list[Commit]
    completed_issues: list[Issue]
    merged_prs: list[PullRequest]
    task_progress: TaskMetrics
    contributors: list[str]
    activity: list[DailyActivity]
    issue_progress: float
    task_progress_percentage: float


@dataclass
class ProjectStats:
    project: Project
    issues: list[Issue]
    completed_issues: list[Issue]
    task_progress: TaskMetrics
    members: list[str]
    issue_progress: float
    task_progress_percentage: float


@dataclass
class DueDateStatus:
    status: str
    label: str
    color: str


def calculate_issue_completion(issues: list[Issue]) -> TaskMetrics:
    """Closed issues over all issues."""
    completed = sum(1 for issue in issues if issue.is_closed)
    return TaskMetrics.from_counts(completed, len(issues))


def calculate_issue_task_progress(issues: Iterable[Issue]) -> TaskMetrics:
    return sum_task_metrics(calculate_task_progress(issue.body) for issue in issues)


def calculate_member_stats(member: Member, issues: list[Issue]) -> MemberStats:
    """Calculate issue and task completion for the issues assigned to a member.

    Args:
        member: Team member to report on
        issues: Issues to consider (typically the filtered issue list)

    Returns:
        MemberStats for the member's assigned issues
    """
    member_issues = [issue for issue in issues if issue.assignee and issue.assignee.login == member.login]

    return MemberStats(
        member=member,
        issue_stats=calculate_issue_completion(member_issues),
        task_stats=calculate_issue_task_progress(member_issues),
        issues=member_issues,
    )


def calculate_code_stats(member: Member, pulls: list[PullRequest], commits: list[Commit]) -> MemberCodeStats:
    """Calculate code activity for a member's pull requests and commits.

    Args:
        member: Team member to report on
        pulls: All pull requests in the snapshot
        commits: All commits in the snapshot

    Returns:
        MemberCodeStats aggregated over the member's PRs and commits
    """
    member_pulls = [pr for pr in pulls if pr.user.login == member.login]
    member_commits = [commit for commit in commits if commit.author and commit.author.login == member.login]

    total_additions = sum(pr.additions or 0 for pr in member_pulls)
    total_deletions = sum(pr.deletions or 0 for pr in member_pulls)
    total_files = sum(pr.changed_files or 0 for pr in member_pulls)

    # Commits per active day, where a day is a UTC calendar date
    commit_days = {commit.authored_at.date() for commit in member_commits if commit.authored_at}
    average_commits_per_day = len(member_commits) / len(commit_days) if commit_days else 0.0

    average_pr_size = (total_additions + total_deletions) / len(member_pulls) if member_pulls else 0.0

    return MemberCodeStats(
        total_commits=len(member_commits),
        total_prs=len(member_pulls),
        merged_prs=sum(1 for pr in member_pulls if pr.merged_at is not None),
        lines_added=total_additions,
        lines_deleted=total_deletions,
        files_changed=total_files,
        average_commits_per_day=average_commits_per_day,
        average_pr_size=average_pr_size,
        commits=member_commits,
        pull_requests=member_pulls,
    )


def calculate_status_distribution(issues: list[Issue]) -> StatusDistribution:
    """Bucket issues into open, in progress and closed.

    Open means no task has been checked off yet. In progress means at least one
    but not every task is checked. An open issue with every task checked is in
    neither bucket.
    """
    distribution = StatusDistribution()
    for issue in issues:
        if issue.is_closed:
            distribution.closed += 1
            continue

        completed = count_completed_tasks(issue.body)
        if completed == 0:
            distribution.open += 1
        elif completed < count_tasks(issue.body):
            distribution.in_progress += 1
    return distribution


def get_status_bucket(issue: Issue) -> str | None:
    """Name of the status distribution bucket an issue falls into."""
    if issue.is_closed:
        return "closed"
    completed = count_completed_tasks(issue.body)
    if completed == 0:
        return "open"
    if completed < count_tasks(issue.body):
        return "in-progress"
    return None


def calculate_overall_stats(issues: list[Issue]) -> OverallStats:
    return OverallStats(
        issues=calculate_issue_completion(issues),
        tasks=calculate_issue_task_progress(issues),
        status_distribution=calculate_status_distribution(issues),
    )


def build_activity_series(
    commits: list[Commit],
    pulls: list[PullRequest],
    issues: list[Issue],
    days: int | None = None,
    now: datetime | None = None,
) -> list[DailyActivity]:
    """Count commits, PRs and issues per day over a trailing window.

    Args:
        commits: Commits to bucket by authored date
        pulls: Pull requests to bucket by creation date
        issues: Issues to bucket by creation date
        days: Window length (default: settings.activity_window_days)
        now: Reference time (default: current UTC time)

    Returns:
        One DailyActivity per UTC calendar day, oldest first, ending today
    """
    if days is None:
        days = settings.activity_window_days

    series = []
    for day in last_n_days(days, now=now):
        series.append(
            DailyActivity(
                date=day.isoformat(),
                commits=sum(1 for commit in commits if falls_on_day(commit.authored_at, day)),
                pull_requests=sum(1 for pr in pulls if falls_on_day(pr.created_at, day)),
                issues=sum(1 for issue in issues if falls_on_day(issue.created_at, day)),
            )
        )
    return series


def calculate_repository_stats(
    repository: Repository,
    issues: list[Issue],
    pulls: list[PullRequest],
    commits: list[Commit],
    now: datetime | None = None,
) -> RepositoryStats:
    """Calculate completion, code activity and contributors for one repository."""
    repo_issues = [issue for issue in issues if issue.repository.name == repository.name]
    repo_pulls = [pr for pr in pulls if pr.repository.name == repository.name]
    repo_commits = [commit for commit in commits if commit.repository.name == repository.name]

    completed_issues = [issue for issue in repo_issues if issue.is_closed]
    task_progress = calculate_issue_task_progress(repo_issues)

    # dict keeps first-seen order while deduplicating
    contributors: dict[str, None] = {}
    for issue in repo_issues:
        if issue.assignee:
            contributors[issue.assignee.login] = None
    for pr in repo_pulls:
        contributors[pr.user.login] = None
    for commit in repo_commits:
        if commit.author:
            contributors[commit.author.login] = None

    logger.debug(
        f"Repository {repository.name}: {len(repo_issues)} issues, {len(repo_pulls)} PRs, "
        f"{len(repo_commits)} commits, {len(contributors)} contributors"
    )

    return RepositoryStats(
        repository=repository,
        issues=repo_issues,
        pull_requests=repo_pulls,
        commits=repo_commits,
        completed_issues=completed_issues,
        merged_prs=[pr for pr in repo_pulls if pr.merged_at is not None],
        task_progress=task_progress,
        contributors=list(contributors),
        activity=build_activity_series(repo_commits, repo_pulls, repo_issues, now=now),
        issue_progress=calculate_percentage(len(completed_issues), len(repo_issues)),
        task_progress_percentage=task_progress.percentage,
    )


def issue_in_project(issue: Issue, project: Project) -> bool:
    """Whether the project's item list references this issue."""
    return any(
        item.number == issue.number and item.repository == issue.repository.name for item in project.issues
    )


def filter_project_issues(project: Project, issues: list[Issue]) -> list[Issue]:
    return [issue for issue in issues if issue_in_project(issue, project)]


def calculate_project_stats(project: Project, issues: list[Issue]) -> ProjectStats:
    """Calculate completion, task progress and members for a project's issues."""
    project_issues = filter_project_issues(project, issues)
    completed_issues = [issue for issue in project_issues if issue.is_closed]
    task_progress = calculate_issue_task_progress(project_issues)

    members: dict[str, None] = {}
    for issue in project_issues:
        if issue.assignee:
            members[issue.assignee.login] = None

    return ProjectStats(
        project=project,
        issues=project_issues,
        completed_issues=completed_issues,
        task_progress=task_progress,
        members=list(members),
        issue_progress=calculate_percentage(len(completed_issues), len(project_issues)),
        task_progress_percentage=task_progress.percentage,
    )


def get_due_date_status(issue: Issue, now: datetime | None = None) -> DueDateStatus:
    """Classify an issue's due date risk.

    Args:
        issue: Issue to classify
        now: Reference time (default: current UTC time)

    Returns:
        DueDateStatus with one of the statuses:
        - "safe"/"Completed": issue is closed, regardless of dates
        - "none"/"No Date": open issue without a usable due date
        - "overdue"/"Overdue": due date has passed
        - "soon"/"Due Soon": due within settings.due_soon_days days
        - "safe"/"On Track": due later than that
    """
    if issue.is_closed:
        return DueDateStatus(status="safe", label="Completed", color="success")

    if issue.due_date is None:
        return DueDateStatus(status="none", label="No Date", color="neutral")

    now = now or utcnow()
    diff_days = math.ceil((issue.due_date - now).total_seconds() / 86400)

    if diff_days < 0:
        return DueDateStatus(status="overdue", label="Overdue", color="danger")
    elif diff_days <= settings.due_soon_days:
        return DueDateStatus(status="soon", label="Due Soon", color="warning")
    return DueDateStatus(status="safe", label="On Track", color="success")


def summarize_due_dates(issues: list[Issue], now: datetime | None = None) -> dict[str, int]:
    """Count issues per due date status, in a fixed display order."""
    counts = Counter(get_due_date_status(issue, now=now).status for issue in issues)
    return {status: counts.get(status, 0) for status in ("overdue", "soon", "safe", "none")}
