"""Progress between two snapshots of the same team.

An older snapshot is compared against the current one per project, member and
repository. Entities are taken from the current snapshot; a project missing
from the older snapshot has no baseline and is left out.
"""

from dataclasses import dataclass
from logging import getLogger

from .github.models import DataSnapshot, Issue
from .stats import calculate_issue_task_progress, issue_in_project
from .tasks import TaskMetrics, calculate_percentage

logger = getLogger(__name__)

# (minimum score, level), checked top down; anything lower is CRITICAL_ACTIVITY
ACTIVITY_LEVELS = (
    (20, "Very High"),
    (10, "High"),
    (0, "Moderate"),
    (-10, "Low"),
)
CRITICAL_ACTIVITY = "Critical"
HIGH_PERFORMER_ACTIVITY = "Very High"


@dataclass
class TaskChange:
    old: TaskMetrics
    new: TaskMetrics
    change: float


@dataclass
class ProgressChange:
    name: str
    old_progress: float
    new_progress: float
    change: float
    total_issues: int
    completed_change: int
    tasks: TaskChange


@dataclass
class MemberChange(ProgressChange):
    pr_change: int
    commit_change: int
    activity_level: str


@dataclass
class RepositoryChange(ProgressChange):
    pr_change: int


@dataclass
class TaskProgressSummary:
    completed: int
    total: int
    change: int


@dataclass
class ComparisonSummary:
    overall_progress: float
    total_completed_issues: int
    total_new_prs: int
    total_new_commits: int
    needs_attention: int
    high_performers: int
    task_progress: TaskProgressSummary


@dataclass
class ProgressAnalysis:
    project_changes: list[ProgressChange]
    member_changes: list[MemberChange]
    repository_changes: list[RepositoryChange]
    summary: ComparisonSummary


def calculate_activity_level(commit_change: int, pr_change: int, issue_change: int, task_change: float) -> str:
    """Rate a member's momentum from the equally weighted change in four signals."""
    score = (commit_change + pr_change + issue_change + task_change) * 0.25
    for threshold, level in ACTIVITY_LEVELS:
        if score > threshold:
            return level
    return CRITICAL_ACTIVITY


def _progress_change(name: str, old_issues: list[Issue], new_issues: list[Issue]) -> ProgressChange:
    old_completed = sum(1 for issue in old_issues if issue.is_closed)
    new_completed = sum(1 for issue in new_issues if issue.is_closed)
    old_progress = calculate_percentage(old_completed, len(old_issues))
    new_progress = calculate_percentage(new_completed, len(new_issues))
    old_tasks = calculate_issue_task_progress(old_issues)
    new_tasks = calculate_issue_task_progress(new_issues)

    return ProgressChange(
        name=name,
        old_progress=old_progress,
        new_progress=new_progress,
        # Without a baseline there is nothing to compare against
        change=new_progress - old_progress if old_issues else 0.0,
        total_issues=len(new_issues),
        completed_change=new_completed - old_completed,
        tasks=TaskChange(old=old_tasks, new=new_tasks, change=new_tasks.percentage - old_tasks.percentage),
    )


def compare_projects(old: DataSnapshot, new: DataSnapshot) -> list[ProgressChange]:
    """Issue and task progress per project, matched by project number.

    Issue membership in both snapshots is resolved through the current
    project's item list.
    """
    old_numbers = {project.number for project in old.projects}
    changes = []
    for project in new.projects:
        if project.number not in old_numbers:
            logger.debug(f"Project {project.number} has no baseline, skipping")
            continue
        changes.append(
            _progress_change(
                project.name,
                [issue for issue in old.issues if issue_in_project(issue, project)],
                [issue for issue in new.issues if issue_in_project(issue, project)],
            )
        )
    return changes


def _assigned_to(issues: list[Issue], login: str) -> list[Issue]:
    return [issue for issue in issues if issue.assignee and issue.assignee.login == login]


def compare_members(old: DataSnapshot, new: DataSnapshot) -> list[MemberChange]:
    changes = []
    for member in new.members:
        progress = _progress_change(
            member.login, _assigned_to(old.issues, member.login), _assigned_to(new.issues, member.login)
        )
        pr_change = sum(1 for pr in new.pull_requests if pr.user.login == member.login) - sum(
            1 for pr in old.pull_requests if pr.user.login == member.login
        )
        commit_change = sum(1 for c in new.commits if c.author and c.author.login == member.login) - sum(
            1 for c in old.commits if c.author and c.author.login == member.login
        )

        changes.append(
            MemberChange(
                **vars(progress),
                pr_change=pr_change,
                commit_change=commit_change,
                activity_level=calculate_activity_level(
                    commit_change, pr_change, progress.completed_change, progress.tasks.change
                ),
            )
        )
    return changes


def compare_repositories(old: DataSnapshot, new: DataSnapshot) -> list[RepositoryChange]:
    changes = []
    for repository in new.repositories:
        progress = _progress_change(
            repository.name,
            [issue for issue in old.issues if issue.repository.name == repository.name],
            [issue for issue in new.issues if issue.repository.name == repository.name],
        )
        pr_change = sum(1 for pr in new.pull_requests if pr.repository.name == repository.name) - sum(
            1 for pr in old.pull_requests if pr.repository.name == repository.name
        )
        changes.append(RepositoryChange(**vars(progress), pr_change=pr_change))
    return changes


def _average_change(changes: list[ProgressChange]) -> float:
    if not changes:
        return 0.0
    return sum(change.change for change in changes) / len(changes)


def summarize_changes(
    project_changes: list[ProgressChange],
    member_changes: list[MemberChange],
    repository_changes: list[RepositoryChange],
) -> ComparisonSummary:
    """Roll the per-entity changes up into team-level figures.

    Overall progress is the mean of the three average progress changes. New PRs
    and commits only count members whose totals grew.
    """
    return ComparisonSummary(
        overall_progress=(
            _average_change(project_changes) + _average_change(member_changes) + _average_change(repository_changes)
        )
        / 3,
        total_completed_issues=sum(change.completed_change for change in member_changes),
        total_new_prs=sum(max(change.pr_change, 0) for change in member_changes),
        total_new_commits=sum(max(change.commit_change, 0) for change in member_changes),
        needs_attention=sum(1 for change in member_changes if change.activity_level == CRITICAL_ACTIVITY),
        high_performers=sum(1 for change in member_changes if change.activity_level == HIGH_PERFORMER_ACTIVITY),
        task_progress=TaskProgressSummary(
            completed=sum(change.tasks.new.completed for change in project_changes),
            total=sum(change.tasks.new.total for change in project_changes),
            change=sum(change.tasks.new.completed - change.tasks.old.completed for change in project_changes),
        ),
    )


def calculate_progress_analysis(old: DataSnapshot, new: DataSnapshot) -> ProgressAnalysis:
    """Compare an older snapshot against the current one.

    Args:
        old: Baseline snapshot
        new: Current snapshot; its projects, members and repositories define the rows

    Returns:
        ProgressAnalysis with per-entity changes and a team summary
    """
    project_changes = compare_projects(old, new)
    member_changes = compare_members(old, new)
    repository_changes = compare_repositories(old, new)

    logger.debug(
        f"Compared snapshots: {len(project_changes)} projects, {len(member_changes)} members, "
        f"{len(repository_changes)} repositories"
    )

    return ProgressAnalysis(
        project_changes=project_changes,
        member_changes=member_changes,
        repository_changes=repository_changes,
        summary=summarize_changes(project_changes, member_changes, repository_changes),
    )
