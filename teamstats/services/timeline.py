"""Contributor activity reconciliation and schedule tracking.

Contributor records are assembled from two independent sources, issue
assignments/comments and repository timeline events, and merged by login.
Repository and project schedules are derived from issue dates.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger

from ..settings import settings
from .dates import day_key, difference_in_days, format_distance, max_date, min_date, utcnow
from .github.models import Issue, Member, Project, TimelineEvent
from .stats import filter_project_issues
from .tasks import calculate_percentage

logger = getLogger(__name__)

# Contribution score per timeline event kind; unknown kinds use DEFAULT_EVENT_WEIGHT
EVENT_WEIGHTS: dict[str, float] = {
    "commit": 1,
    "pull_request": 2,
    "issue_comment": 0.5,
    "pr_comment": 0.5,
    "push": 1,
}
DEFAULT_EVENT_WEIGHT = 1.0
ASSIGNMENT_WEIGHT = 1.0
ISSUE_COMMENT_WEIGHT = 0.5


@dataclass
class ContributorActivity:
    id: str
    type: str
    title: str
    content: str
    timestamp: datetime | None
    link_url: str | None = None


@dataclass
class Contributor:
    login: str
    avatar_url: str
    contributions: float = 0.0
    first_contribution: datetime | None = None
    last_contribution: datetime | None = None
    total_time_spent: str = "0 days"
    activities: list[ContributorActivity] = field(default_factory=list)

    def record(
        self, activity: ContributorActivity, weight: float, first: datetime | None, last: datetime | None
    ) -> None:
        """Fold one activity into the record, widening the contribution bounds."""
        self.activities.append(activity)
        self.contributions += weight
        self.first_contribution = min_date([self.first_contribution, first])
        self.last_contribution = max_date([self.last_contribution, last])


@dataclass
class RecentActivity:
    id: str
    type: str
    title: str
    content: str
    author: Member
    timestamp: datetime | None
    link_url: str | None = None


@dataclass
class RepositoryTimeline:
    name: str
    creation_date: datetime | None
    planned_completion_date: datetime | None
    actual_completion_date: datetime | None
    planned_duration: str
    actual_duration: str
    total_issues: int
    completed_issues: int
    in_progress_issues: int
    progress: float
    is_overdue: bool
    members: list[Contributor] = field(default_factory=list)
    recent_activities: list[RecentActivity] = field(default_factory=list)


@dataclass
class ProjectTimeline:
    creation_date: datetime | None
    planned_completion_date: datetime | None
    actual_completion_date: datetime | None
    planned_duration: str
    actual_duration: str
    total_issues: int
    completed_issues: int
    in_progress_issues: int
    progress: float
    is_overdue: bool
    repositories: list[RepositoryTimeline] = field(default_factory=list)


def contribution_weight(event_type: str) -> float:
    return EVENT_WEIGHTS.get(event_type, DEFAULT_EVENT_WEIGHT)


def estimate_time_spent(activities: list[ContributorActivity]) -> int:
    """Estimate working days from activity density.

    A UTC calendar day with more than one activity counts as a full day, a day
    with a single activity as half a day. This is a heuristic, not time
    tracking.

    Args:
        activities: A contributor's activities

    Returns:
        Estimated number of days, rounded up to whole days
    """
    activities_by_day = Counter(day_key(a.timestamp) for a in activities if a.timestamp is not None)

    total_hours = 0
    for activity_count in activities_by_day.values():
        total_hours += settings.full_day_hours if activity_count > 1 else settings.half_day_hours

    return math.ceil(total_hours / settings.full_day_hours)


def calculate_schedule_progress(
    completed_issues: int,
    total_issues: int,
    creation_date: datetime | None,
    planned_completion_date: datetime | None,
    now: datetime,
) -> float:
    """Blend issue completion with elapsed time against the plan.

    Returns:
        ``issue_weight * issue% + time_weight * clamp(elapsed/planned * 100, 0, 100)``,
        where the time term is 0 without both dates, without a positive plan,
        or before the work has started
    """
    issue_progress = calculate_percentage(completed_issues, total_issues)

    time_progress = 0.0
    if creation_date and planned_completion_date:
        planned_days = difference_in_days(creation_date, planned_completion_date)
        if planned_days > 0:
            elapsed_days = difference_in_days(creation_date, now)
            time_progress = min(100.0, max(0.0, (elapsed_days / planned_days) * 100))

    return issue_progress * settings.issue_progress_weight + time_progress * settings.time_progress_weight


def _contributor_for(contributors: dict[str, Contributor], member: Member) -> Contributor:
    if member.login not in contributors:
        contributors[member.login] = Contributor(login=member.login, avatar_url=member.avatar_url)
    return contributors[member.login]


def _sort_key(timestamp: datetime | None) -> tuple[bool, float]:
    # Newest first, activities without a usable timestamp last
    return (timestamp is None, -timestamp.timestamp() if timestamp else 0.0)


def build_contributors(issues: list[Issue], events: list[TimelineEvent]) -> list[Contributor]:
    """Merge issue-derived and timeline-derived activity into one record per login.

    Args:
        issues: Issues of a single repository
        events: Timeline events of the same repository

    Returns:
        Contributors in first-seen order, each with activities sorted newest first
    """
    contributors: dict[str, Contributor] = {}

    for issue in issues:
        if issue.assignee:
            contributor = _contributor_for(contributors, issue.assignee)
            contributor.record(
                ContributorActivity(
                    id=f"issue-{issue.number}",
                    type="issue_comment",
                    title=f"Assigned to issue #{issue.number}",
                    content=issue.title,
                    timestamp=issue.created_at,
                    link_url=issue.html_url,
                ),
                ASSIGNMENT_WEIGHT,
                first=issue.created_at,
                last=issue.updated_at,
            )

        for comment in issue.comments:
            contributor = _contributor_for(contributors, comment.user)
            contributor.record(
                ContributorActivity(
                    id=f"comment-{comment.id}",
                    type="issue_comment",
                    title=f"Commented on issue #{issue.number}",
                    content=comment.body,
                    timestamp=comment.created_at,
                    link_url=comment.html_url,
                ),
                ISSUE_COMMENT_WEIGHT,
                first=comment.created_at,
                last=comment.created_at,
            )

    for event in events:
        if event.author is None:
            logger.debug(f"Skipping timeline event {event.id} without an author")
            continue

        contributor = _contributor_for(contributors, event.author)
        contributor.record(
            ContributorActivity(
                id=event.id,
                type=event.type,
                title=event.title,
                content=event.content,
                timestamp=event.timestamp,
                link_url=event.link_url,
            ),
            contribution_weight(event.type),
            first=event.timestamp,
            last=event.timestamp,
        )

    for contributor in contributors.values():
        contributor.activities.sort(key=lambda a: _sort_key(a.timestamp))
        contributor.total_time_spent = f"{estimate_time_spent(contributor.activities)} days"

    return list(contributors.values())


def get_recent_activities(events: list[TimelineEvent], limit: int | None = None) -> list[RecentActivity]:
    """Most recent authored events of a repository, newest first."""
    if limit is None:
        limit = settings.recent_activity_limit

    authored = [event for event in events if event.author is not None]
    authored.sort(key=lambda e: _sort_key(e.timestamp))

    return [
        RecentActivity(
            id=event.id,
            type=event.type,
            title=event.title,
            content=event.content,
            author=event.author,  # type: ignore[arg-type]
            timestamp=event.timestamp,
            link_url=event.link_url,
        )
        for event in authored[:limit]
    ]


def get_repository_timeline(
    repo_name: str,
    issues: list[Issue],
    timeline_events: list[TimelineEvent],
    now: datetime | None = None,
) -> RepositoryTimeline:
    """Build the schedule and contributor view of one repository.

    Args:
        repo_name: Repository name
        issues: Issues in scope (e.g. a project's issues); filtered to the repository
        timeline_events: All timeline events; filtered to the repository
        now: Reference time (default: current UTC time)

    Returns:
        RepositoryTimeline with date bounds, durations, progress and contributors
    """
    now = now or utcnow()
    repo_issues = [issue for issue in issues if issue.repository.name == repo_name]
    repo_events = [event for event in timeline_events if event.repository == repo_name]

    creation_date = min_date(issue.created_at for issue in repo_issues)
    planned_completion_date = max_date(issue.due_date for issue in repo_issues)
    actual_completion_date = max_date(issue.updated_at for issue in repo_issues if issue.is_closed)

    total_issues = len(repo_issues)
    completed_issues = sum(1 for issue in repo_issues if issue.is_closed)

    logger.debug(f"Repository timeline {repo_name}: {total_issues} issues, {len(repo_events)} events")

    return RepositoryTimeline(
        name=repo_name,
        creation_date=creation_date,
        planned_completion_date=planned_completion_date,
        actual_completion_date=actual_completion_date,
        planned_duration=format_distance(creation_date, planned_completion_date),
        actual_duration=format_distance(creation_date, actual_completion_date),
        total_issues=total_issues,
        completed_issues=completed_issues,
        in_progress_issues=total_issues - completed_issues,
        progress=calculate_schedule_progress(
            completed_issues, total_issues, creation_date, planned_completion_date, now
        ),
        is_overdue=planned_completion_date is not None and now > planned_completion_date,
        members=build_contributors(repo_issues, repo_events),
        recent_activities=get_recent_activities(repo_events),
    )


def get_project_timeline(
    project: Project,
    issues: list[Issue],
    timeline_events: list[TimelineEvent],
    now: datetime | None = None,
) -> ProjectTimeline:
    """Aggregate the repository timelines touched by a project's issues.

    Date bounds are folded from the repository timelines rather than
    recomputed from the raw issues.
    """
    now = now or utcnow()
    project_issues = filter_project_issues(project, issues)

    # dict keeps first-seen order while deduplicating
    repositories = list(dict.fromkeys(issue.repository.name for issue in project_issues))
    repo_timelines = [
        get_repository_timeline(repo_name, project_issues, timeline_events, now=now) for repo_name in repositories
    ]

    creation_date = min_date(r.creation_date for r in repo_timelines)
    planned_completion_date = max_date(r.planned_completion_date for r in repo_timelines)
    actual_completion_date = max_date(r.actual_completion_date for r in repo_timelines)

    total_issues = len(project_issues)
    completed_issues = sum(1 for issue in project_issues if issue.is_closed)

    return ProjectTimeline(
        creation_date=creation_date,
        planned_completion_date=planned_completion_date,
        actual_completion_date=actual_completion_date,
        planned_duration=format_distance(creation_date, planned_completion_date),
        actual_duration=format_distance(creation_date, actual_completion_date),
        total_issues=total_issues,
        completed_issues=completed_issues,
        in_progress_issues=total_issues - completed_issues,
        progress=calculate_schedule_progress(
            completed_issues, total_issues, creation_date, planned_completion_date, now
        ),
        is_overdue=planned_completion_date is not None and now > planned_completion_date,
        repositories=repo_timelines,
    )


def get_project_state(project: Project, issues: list[Issue]) -> str:
    """A project is open while any of its issues is open."""
    if any(not issue.is_closed for issue in filter_project_issues(project, issues)):
        return "open"
    return "closed"
