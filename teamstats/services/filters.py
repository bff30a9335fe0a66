"""Search, filter, sort and pagination over statistics output.

All operations return new lists and leave their inputs untouched. Within one
filter the selected values are OR-ed; separate filters combine with AND. Sorts
are stable, so ties keep their original collection order.
"""

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import Any, TypeVar

from ..settings import settings
from .github.models import Issue, Project, PullRequest
from .stats import get_status_bucket
from .tasks import count_completed_tasks, count_tasks, has_completed_tasks, has_open_tasks
from .timeline import ProjectTimeline

logger = getLogger(__name__)

T = TypeVar("T")

ISSUE_SORT_KEYS = ("newest", "oldest", "most-tasks", "most-completed", "most-active")
PULL_REQUEST_SORT_KEYS = ("newest", "oldest", "most-active", "largest")
PROJECT_SORT_KEYS = ("name", "progress", "start_date")
FILTER_KINDS = ("repository", "project", "member")


@dataclass
class IssueFilter:
    """Selected values per filter group; an empty group does not constrain."""

    repository: list[str] = field(default_factory=list)
    project: list[str] = field(default_factory=list)
    member: list[str] = field(default_factory=list)

    def with_values(self, kind: str, values: list[str]) -> "IssueFilter":
        """Return a copy with one filter group replaced.

        Raises:
            ValueError: If kind is not a known filter group
        """
        if kind not in FILTER_KINDS:
            raise ValueError(f"Invalid filter type: {kind}. Valid types: {', '.join(FILTER_KINDS)}")
        groups = {name: list(getattr(self, name)) for name in FILTER_KINDS}
        groups[kind] = list(values)
        return IssueFilter(**groups)


@dataclass
class Page:
    items: list[Any]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def start_index(self) -> int:
        """1-based index of the first item shown, 0 when the page is empty."""
        if not self.items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_index(self) -> int:
        return min(self.page * self.page_size, self.total_items)


@dataclass
class ProjectRow:
    project: Project
    timeline: ProjectTimeline
    state: str


def filter_issues(issues: list[Issue], projects: list[Project], issue_filter: IssueFilter) -> list[Issue]:
    """Apply repository, project and member filters to issues.

    Args:
        issues: Issues to filter
        projects: Projects used to resolve project membership
        issue_filter: Selected values per filter group

    Returns:
        Issues matching every non-empty filter group
    """
    selected_projects = [project for project in projects if project.name in issue_filter.project]
    project_keys = {(item.number, item.repository) for project in selected_projects for item in project.issues}

    def matches(issue: Issue) -> bool:
        if issue_filter.repository and issue.repository.name not in issue_filter.repository:
            return False
        if issue_filter.project and (issue.number, issue.repository.name) not in project_keys:
            return False
        if issue_filter.member and not (issue.assignee and issue.assignee.login in issue_filter.member):
            return False
        return True

    return [issue for issue in issues if matches(issue)]


def _contains(query: str, *values: str | None) -> bool:
    return any(value and query in value.lower() for value in values)


def search_issues(issues: list[Issue], query: str | None) -> list[Issue]:
    """Case-insensitive substring search over issue title and body."""
    if not query:
        return list(issues)
    query = query.lower()
    return [issue for issue in issues if _contains(query, issue.title, issue.body)]


def search_pull_requests(pulls: list[PullRequest], query: str | None) -> list[PullRequest]:
    """Case-insensitive substring search over PR title and body."""
    if not query:
        return list(pulls)
    query = query.lower()
    return [pr for pr in pulls if _contains(query, pr.title, pr.body)]


def _issue_matches_status(issue: Issue, status: str) -> bool:
    if status == "open-tasks":
        return has_open_tasks(issue.body)
    elif status == "completed-tasks":
        return has_completed_tasks(issue.body)
    elif status == "no-tasks":
        return not has_open_tasks(issue.body) and not has_completed_tasks(issue.body)
    elif status == "in-progress":
        return get_status_bucket(issue) == "in-progress"
    return issue.state == status


def filter_issues_by_status(issues: list[Issue], statuses: Sequence[str]) -> list[Issue]:
    """Keep issues matching any selected status.

    Valid statuses: open, closed, open-tasks, completed-tasks, no-tasks, in-progress
    """
    if not statuses:
        return list(issues)
    return [issue for issue in issues if any(_issue_matches_status(issue, status) for status in statuses)]


def filter_pull_requests_by_status(pulls: list[PullRequest], statuses: Sequence[str]) -> list[PullRequest]:
    """Keep PRs whose display state (merged, open, closed) is selected."""
    if not statuses:
        return list(pulls)
    return [pr for pr in pulls if pr.get_display_state() in statuses]


def filter_by_repository(items: list[T], repositories: Sequence[str]) -> list[T]:
    """Keep issues or PRs from the selected repositories."""
    if not repositories:
        return list(items)
    return [item for item in items if item.repository.name in repositories]  # type: ignore[attr-defined]


def _timestamp(value: datetime | None) -> float:
    # Items without a date sort as the oldest
    return value.timestamp() if value else float("-inf")


def _sort(items: list[T], key: Callable[[T], Any], reverse: bool) -> list[T]:
    # sorted() keeps ties in input order in both directions
    return sorted(items, key=key, reverse=reverse)


def sort_issues(issues: list[Issue], sort_by: str) -> list[Issue]:
    """Sort issues by one of ISSUE_SORT_KEYS; unknown keys keep the input order."""
    if sort_by == "newest":
        return _sort(issues, lambda i: _timestamp(i.created_at), reverse=True)
    elif sort_by == "oldest":
        return _sort(issues, lambda i: _timestamp(i.created_at), reverse=False)
    elif sort_by == "most-tasks":
        return _sort(issues, lambda i: count_tasks(i.body), reverse=True)
    elif sort_by == "most-completed":
        return _sort(issues, lambda i: count_completed_tasks(i.body), reverse=True)
    elif sort_by == "most-active":
        return _sort(issues, lambda i: i.activity_count, reverse=True)

    logger.warning(f"Unknown issue sort key: {sort_by}, ignoring")
    return list(issues)


def sort_pull_requests(pulls: list[PullRequest], sort_by: str) -> list[PullRequest]:
    """Sort PRs by one of PULL_REQUEST_SORT_KEYS; unknown keys keep the input order."""
    if sort_by == "newest":
        return _sort(pulls, lambda pr: _timestamp(pr.created_at), reverse=True)
    elif sort_by == "oldest":
        return _sort(pulls, lambda pr: _timestamp(pr.created_at), reverse=False)
    elif sort_by == "most-active":
        return _sort(pulls, lambda pr: pr.review_comments, reverse=True)
    elif sort_by == "largest":
        return _sort(pulls, lambda pr: pr.additions + pr.deletions, reverse=True)

    logger.warning(f"Unknown pull request sort key: {sort_by}, ignoring")
    return list(pulls)


def filter_projects(rows: list[ProjectRow], search: str | None = None, state: str = "all") -> list[ProjectRow]:
    """Filter project rows by name/body search and by open/closed state."""
    filtered = list(rows)
    if search:
        query = search.lower()
        filtered = [row for row in filtered if _contains(query, row.project.name, row.project.body)]
    if state != "all":
        filtered = [row for row in filtered if row.state == state]
    return filtered


def sort_projects(rows: list[ProjectRow], sort_by: str = "name", direction: str = "asc") -> list[ProjectRow]:
    """Sort project rows by name, progress or start date.

    Raises:
        ValueError: If sort_by or direction is not recognized
    """
    if direction not in ("asc", "desc"):
        raise ValueError(f"Invalid sort direction: {direction}. Valid directions: asc, desc")

    reverse = direction == "desc"
    if sort_by == "name":
        return _sort(rows, lambda r: r.project.name.lower(), reverse)
    elif sort_by == "progress":
        return _sort(rows, lambda r: r.timeline.progress, reverse)
    elif sort_by == "start_date":
        # Projects without a start date sort as the epoch
        return _sort(rows, lambda r: r.timeline.creation_date.timestamp() if r.timeline.creation_date else 0, reverse)

    raise ValueError(f"Invalid sort field: {sort_by}. Valid fields: {', '.join(PROJECT_SORT_KEYS)}")


def paginate(items: list[T], page: int = 1, page_size: int | None = None) -> Page:
    """Slice a fixed-size page out of a filtered and sorted list.

    Args:
        items: Items to paginate
        page: 1-based page number; clamped into the valid range
        page_size: Items per page (default: settings.page_size)

    Returns:
        Page with the items and paging metadata
    """
    if page_size is None:
        page_size = settings.page_size
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    total_items = len(items)
    total_pages = math.ceil(total_items / page_size)
    page = min(max(page, 1), max(total_pages, 1))

    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )
