from logging import getLogger
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from .services.dashboard import Dashboard
from .services.filters import PROJECT_SORT_KEYS, IssueFilter, filter_projects, paginate, sort_projects
from .services.formatter import (
    format_member_stats,
    format_overall_stats,
    format_progress_analysis,
    format_project_page,
    format_repository,
    format_utilization,
)
from .services.github.models import DataSnapshot
from .services.stats import summarize_due_dates
from .settings import settings

app = typer.Typer()
logger = getLogger(__name__)
console = Console()

SnapshotArgument = typer.Argument(
    ...,
    help="Path to a JSON snapshot of issues, pull requests, commits, projects, members and timeline events",
)


@app.command(help=f"Display the current installed version of {settings.project_name}.")
def version() -> None:
    from . import __version__

    typer.echo(f"{settings.project_name} - {__version__}")


@app.command(help="Show overall issue, task and status statistics.")
def summary(
    snapshot: Path = SnapshotArgument,
    repository: list[str] | None = typer.Option(None, "--repository", help="Only include these repositories"),
    project: list[str] | None = typer.Option(None, "--project", help="Only include these projects (by name)"),
    member: list[str] | None = typer.Option(None, "--member", help="Only include issues assigned to these members"),
) -> None:
    dashboard = _load_dashboard(snapshot, repository, project, member)
    format_overall_stats(dashboard.overall_stats(), summarize_due_dates(dashboard.filtered_issues()))


@app.command(help="Show per-member issue, task and code statistics.")
def members(
    snapshot: Path = SnapshotArgument,
    repository: list[str] | None = typer.Option(None, "--repository", help="Only include these repositories"),
    project: list[str] | None = typer.Option(None, "--project", help="Only include these projects (by name)"),
    member: list[str] | None = typer.Option(None, "--member", help="Only include issues assigned to these members"),
) -> None:
    dashboard = _load_dashboard(snapshot, repository, project, member)
    stats = dashboard.member_detailed_stats()
    if member:
        stats = [s for s in stats if s.member.login in member]
    format_member_stats(stats)


@app.command(help="List project timelines with progress and schedule.")
def projects(
    snapshot: Path = SnapshotArgument,
    search: str | None = typer.Option(None, "--search", help="Case-insensitive search over project name and body"),
    state: str = typer.Option("open", "--state", help="Project state to show: open, closed or all"),
    sort: str = typer.Option(
        "name:asc",
        "--sort",
        help="Sort field and direction (format: field or field:asc/desc). "
        f"Valid fields: {', '.join(PROJECT_SORT_KEYS)}",
    ),
    page: int = typer.Option(1, "--page", help="Page number"),
) -> None:
    try:
        if state not in ("open", "closed", "all"):
            raise ValueError(f"Invalid state: {state}. Valid states: open, closed, all")
        sort_by, direction = _parse_sort(sort)
        dashboard = _load_dashboard(snapshot)
        rows = sort_projects(filter_projects(dashboard.project_timelines(), search, state), sort_by, direction)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    format_project_page(paginate(rows, page=page))


@app.command(help="Show statistics, schedule and contributors for one repository.")
def repository(
    snapshot: Path = SnapshotArgument,
    name: str = typer.Argument(..., help="Repository name"),
) -> None:
    dashboard = _load_dashboard(snapshot)
    stats = dashboard.repository_stats(name)
    timeline = dashboard.repository_timeline(name)
    if stats is None or timeline is None:
        console.print(f"[red]Error:[/red] Repository not found: {name}")
        raise typer.Exit(1)

    format_repository(stats, timeline)


@app.command(help="Estimate each member's workload against weekly capacity.")
def utilization(
    snapshot: Path = SnapshotArgument,
    repository: list[str] | None = typer.Option(None, "--repository", help="Only include these repositories"),
    project: list[str] | None = typer.Option(None, "--project", help="Only include these projects (by name)"),
    member: list[str] | None = typer.Option(None, "--member", help="Only include issues assigned to these members"),
    status: list[str] | None = typer.Option(
        None,
        "--status",
        help="Project board statuses counted as workload (default: todo, in progress, review); "
        "use 'backlog' for issues without a status",
    ),
) -> None:
    dashboard = _load_dashboard(snapshot, repository, project, member)
    rows = dashboard.member_utilization(statuses=status or None)
    if member:
        rows = [row for row in rows if row.member.login in member]
    format_utilization(rows)


@app.command(help="Compare progress between an older snapshot and the current one.")
def compare(
    baseline: Path = typer.Argument(..., help="Path to the older JSON snapshot"),
    snapshot: Path = SnapshotArgument,
) -> None:
    baseline_snapshot = _load_snapshot(baseline)
    dashboard = _load_dashboard(snapshot)
    format_progress_analysis(dashboard.compare_with(baseline_snapshot))


def _load_dashboard(
    path: Path,
    repository: list[str] | None = None,
    project: list[str] | None = None,
    member: list[str] | None = None,
) -> Dashboard:
    """Load a snapshot file into a dashboard with the given filters."""
    snapshot = _load_snapshot(path)
    issue_filter = IssueFilter(repository=repository or [], project=project or [], member=member or [])
    return Dashboard(snapshot, issue_filter=issue_filter)


def _load_snapshot(path: Path) -> DataSnapshot:
    """Load a snapshot file.

    Exits with status 1 if the file cannot be read or is not a valid snapshot.
    """
    try:
        snapshot = DataSnapshot.from_file(path)
    except OSError as e:
        console.print(f"[red]Error:[/red] Unable to read snapshot {path}: {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        logger.debug("Snapshot validation failed", exc_info=True)
        console.print(f"[red]Error:[/red] Invalid snapshot {path}: {e.error_count()} validation errors")
        raise typer.Exit(1)

    logger.info(
        f"Loaded snapshot with {len(snapshot.issues)} issues, {len(snapshot.pull_requests)} PRs, "
        f"{len(snapshot.commits)} commits and {len(snapshot.projects)} projects"
    )
    return snapshot


def _parse_sort(sort: str) -> tuple[str, str]:
    """Parse a sort specification.

    Args:
        sort: Sort spec (e.g., "progress:desc" or "name")

    Returns:
        Tuple of (field, direction)

    Raises:
        ValueError: If the sort specification is invalid
    """
    parts = sort.split(":")
    if len(parts) == 1:
        field, direction = parts[0], "asc"
    elif len(parts) == 2:
        field, direction = parts
    else:
        raise ValueError(f"Invalid sort specification: {sort}. Expected format: field or field:direction")

    # Accept the dashed spelling used by the web views
    if field == "start-date":
        field = "start_date"

    if field not in PROJECT_SORT_KEYS:
        raise ValueError(f"Invalid sort field: {field}. Valid fields: {', '.join(PROJECT_SORT_KEYS)}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Invalid sort direction: {direction}. Valid directions: asc, desc")

    return field, direction


if __name__ == "__main__":
    app()
