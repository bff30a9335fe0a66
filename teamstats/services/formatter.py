from datetime import datetime
from logging import getLogger

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .comparison import ProgressAnalysis
from .filters import Page
from .stats import MemberDetailedStats, OverallStats, RepositoryStats
from .timeline import RepositoryTimeline
from .utilization import MemberUtilization

logger = getLogger(__name__)


def format_overall_stats(stats: OverallStats | None, due_dates: dict[str, int] | None = None) -> None:
    """Display overall issue, task and status statistics.

    Args:
        stats: Overall statistics, or None when no data is loaded
        due_dates: Optional count of issues per due date status
    """
    console = Console()

    if stats is None:
        _print_no_results(console, "No data loaded.")
        return

    summary_lines = []
    summary_lines.append(
        f"[bold]Issues:[/bold] {stats.issues.completed}/{stats.issues.total} closed "
        f"({stats.issues.percentage:.1f}%)"
    )
    summary_lines.append(
        f"[bold]Tasks:[/bold] {stats.tasks.completed}/{stats.tasks.total} completed "
        f"({stats.tasks.percentage:.1f}%)"
    )

    distribution = stats.status_distribution
    summary_lines.append("")
    summary_lines.append("[bold]Status Distribution:[/bold]")
    summary_lines.append(f"  [blue]Open:[/blue] {distribution.open}")
    summary_lines.append(f"  [yellow]In Progress:[/yellow] {distribution.in_progress}")
    summary_lines.append(f"  [green]Closed:[/green] {distribution.closed}")

    if due_dates:
        summary_lines.append("")
        summary_lines.append("[bold]Due Dates:[/bold]")
        for status, count in due_dates.items():
            summary_lines.append(f"  {_format_due_status_badge(status)}: {count}")

    console.print(Panel("\n".join(summary_lines), title="Summary", border_style="cyan"))


def format_member_stats(member_stats: list[MemberDetailedStats]) -> None:
    """Display per-member issue, task and code statistics.

    Args:
        member_stats: Detailed statistics per member
    """
    console = Console()

    if not member_stats:
        _print_no_results(console, "No members found for the specified criteria.")
        return

    table = Table(title="Members", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="white")
    table.add_column("Issues", style="cyan", no_wrap=True)
    table.add_column("Issue %", style="white", no_wrap=True)
    table.add_column("Tasks", style="cyan", no_wrap=True)
    table.add_column("Task %", style="white", no_wrap=True)
    table.add_column("Commits", style="white", no_wrap=True)
    table.add_column("PRs (merged)", style="white", no_wrap=True)
    table.add_column("Lines", style="dim", no_wrap=True)

    for stats in member_stats:
        code = stats.code_stats
        table.add_row(
            stats.member.login,
            f"{stats.issue_stats.completed}/{stats.issue_stats.total}",
            _format_percentage(stats.issue_stats.percentage),
            f"{stats.task_stats.completed}/{stats.task_stats.total}",
            _format_percentage(stats.task_stats.percentage),
            str(code.total_commits),
            f"{code.total_prs} ({code.merged_prs})",
            f"[green]+{code.lines_added:,}[/green] [red]-{code.lines_deleted:,}[/red]",
        )

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(member_stats)} members")


def format_project_page(page: Page) -> None:
    """Display one page of project timelines.

    Args:
        page: Page of ProjectRow items
    """
    console = Console()

    if not page.items:
        _print_no_results(console, "No projects found for the specified criteria.")
        return

    table = Table(title="Projects", show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Project", style="white")
    table.add_column("State", style="white", no_wrap=True)
    table.add_column("Issues", style="white", no_wrap=True)
    table.add_column("Progress", style="white", no_wrap=True)
    table.add_column("Start", style="dim", no_wrap=True)
    table.add_column("Due", style="dim", no_wrap=True)
    table.add_column("Planned", style="dim")

    for row in page.items:
        timeline = row.timeline
        due_display = _format_date(timeline.planned_completion_date)
        if timeline.is_overdue:
            due_display = f"[red]{due_display}[/red]"
        table.add_row(
            str(row.project.number),
            row.project.name,
            "[blue]open[/blue]" if row.state == "open" else "[green]closed[/green]",
            f"{timeline.completed_issues}/{timeline.total_issues}",
            _format_percentage(timeline.progress),
            _format_date(timeline.creation_date),
            due_display,
            timeline.planned_duration,
        )

    console.print(table)
    console.print(
        f"\nShowing {page.start_index} to {page.end_index} of {page.total_items} projects "
        f"(page {page.page} of {page.total_pages})"
    )


def format_repository(stats: RepositoryStats, timeline: RepositoryTimeline) -> None:
    """Display a repository's statistics, schedule, contributors and recent activity."""
    console = Console()

    summary_lines = []
    if stats.repository.description:
        summary_lines.append(f"[dim]{stats.repository.description}[/dim]")
        summary_lines.append("")
    summary_lines.append(
        f"[bold]Issues:[/bold] {len(stats.completed_issues)}/{len(stats.issues)} closed "
        f"({stats.issue_progress:.1f}%)"
    )
    summary_lines.append(
        f"[bold]Tasks:[/bold] {stats.task_progress.completed}/{stats.task_progress.total} completed "
        f"({stats.task_progress_percentage:.1f}%)"
    )
    summary_lines.append(
        f"[bold]Pull Requests:[/bold] {len(stats.pull_requests)} ({len(stats.merged_prs)} merged)"
    )
    summary_lines.append(f"[bold]Commits:[/bold] {len(stats.commits)}")
    summary_lines.append("")
    summary_lines.append(f"[bold]Started:[/bold] {_format_date(timeline.creation_date)}")
    summary_lines.append(
        f"[bold]Planned:[/bold] {_format_date(timeline.planned_completion_date)} ({timeline.planned_duration})"
    )
    summary_lines.append(
        f"[bold]Completed:[/bold] {_format_date(timeline.actual_completion_date)} ({timeline.actual_duration})"
    )
    summary_lines.append(f"[bold]Progress:[/bold] {timeline.progress:.1f}%")
    if timeline.is_overdue:
        summary_lines.append("[red]Overdue[/red]")

    console.print(Panel("\n".join(summary_lines), title=stats.repository.name, border_style="cyan"))

    activity_table = Table(title="Activity", show_header=True, header_style="bold magenta")
    activity_table.add_column("Date", style="dim", no_wrap=True)
    activity_table.add_column("Commits", style="white", no_wrap=True)
    activity_table.add_column("PRs", style="white", no_wrap=True)
    activity_table.add_column("Issues", style="white", no_wrap=True)
    for day in stats.activity:
        activity_table.add_row(day.date, str(day.commits), str(day.pull_requests), str(day.issues))
    console.print(activity_table)

    if timeline.members:
        members_table = Table(title="Contributors", show_header=True, header_style="bold magenta")
        members_table.add_column("Member", style="white")
        members_table.add_column("Score", style="cyan", no_wrap=True)
        members_table.add_column("First", style="dim", no_wrap=True)
        members_table.add_column("Last", style="dim", no_wrap=True)
        members_table.add_column("Time Spent", style="white", no_wrap=True)
        for member in sorted(timeline.members, key=lambda m: -m.contributions):
            members_table.add_row(
                member.login,
                f"{member.contributions:g}",
                _format_date(member.first_contribution),
                _format_date(member.last_contribution),
                member.total_time_spent,
            )
        console.print(members_table)

    if timeline.recent_activities:
        console.print("\n[bold]Recent Activity:[/bold]")
        for activity in timeline.recent_activities:
            console.print(f"  {_format_date(activity.timestamp)} [cyan]{activity.author.login}[/cyan] {activity.title}")


def format_utilization(utilization: list[MemberUtilization]) -> None:
    """Display estimated workload per member against weekly capacity.

    Args:
        utilization: Workload estimate per member
    """
    console = Console()

    if not utilization:
        _print_no_results(console, "No members found for the specified criteria.")
        return

    table = Table(title="Resource Utilization", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="white")
    table.add_column("Open Issues", style="cyan", no_wrap=True)
    table.add_column("Open PRs", style="cyan", no_wrap=True)
    table.add_column("Tasks Left", style="white", no_wrap=True)
    table.add_column("Hours", style="white", no_wrap=True)
    table.add_column("Utilization", style="white", no_wrap=True)
    table.add_column("Status", style="white", no_wrap=True)
    table.add_column("Efficiency", style="dim", no_wrap=True)
    table.add_column("Avg Days", style="dim", no_wrap=True)

    for row in sorted(utilization, key=lambda u: -u.utilization_percentage):
        table.add_row(
            row.member.login,
            str(row.active_issues),
            str(row.active_prs),
            str(row.tasks.remaining),
            f"{row.estimated_hours:g}",
            f"{row.utilization_percentage:.1f}%",
            _format_workload_badge(row.status),
            f"{row.completion_efficiency}%",
            f"{row.average_completion_time:g}",
        )

    console.print(table)


def format_progress_analysis(analysis: ProgressAnalysis | None) -> None:
    """Display progress changes between two snapshots."""
    console = Console()

    if analysis is None:
        _print_no_results(console, "No data loaded.")
        return

    summary = analysis.summary
    summary_lines = [
        f"[bold]Overall Progress Change:[/bold] {_format_change(summary.overall_progress)}",
        f"[bold]Issues Completed:[/bold] {summary.total_completed_issues}",
        f"[bold]New PRs:[/bold] {summary.total_new_prs}",
        f"[bold]New Commits:[/bold] {summary.total_new_commits}",
        f"[bold]Tasks:[/bold] {summary.task_progress.completed}/{summary.task_progress.total} completed "
        f"({summary.task_progress.change:+d})",
        f"[bold]High Performers:[/bold] {summary.high_performers}",
        f"[bold]Needs Attention:[/bold] {summary.needs_attention}",
    ]
    console.print(Panel("\n".join(summary_lines), title="Progress Analysis", border_style="cyan"))

    sections = [
        ("Projects", analysis.project_changes),
        ("Members", analysis.member_changes),
        ("Repositories", analysis.repository_changes),
    ]
    for title, changes in sections:
        if not changes:
            continue
        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("Name", style="white")
        table.add_column("Before", style="dim", no_wrap=True)
        table.add_column("After", style="white", no_wrap=True)
        table.add_column("Change", style="white", no_wrap=True)
        table.add_column("Closed", style="cyan", no_wrap=True)
        table.add_column("Task Change", style="white", no_wrap=True)
        table.add_column("Activity", style="white", no_wrap=True)
        for change in changes:
            table.add_row(
                change.name,
                f"{change.old_progress:.1f}%",
                f"{change.new_progress:.1f}%",
                _format_change(change.change),
                f"{change.completed_change:+d}",
                _format_change(change.tasks.change),
                getattr(change, "activity_level", "-"),
            )
        console.print(table)


def _print_no_results(console: Console, message: str) -> None:
    console.print(
        Panel(
            f"[yellow]{message}[/yellow]",
            title="No Results",
            border_style="yellow",
        )
    )


def _format_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def _format_percentage(value: float) -> str:
    """Format a percentage with a color reflecting how far along it is."""
    if value >= 75:
        color = "green"
    elif value >= 40:
        color = "yellow"
    else:
        color = "red"
    return f"[{color}]{value:.1f}%[/{color}]"


def _format_due_status_badge(status: str) -> str:
    """Format a due date status with color for Rich display.

    Args:
        status: Due date status (overdue, soon, safe, none)

    Returns:
        Colored status label
    """
    labels = {
        "overdue": ("red", "Overdue"),
        "soon": ("yellow", "Due Soon"),
        "safe": ("green", "On Track / Completed"),
        "none": ("dim", "No Date"),
    }

    color, label = labels.get(status, ("white", status))
    return f"[{color}]{label}[/{color}]"


def _format_change(value: float) -> str:
    if value > 0:
        return f"[green]+{value:.1f}%[/green]"
    elif value < 0:
        return f"[red]{value:.1f}%[/red]"
    return f"{value:.1f}%"


def _format_workload_badge(status: str) -> str:
    colors = {"low": "blue", "optimal": "green", "high": "yellow", "critical": "red"}
    color = colors.get(status, "white")
    return f"[{color}]{status}[/{color}]"
