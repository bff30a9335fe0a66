"""Task checkbox extraction for issue bodies.

A task line is a list item with a single-character checkbox followed by text,
for example ``- [x] write tests``. Only a lowercase ``x`` marks a task as done.
This is a text convention, not a markdown parser.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from logging import getLogger

logger = getLogger(__name__)

TASK_PATTERN = re.compile(r"- \[(.)\] (.+)")
COMPLETED_TASK_PATTERN = re.compile(r"- \[x\] .+")
OPEN_TASK_PATTERN = re.compile(r"- \[ \] .+")


@dataclass
class TaskMetrics:
    """Completed/total counts with a percentage in [0, 100]."""

    total: int = 0
    completed: int = 0
    percentage: float = 0.0

    @classmethod
    def from_counts(cls, completed: int, total: int) -> "TaskMetrics":
        return cls(total=total, completed=completed, percentage=calculate_percentage(completed, total))


def calculate_percentage(part: int | float, whole: int | float) -> float:
    """Share of ``part`` in ``whole`` as a percentage, 0 when ``whole`` is 0."""
    if not whole:
        return 0.0
    return (part / whole) * 100


def extract_tasks(body: str | None) -> list[tuple[bool, str]]:
    """List the task lines of a body as (completed, text) pairs."""
    if not body:
        return []
    return [(match.group(1) == "x", match.group(2)) for match in TASK_PATTERN.finditer(body)]


def count_tasks(body: str | None) -> int:
    if not body:
        return 0
    return len(TASK_PATTERN.findall(body))


def count_completed_tasks(body: str | None) -> int:
    if not body:
        return 0
    return len(COMPLETED_TASK_PATTERN.findall(body))


def has_open_tasks(body: str | None) -> bool:
    return bool(body) and OPEN_TASK_PATTERN.search(body) is not None


def has_completed_tasks(body: str | None) -> bool:
    return count_completed_tasks(body) > 0


def calculate_task_progress(body: str | None) -> TaskMetrics:
    """Calculate checkbox progress for a free-text body.

    Args:
        body: Issue body, possibly None or empty

    Returns:
        TaskMetrics with the number of task lines, how many are checked with
        ``x``, and the completion percentage (0 when there are no tasks)
    """
    tasks = extract_tasks(body)
    completed = sum(1 for done, _ in tasks if done)
    return TaskMetrics.from_counts(completed, len(tasks))


def sum_task_metrics(metrics: Iterable[TaskMetrics]) -> TaskMetrics:
    """Add up task metrics, recomputing the percentage from the summed counts.

    Averaging per-issue percentages would over-weight issues with few tasks.
    """
    total = 0
    completed = 0
    for item in metrics:
        total += item.total
        completed += item.completed
    return TaskMetrics.from_counts(completed, total)
