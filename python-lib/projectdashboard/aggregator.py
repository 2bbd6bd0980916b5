"""
Summary statistics over a list of dashboard tasks.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable
import math

from projectdashboard.task_builder import Task
from projectdashboard.task_classifier import TaskStatus


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13, not 12)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Summary:
    """Task counts per status bucket plus overall completion rate (0-100)."""
    total: int = 0
    completed: int = 0  # COMPLETED + OVERDUE_COMPLETED
    overdue_completed: int = 0
    overdue: int = 0
    in_progress: int = 0
    not_started: int = 0
    completion_rate: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'completed': self.completed,
            'overdueCompleted': self.overdue_completed,
            'overdue': self.overdue,
            'inProgress': self.in_progress,
            'notStarted': self.not_started,
            'completionRate': self.completion_rate,
        }


def summarize_tasks(tasks: Iterable[Task]) -> Summary:
    """
    Count tasks per status and compute the completion rate.

    Args:
        tasks: Dashboard tasks, in any order

    Returns:
        Summary; completion_rate is 0 for an empty list

    Example:
        >>> summarize_tasks([]).completion_rate
        0
    """
    counts = Counter(task.status for task in tasks)
    total = sum(counts.values())

    completed = counts[TaskStatus.COMPLETED] + counts[TaskStatus.OVERDUE_COMPLETED]
    completion_rate = round_half_up(completed * 100 / total) if total else 0

    return Summary(
        total=total,
        completed=completed,
        overdue_completed=counts[TaskStatus.OVERDUE_COMPLETED],
        overdue=counts[TaskStatus.OVERDUE],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        not_started=counts[TaskStatus.NOT_STARTED],
        completion_rate=completion_rate,
    )
