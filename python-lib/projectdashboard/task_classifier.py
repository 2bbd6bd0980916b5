"""
Task status classification for the project dashboard plugin.

Derives a task's temporal status, expected progress and delay from its
planned window, its actual completion instant and an evaluation instant.
All instants are epoch milliseconds. Every function here is pure; the
evaluation instant is always passed in explicitly.
"""

from enum import Enum
from typing import Optional, Tuple

from projectdashboard.value_normalizer import Instant, current_time_ms

MS_PER_DAY = 24 * 60 * 60 * 1000


class TaskStatus(str, Enum):
    """Temporal status of a task."""
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    OVERDUE = 'overdue'
    COMPLETED = 'completed'
    OVERDUE_COMPLETED = 'overdue_completed'


DELAYED_STATUSES = (TaskStatus.OVERDUE, TaskStatus.OVERDUE_COMPLETED)
DONE_STATUSES = (TaskStatus.COMPLETED, TaskStatus.OVERDUE_COMPLETED)


def calculate_task_status(
    plan_start: Instant,
    plan_end: Instant,
    actual_end: Optional[Instant],
    now: Instant
) -> TaskStatus:
    """
    Classify a task. First matching rule wins:

    1. actual_end set → OVERDUE_COMPLETED if it is after plan_end, else COMPLETED
    2. now before plan_start → NOT_STARTED
    3. now after plan_end → OVERDUE
    4. otherwise → IN_PROGRESS
    """
    if actual_end is not None:
        return TaskStatus.OVERDUE_COMPLETED if actual_end > plan_end else TaskStatus.COMPLETED

    if now < plan_start:
        return TaskStatus.NOT_STARTED

    if now > plan_end:
        return TaskStatus.OVERDUE

    return TaskStatus.IN_PROGRESS


def calculate_progress(
    plan_start: Instant,
    plan_end: Instant,
    actual_end: Optional[Instant],
    now: Instant
) -> float:
    """
    Calculate progress as a fraction in [0, 1].

    Completed tasks are always at 1. Otherwise progress is the elapsed share
    of the planned window, clamped. A zero-length or inverted window counts
    as done once now reaches plan_end.

    Args:
        plan_start: Planned start (ms)
        plan_end: Planned end (ms)
        actual_end: Actual completion (ms) or None
        now: Evaluation instant (ms)

    Returns:
        Progress fraction between 0.0 and 1.0
    """
    if actual_end is not None:
        return 1.0

    if plan_end <= plan_start:
        return 1.0 if now >= plan_end else 0.0

    ratio = (now - plan_start) / (plan_end - plan_start)
    return min(1.0, max(0.0, ratio))


def calculate_delay_days(
    plan_end: Instant,
    actual_end: Optional[Instant],
    status: TaskStatus,
    now: Instant
) -> Optional[int]:
    """
    Whole days a delayed task ran past its planned end.

    Only OVERDUE and OVERDUE_COMPLETED tasks have a delay. Completed tasks
    measure up to actual_end, live overdue tasks up to now. Returns None
    unless the result is at least one full day.
    """
    if status not in DELAYED_STATUSES:
        return None

    end = actual_end if actual_end is not None else now
    days = int((end - plan_end) // MS_PER_DAY)
    return days if days > 0 else None


def classify_task(
    plan_start: Instant,
    plan_end: Instant,
    actual_end: Optional[Instant] = None,
    now: Optional[Instant] = None
) -> Tuple[TaskStatus, float, Optional[int]]:
    """
    Derive (status, progress, delay_days) for one task.

    Args:
        plan_start: Planned start (ms)
        plan_end: Planned end (ms)
        actual_end: Actual completion (ms) or None
        now: Evaluation instant (ms), defaults to the current time

    Returns:
        Tuple of (status, progress, delay_days)

    Example:
        >>> day = MS_PER_DAY
        >>> classify_task(0, 9 * day, None, now=4 * day)
        (<TaskStatus.IN_PROGRESS: 'in_progress'>, 0.4444444444444444, None)
    """
    if now is None:
        now = current_time_ms()

    status = calculate_task_status(plan_start, plan_end, actual_end, now)
    progress = calculate_progress(plan_start, plan_end, actual_end, now)
    delay_days = calculate_delay_days(plan_end, actual_end, status, now)
    return (status, progress, delay_days)
