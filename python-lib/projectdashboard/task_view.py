"""
Presentation model for the project dashboard webapp.

Turns classified tasks and their summary into the JSON payload the frontend
renders: header date, summary cards and one row per task with formatted
dates, a status label, the status color and a delay label.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging
import pandas as pd

from projectdashboard.aggregator import round_half_up, summarize_tasks
from projectdashboard.dashboard_config import DashboardConfig, get_status_color
from projectdashboard.task_builder import Task
from projectdashboard.task_classifier import TaskStatus
from projectdashboard.value_normalizer import Instant

logger = logging.getLogger(__name__)

EMPTY_DATE = '--'

STATUS_LABELS = {
    'en': {
        TaskStatus.NOT_STARTED: 'Not started',
        TaskStatus.IN_PROGRESS: 'In progress',
        TaskStatus.OVERDUE: 'Overdue',
        TaskStatus.COMPLETED: 'Completed',
        TaskStatus.OVERDUE_COMPLETED: 'Completed late',
    },
    'zh': {
        TaskStatus.NOT_STARTED: '未开始',
        TaskStatus.IN_PROGRESS: '进行中',
        TaskStatus.OVERDUE: '已逾期',
        TaskStatus.COMPLETED: '已完成',
        TaskStatus.OVERDUE_COMPLETED: '逾期已完成',
    },
}

DELAY_LABELS = {
    'en': {
        TaskStatus.OVERDUE: 'Overdue by {days} days',
        TaskStatus.OVERDUE_COMPLETED: 'Completed {days} days late',
    },
    'zh': {
        TaskStatus.OVERDUE: '已逾期 {days} 天',
        TaskStatus.OVERDUE_COMPLETED: '延期 {days} 天完成',
    },
}

DEFAULT_LANGUAGE = 'en'

# Empty-state codes
CONFIG_INCOMPLETE = 'CONFIG_INCOMPLETE'
NO_VALID_TASKS = 'NO_VALID_TASKS'


def _language(language: Optional[str]) -> str:
    """Map 'zh-CN', 'zh_cn', ... to a supported label language."""
    if language and language.lower().startswith('zh'):
        return 'zh'
    return DEFAULT_LANGUAGE


def format_date(value: Optional[Instant]) -> str:
    """
    Format epoch milliseconds as YYYY-MM-DD (UTC).

    Example:
        >>> format_date(1704067200000)
        '2024-01-01'
        >>> format_date(None)
        '--'
        >>> format_date(10 ** 17)
        '--'
    """
    if value is None:
        return EMPTY_DATE
    try:
        return pd.Timestamp(value, unit='ms').strftime('%Y-%m-%d')
    except (ValueError, OverflowError, NotImplementedError):
        # Valid instant but beyond what a calendar date can show
        logger.warning(f"Cannot format date out of range: {value}")
        return EMPTY_DATE


def get_status_text(status: TaskStatus, language: str = DEFAULT_LANGUAGE) -> str:
    """Display label for a status."""
    return STATUS_LABELS[_language(language)].get(status, '')


def get_delay_label(task: Task, language: str = DEFAULT_LANGUAGE) -> Optional[str]:
    """Delay label for overdue tasks, None when the task has no delay."""
    if not task.delay_days:
        return None
    template = DELAY_LABELS[_language(language)].get(task.status)
    return template.format(days=task.delay_days) if template else None


def build_table_rows(
    tasks: Sequence[Task],
    config: DashboardConfig,
    language: str = DEFAULT_LANGUAGE
) -> List[Dict[str, Any]]:
    """
    Build one display row per task, in task order.

    Args:
        tasks: Tasks as returned by the builder (sorted by planned start)
        config: Dashboard configuration (status colors)
        language: Label language

    Returns:
        List of row dictionaries
    """
    rows = []
    for index, task in enumerate(tasks, start=1):
        rows.append({
            'index': index,
            'id': task.id,
            'name': task.name,
            'planStart': format_date(task.plan_start),
            'planEnd': format_date(task.plan_end),
            'actualEnd': format_date(task.actual_end),
            'status': task.status.value,
            'statusText': get_status_text(task.status, language),
            'statusColor': get_status_color(task.status, config),
            'delayDays': task.delay_days,
            'delayLabel': get_delay_label(task, language),
            'progressPercent': round_half_up(task.progress * 100),
        })
    return rows


def build_dashboard_payload(
    tasks: Sequence[Task],
    config: DashboardConfig,
    now: Instant,
    language: str = DEFAULT_LANGUAGE,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the full dashboard payload.

    emptyState tells the frontend which empty screen to show when there are
    no tasks: CONFIG_INCOMPLETE asks the user to finish the mapping,
    NO_VALID_TASKS means the data had no usable rows.

    Returns:
        {'date', 'summary', 'rows', 'colors', 'emptyState', 'metadata'}
    """
    empty_state = None
    if not tasks:
        empty_state = NO_VALID_TASKS if config.mapping.is_complete() else CONFIG_INCOMPLETE

    persisted = config.to_dict()
    return {
        'date': format_date(now),
        'summary': summarize_tasks(tasks).to_dict(),
        'rows': build_table_rows(tasks, config, language),
        'colors': {key: value for key, value in persisted.items() if key.endswith('Color')},
        'emptyState': empty_state,
        'metadata': metadata or {},
    }
