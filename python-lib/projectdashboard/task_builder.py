"""
Task building logic for the project dashboard plugin.

Main orchestrator that turns raw records into classified dashboard tasks.
Coordinates text extraction, date parsing and status classification, and
drops records that cannot form a valid task.
"""

from typing import Dict, List, Optional, Any, Iterable
from dataclasses import dataclass
import logging

from projectdashboard.dashboard_config import RoleMapping
from projectdashboard.task_classifier import TaskStatus, classify_task
from projectdashboard.value_normalizer import (
    Instant, extract_text, parse_date_value, current_time_ms
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Task:
    """A dashboard task. status, progress and delay_days derive from the dates and now."""
    id: str
    name: str
    plan_start: Instant
    plan_end: Instant
    actual_end: Optional[Instant]
    status: TaskStatus
    progress: float
    delay_days: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape used by the frontend."""
        return {
            'id': self.id,
            'name': self.name,
            'planStart': self.plan_start,
            'planEnd': self.plan_end,
            'actualEnd': self.actual_end,
            'status': self.status.value,
            'progress': self.progress,
            'delayDays': self.delay_days,
        }


class TaskBuilder:
    """
    Build dashboard tasks from raw records.

    A record is a dict ``{'id': ..., 'fields': {field_id: raw_value}}``.

    Pipeline:
    1. Check the role mapping is complete
    2. Process each record (extract name, parse dates, classify)
    3. Sort by planned start
    4. Return {tasks, metadata}
    """

    def __init__(self, mapping: RoleMapping):
        """
        Initialize builder with a role mapping.

        Args:
            mapping: RoleMapping naming the source field for each role
        """
        self.mapping = mapping
        self.stats = {
            'total_rows': 0,
            'displayed_rows': 0,
            'skipped_rows': 0,
            'skip_reasons': {}
        }
        self.warnings = []

    def build(self, records: Iterable[Dict[str, Any]], now: Optional[Instant] = None) -> Dict[str, Any]:
        """
        Main build method.

        Args:
            records: Raw records from the record provider
            now: Evaluation instant (ms), defaults to the current time.
                 Every task in one build is classified against the same instant.

        Returns:
            Dictionary with structure:
            {
                'tasks': [Task, ...],
                'metadata': {
                    'totalRows': int,
                    'displayedRows': int,
                    'skippedRows': int,
                    'skipReasons': {...},
                    'warnings': [...],
                    'configReady': bool
                }
            }
        """
        # Reset stats
        self.stats = {
            'total_rows': 0,
            'displayed_rows': 0,
            'skipped_rows': 0,
            'skip_reasons': {}
        }
        self.warnings = []

        if now is None:
            now = current_time_ms()

        records = list(records or [])
        self.stats['total_rows'] = len(records)

        config_ready = self.mapping.is_complete()
        tasks = []
        if config_ready:
            for row_idx, record in enumerate(records):
                task = self._process_record(record, row_idx, now)
                if task:
                    tasks.append(task)

            # Stable sort keeps source order for equal planned starts
            tasks = sorted(tasks, key=lambda t: t.plan_start)
        else:
            missing = ', '.join(self.mapping.missing_roles())
            logger.warning(f"Role mapping incomplete ({missing}). No tasks built.")
            self.warnings.append(f"Required roles not mapped: {missing}.")

        logger.info(f"Built {len(tasks)} valid tasks from {self.stats['total_rows']} records")

        self.stats['displayed_rows'] = len(tasks)
        self.stats['skipped_rows'] = self.stats['total_rows'] - self.stats['displayed_rows']

        return {
            'tasks': tasks,
            'metadata': {
                'totalRows': self.stats['total_rows'],
                'displayedRows': self.stats['displayed_rows'],
                'skippedRows': self.stats['skipped_rows'],
                'skipReasons': self.stats['skip_reasons'],
                'warnings': self.warnings,
                'configReady': config_ready
            }
        }

    def _process_record(self, record: Dict[str, Any], row_idx: int, now: Instant) -> Optional[Task]:
        """
        Process a single raw record into a Task.

        Args:
            record: Raw record
            row_idx: Position in the input, used for logging and fallback ids
            now: Evaluation instant (ms)

        Returns:
            Task or None if the record should be skipped
        """
        field_values = record.get('fields') or {}

        name = extract_text(field_values.get(self.mapping.task_field_id))
        if not name:
            self._increment_skip_reason('empty_name')
            return None

        plan_start = parse_date_value(field_values.get(self.mapping.plan_start_field_id))
        plan_end = parse_date_value(field_values.get(self.mapping.plan_end_field_id))
        if plan_start is None or plan_end is None:
            self._increment_skip_reason('invalid_plan_dates')
            logger.debug(f"Record {row_idx} ('{name}'): planned start or end missing. Skipping.")
            return None

        # Unparseable actual end means "not finished", never a skip
        actual_end = None
        if self.mapping.actual_end_field_id:
            actual_end = parse_date_value(field_values.get(self.mapping.actual_end_field_id))

        status, progress, delay_days = classify_task(plan_start, plan_end, actual_end, now)

        record_id = record.get('id')
        return Task(
            id=str(record_id) if record_id is not None else f"record_{row_idx}",
            name=name,
            plan_start=plan_start,
            plan_end=plan_end,
            actual_end=actual_end,
            status=status,
            progress=progress,
            delay_days=delay_days,
        )

    def _increment_skip_reason(self, reason: str) -> None:
        """Increment skip reason counter."""
        self.stats['skip_reasons'][reason] = self.stats['skip_reasons'].get(reason, 0) + 1


def build_tasks(
    records: Iterable[Dict[str, Any]],
    mapping: RoleMapping,
    now: Optional[Instant] = None
) -> List[Task]:
    """
    Build the sorted task list for a set of raw records.

    Malformed records are dropped; an incomplete mapping gives [].
    """
    return TaskBuilder(mapping).build(records, now)['tasks']
