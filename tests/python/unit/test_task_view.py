"""
Unit tests for task_view module.
"""

import pytest

from projectdashboard.dashboard_config import DashboardConfig, RoleMapping, normalize_config
from projectdashboard.task_builder import Task, build_tasks
from projectdashboard.task_classifier import TaskStatus
from projectdashboard.task_view import (
    format_date, get_status_text, get_delay_label, build_table_rows, build_dashboard_payload,
    CONFIG_INCOMPLETE, NO_VALID_TASKS, EMPTY_DATE
)

JAN_01 = 1704067200000
JAN_10 = 1704844800000
JAN_12 = 1705017600000
JAN_15 = 1705276800000


def create_task(status, delay_days=None, progress=0.0, actual_end=None):
    return Task(
        id='a', name='A', plan_start=JAN_01, plan_end=JAN_10, actual_end=actual_end,
        status=status, progress=progress, delay_days=delay_days
    )


class TestFormatDate:
    """Tests for format_date function."""

    def test_milliseconds(self):
        """Test epoch milliseconds format as a UTC date."""
        assert format_date(JAN_12) == '2024-01-12'

    def test_none(self):
        """Test absent dates show a placeholder."""
        assert format_date(None) == EMPTY_DATE

    @pytest.mark.parametrize("value", [10 ** 17, -10 ** 17])
    def test_out_of_calendar_range(self, value):
        """Test instants no calendar date can show use the placeholder."""
        assert format_date(value) == EMPTY_DATE

    def test_far_future_task_row(self):
        """Test a task with a huge planned end still renders."""
        task = Task(
            id='a', name='A', plan_start=JAN_01, plan_end=10 ** 17, actual_end=None,
            status=TaskStatus.IN_PROGRESS, progress=0.0, delay_days=None
        )
        payload = build_dashboard_payload([task], DashboardConfig(), JAN_15)
        assert payload['rows'][0]['planStart'] == '2024-01-01'
        assert payload['rows'][0]['planEnd'] == EMPTY_DATE


class TestLabels:
    """Tests for status and delay labels."""

    def test_status_text_languages(self):
        """Test English, Chinese and fallback labels."""
        assert get_status_text(TaskStatus.OVERDUE_COMPLETED) == 'Completed late'
        assert get_status_text(TaskStatus.IN_PROGRESS, 'zh-CN') == '进行中'
        assert get_status_text(TaskStatus.OVERDUE, 'fr') == 'Overdue'

    def test_delay_label_overdue(self):
        """Test live overdue delay label."""
        assert get_delay_label(create_task(TaskStatus.OVERDUE, 5)) == 'Overdue by 5 days'

    def test_delay_label_completed_late(self):
        """Test completed-late delay label."""
        assert get_delay_label(create_task(TaskStatus.OVERDUE_COMPLETED, 2), 'zh') == '延期 2 天完成'

    def test_no_delay(self):
        """Test tasks without delay have no label."""
        assert get_delay_label(create_task(TaskStatus.OVERDUE, None)) is None
        assert get_delay_label(create_task(TaskStatus.IN_PROGRESS)) is None


class TestBuildTableRows:
    """Tests for build_table_rows function."""

    def test_row_content(self):
        """Test a row carries formatted values and the status color."""
        config = DashboardConfig(overdue_color='red')
        task = create_task(TaskStatus.OVERDUE_COMPLETED, 2, progress=1.0, actual_end=JAN_12)
        row = build_table_rows([task], config)[0]

        assert row['index'] == 1
        assert row['planStart'] == '2024-01-01'
        assert row['planEnd'] == '2024-01-10'
        assert row['actualEnd'] == '2024-01-12'
        assert row['status'] == 'overdue_completed'
        assert row['statusColor'] == 'red'
        assert row['delayLabel'] == 'Completed 2 days late'
        assert row['progressPercent'] == 100

    def test_progress_percent_rounding(self):
        """Test progress percent rounds half up."""
        rows = build_table_rows([create_task(TaskStatus.IN_PROGRESS, progress=0.125)], DashboardConfig())
        assert rows[0]['progressPercent'] == 13
        assert rows[0]['actualEnd'] == EMPTY_DATE

    def test_indexes_follow_order(self):
        """Test rows are numbered from 1 in task order."""
        tasks = [create_task(TaskStatus.NOT_STARTED) for _ in range(3)]
        assert [r['index'] for r in build_table_rows(tasks, DashboardConfig())] == [1, 2, 3]


class TestBuildDashboardPayload:
    """Tests for build_dashboard_payload function."""

    def test_full_payload(self, role_mapping, sample_records):
        """Test payload for a ready configuration with tasks."""
        config = DashboardConfig(mapping=role_mapping)
        tasks = build_tasks(sample_records, role_mapping, now=JAN_15)
        payload = build_dashboard_payload(tasks, config, JAN_15)

        assert payload['date'] == '2024-01-15'
        assert payload['emptyState'] is None
        assert payload['summary']['total'] == 3
        assert payload['summary']['completionRate'] == 33
        assert [r['name'] for r in payload['rows']] == ['Design', 'Build', 'Review']
        assert payload['colors']['accentColor'] == config.accent_color
        assert 'tableId' not in payload['colors']

    def test_config_incomplete(self):
        """Test empty state for an unfinished mapping."""
        payload = build_dashboard_payload([], normalize_config({'tableId': 't'}), JAN_15)
        assert payload['emptyState'] == CONFIG_INCOMPLETE
        assert payload['summary']['completionRate'] == 0
        assert payload['rows'] == []

    def test_no_valid_tasks(self, role_mapping):
        """Test empty state when a ready mapping produced nothing."""
        payload = build_dashboard_payload([], DashboardConfig(mapping=role_mapping), JAN_15)
        assert payload['emptyState'] == NO_VALID_TASKS

    def test_metadata_passthrough(self):
        """Test builder metadata is included."""
        payload = build_dashboard_payload([], DashboardConfig(), JAN_15, metadata={'totalRows': 4})
        assert payload['metadata'] == {'totalRows': 4}
