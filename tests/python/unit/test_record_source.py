"""
Unit tests for record_source module.
"""

import pytest
import pandas as pd
import numpy as np

from projectdashboard.dashboard_config import RoleMapping
from projectdashboard.field_matcher import FieldType
from projectdashboard.record_source import (
    records_from_dataframe, fields_from_dataframe, fields_from_schema
)
from projectdashboard.task_builder import build_tasks
from projectdashboard.task_classifier import TaskStatus

JAN_15 = 1705276800000


class TestRecordsFromDataFrame:
    """Tests for records_from_dataframe function."""

    def test_basic_conversion(self, sample_dashboard_df):
        """Test rows become records keyed by column name."""
        records = records_from_dataframe(sample_dashboard_df, id_column='task_id')
        assert len(records) == 3
        assert records[0]['id'] == 'T1'
        assert records[0]['fields']['Task'] == 'Design'
        assert set(records[0]['fields']) == set(sample_dashboard_df.columns)

    def test_nulls_become_none(self, sample_dashboard_df):
        """Test NaN and NaT cells are None."""
        records = records_from_dataframe(sample_dashboard_df, id_column='task_id')
        assert records[1]['fields']['Actual End'] is None
        assert records[2]['fields']['Plan Start'] is None

    def test_null_id_falls_back_to_index(self, sample_dashboard_df):
        """Test rows without an id get a row-based one."""
        records = records_from_dataframe(sample_dashboard_df, id_column='task_id')
        assert records[2]['id'] == 'row_2'

    def test_missing_id_column(self, sample_dashboard_df):
        """Test an unknown id column falls back to the row index."""
        records = records_from_dataframe(sample_dashboard_df, id_column='nonexistent')
        assert [r['id'] for r in records] == ['row_0', 'row_1', 'row_2']

    def test_numeric_ids(self):
        """Test numeric ids are stringified."""
        df = pd.DataFrame({'id': [7, 8], 'name': ['a', 'b']})
        assert [r['id'] for r in records_from_dataframe(df, id_column='id')] == ['7', '8']

    def test_max_records(self):
        """Test the record cap."""
        df = pd.DataFrame({'name': [f'Task {i}' for i in range(300)]})
        assert len(records_from_dataframe(df)) == 200
        assert len(records_from_dataframe(df, max_records=10)) == 10
        assert len(records_from_dataframe(df, max_records=0)) == 300

    def test_rich_text_cells_kept(self):
        """Test list and dict cells pass through untouched."""
        segments = [{'type': 'text', 'text': 'Design'}]
        df = pd.DataFrame({'name': [segments]})
        assert records_from_dataframe(df)[0]['fields']['name'] == segments

    def test_empty_dataframe(self):
        """Test empty input gives no records."""
        assert records_from_dataframe(pd.DataFrame()) == []
        assert records_from_dataframe(None) == []

    def test_feeds_builder(self, sample_dashboard_df):
        """Test DataFrame records build into classified tasks."""
        mapping = RoleMapping(
            table_id='project_tasks',
            task_field_id='Task',
            plan_start_field_id='Plan Start',
            plan_end_field_id='Plan End',
            actual_end_field_id='Actual End'
        )
        records = records_from_dataframe(sample_dashboard_df, id_column='task_id')
        tasks = build_tasks(records, mapping, now=JAN_15)

        # 'Test' has no planned start and is dropped
        assert [t.id for t in tasks] == ['T1', 'T2']
        assert tasks[0].status == TaskStatus.OVERDUE_COMPLETED
        assert tasks[0].delay_days == 2
        assert tasks[1].status == TaskStatus.OVERDUE
        assert tasks[1].delay_days == 5


class TestFieldsFromDataFrame:
    """Tests for fields_from_dataframe function."""

    def test_types_from_dtypes(self, sample_dashboard_df):
        """Test dtypes map to field types."""
        types = {f.id: f.type for f in fields_from_dataframe(sample_dashboard_df)}
        assert types['Task'] == FieldType.TEXT
        assert types['Plan Start'] == FieldType.DATETIME
        assert types['Actual End'] == FieldType.DATETIME

    def test_numeric_and_bool(self):
        """Test numeric columns are numbers and booleans are other."""
        df = pd.DataFrame({'days': [1, 2], 'ratio': [0.5, np.nan], 'done': [True, False]})
        types = {f.id: f.type for f in fields_from_dataframe(df)}
        assert types == {'days': FieldType.NUMBER, 'ratio': FieldType.NUMBER, 'done': FieldType.OTHER}

    def test_column_order(self, sample_dashboard_df):
        """Test fields keep column order."""
        assert [f.name for f in fields_from_dataframe(sample_dashboard_df)] == list(sample_dashboard_df.columns)


class TestFieldsFromSchema:
    """Tests for fields_from_schema function."""

    def test_schema_types(self):
        """Test Dataiku schema types map to field types."""
        schema = [
            {'name': 'Task', 'type': 'string'},
            {'name': 'Start', 'type': 'date'},
            {'name': 'End', 'type': 'dateonly'},
            {'name': 'Days', 'type': 'bigint'},
            {'name': 'Score', 'type': 'double'},
            {'name': 'Tags', 'type': 'array'},
        ]
        types = [f.type for f in fields_from_schema(schema)]
        assert types == [
            FieldType.TEXT, FieldType.DATETIME, FieldType.DATETIME,
            FieldType.NUMBER, FieldType.NUMBER, FieldType.OTHER
        ]

    def test_nameless_columns_skipped(self):
        """Test columns without a name are ignored."""
        assert fields_from_schema([{'type': 'string'}, {'name': 'Task'}])[0].id == 'Task'
        assert len(fields_from_schema([{'type': 'string'}, {'name': 'Task'}])) == 1

    def test_empty_schema(self):
        """Test empty or missing schemas."""
        assert fields_from_schema([]) == []
        assert fields_from_schema(None) == []
