"""
Test fixtures for project dashboard plugin unit tests.
"""

import pytest
import pandas as pd

from projectdashboard.dashboard_config import RoleMapping


@pytest.fixture
def role_mapping():
    """Complete role mapping including the optional actual end."""
    return RoleMapping(
        table_id='project_tasks',
        task_field_id='fld_task',
        plan_start_field_id='fld_start',
        plan_end_field_id='fld_end',
        actual_end_field_id='fld_actual'
    )


@pytest.fixture
def sample_records():
    """Raw records in the shapes the record provider delivers."""
    return [
        {
            'id': 'rec_review',
            'fields': {
                'fld_task': 'Review',
                'fld_start': '2024-01-12',
                'fld_end': '2024-01-20',
                'fld_actual': None
            }
        },
        {
            'id': 'rec_design',
            'fields': {
                'fld_task': [{'type': 'text', 'text': 'Design'}, {'type': 'mention', 'text': '@bob'}],
                'fld_start': 1704067200,
                'fld_end': '2024.01.10',
                'fld_actual': '2024年1月12日'
            }
        },
        {
            'id': 'rec_build',
            'fields': {
                'fld_task': {'content': [{'type': 'text', 'text': 'Build'}]},
                'fld_start': '2024-01-03',
                'fld_end': 1704844800000,
                'fld_actual': None
            }
        },
        {
            'id': 'rec_no_start',
            'fields': {
                'fld_task': 'Deploy',
                'fld_start': None,
                'fld_end': '2024-01-10',
                'fld_actual': None
            }
        },
        {
            'id': 'rec_no_name',
            'fields': {
                'fld_task': '',
                'fld_start': '2024-01-01',
                'fld_end': '2024-01-10',
                'fld_actual': None
            }
        }
    ]


@pytest.fixture
def sample_dashboard_df():
    """DataFrame as read from a Dataiku dataset."""
    return pd.DataFrame({
        'task_id': ['T1', 'T2', None],
        'Task': ['Design', 'Build', 'Test'],
        'Plan Start': pd.to_datetime(['2024-01-01', '2024-01-03', None]),
        'Plan End': pd.to_datetime(['2024-01-10', '2024-01-10', '2024-01-20']),
        'Actual End': pd.to_datetime(['2024-01-12', None, None]),
        'Owner': ['ann', 'bob', 'cy']
    })
