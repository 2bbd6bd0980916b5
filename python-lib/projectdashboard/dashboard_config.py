"""
Dashboard configuration for the project dashboard plugin.

Holds the role mapping (which dataset columns play task name, planned start,
planned end and actual end) and the five display colors. Persisted configs
are partial camelCase dicts; normalize_config() merges them with defaults.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Dict, Any, List, Optional
import json
import logging

from projectdashboard.task_classifier import TaskStatus
from projectdashboard.value_normalizer import normalize_color

logger = logging.getLogger(__name__)

# ===== DEFAULT COLORS =====
# Host chart theme variables so the widget follows light/dark mode

DEFAULT_COLORS = {
    'accent_color': 'var(--ccm-chart-B500)',
    'completed_color': 'var(--ccm-chart-G500)',
    'in_progress_color': 'var(--ccm-chart-O500)',
    'overdue_color': 'var(--ccm-chart-R400)',
    'not_started_color': 'var(--ccm-chart-N500)',
}

# Persisted (camelCase) key for each attribute
_PERSISTED_KEYS = {
    'table_id': 'tableId',
    'task_field_id': 'taskFieldId',
    'plan_start_field_id': 'planStartFieldId',
    'plan_end_field_id': 'planEndFieldId',
    'actual_end_field_id': 'actualEndFieldId',
    'accent_color': 'accentColor',
    'completed_color': 'completedColor',
    'in_progress_color': 'inProgressColor',
    'overdue_color': 'overdueColor',
    'not_started_color': 'notStartedColor',
}


@dataclass(frozen=True)
class RoleMapping:
    """Source column for each task role. Empty string means unmapped."""
    table_id: str = ''
    task_field_id: str = ''
    plan_start_field_id: str = ''
    plan_end_field_id: str = ''
    actual_end_field_id: str = ''  # Optional role

    def is_complete(self) -> bool:
        """True when every required role is mapped."""
        return bool(
            self.table_id
            and self.task_field_id
            and self.plan_start_field_id
            and self.plan_end_field_id
        )

    def missing_roles(self) -> List[str]:
        """Names of the required roles that are still unmapped."""
        return [
            name for name in ('table_id', 'task_field_id', 'plan_start_field_id', 'plan_end_field_id')
            if not getattr(self, name)
        ]

    def with_table(self, table_id: str) -> 'RoleMapping':
        """Switch to another table. Field mappings belong to the old table and are cleared."""
        return RoleMapping(table_id=table_id)


@dataclass(frozen=True)
class DashboardConfig:
    """Complete dashboard configuration: role mapping plus colors."""
    mapping: RoleMapping = field(default_factory=RoleMapping)
    accent_color: str = DEFAULT_COLORS['accent_color']
    completed_color: str = DEFAULT_COLORS['completed_color']
    in_progress_color: str = DEFAULT_COLORS['in_progress_color']
    overdue_color: str = DEFAULT_COLORS['overdue_color']
    not_started_color: str = DEFAULT_COLORS['not_started_color']

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the flat camelCase dict the host persists."""
        result = {}
        for f in fields(RoleMapping):
            result[_PERSISTED_KEYS[f.name]] = getattr(self.mapping, f.name)
        for name in DEFAULT_COLORS:
            result[_PERSISTED_KEYS[name]] = getattr(self, name)
        return result

    def with_mapping(self, mapping: RoleMapping) -> 'DashboardConfig':
        """Copy with another role mapping, colors unchanged."""
        return replace(self, mapping=mapping)


def normalize_config(incoming: Optional[Dict[str, Any]] = None) -> DashboardConfig:
    """
    Merge a partial persisted config with defaults.

    Missing or non-string field ids become '' (unmapped). Blank or non-string
    colors fall back to DEFAULT_COLORS. Unknown keys are ignored.

    Args:
        incoming: Persisted camelCase dict, or None

    Returns:
        Complete DashboardConfig

    Example:
        >>> config = normalize_config({'tableId': 'tasks', 'overdueColor': '  '})
        >>> config.mapping.table_id, config.overdue_color
        ('tasks', 'var(--ccm-chart-R400)')
    """
    incoming = incoming if isinstance(incoming, dict) else {}

    mapping_values = {}
    for f in fields(RoleMapping):
        raw = incoming.get(_PERSISTED_KEYS[f.name])
        mapping_values[f.name] = raw.strip() if isinstance(raw, str) else ''

    color_values = {
        name: normalize_color(incoming.get(_PERSISTED_KEYS[name]), default)
        for name, default in DEFAULT_COLORS.items()
    }

    config = DashboardConfig(mapping=RoleMapping(**mapping_values), **color_values)
    if not config.mapping.is_complete():
        logger.info(f"Configuration incomplete, unmapped roles: {', '.join(config.mapping.missing_roles())}")
    return config


def get_status_color(status: TaskStatus, config: DashboardConfig) -> str:
    """
    Get the display color for a task status.

    Overdue and overdue-completed tasks share the overdue color.

    Example:
        >>> get_status_color(TaskStatus.COMPLETED, DashboardConfig())
        'var(--ccm-chart-G500)'
    """
    status_colors = {
        TaskStatus.NOT_STARTED: config.not_started_color,
        TaskStatus.IN_PROGRESS: config.in_progress_color,
        TaskStatus.OVERDUE: config.overdue_color,
        TaskStatus.COMPLETED: config.completed_color,
        TaskStatus.OVERDUE_COMPLETED: config.overdue_color,
    }
    return status_colors.get(status, config.in_progress_color)


def persisted_key(attribute: str) -> str:
    """camelCase persisted key for a config attribute ('plan_end_field_id' -> 'planEndFieldId')."""
    return _PERSISTED_KEYS[attribute]


def parse_config_param(raw: Optional[str]) -> Dict[str, Any]:
    """
    Parse the JSON config sent by the frontend.

    Args:
        raw: JSON object text, or None/'' when nothing was sent

    Returns:
        Parsed dict ({} when nothing was sent)

    Raises:
        ValueError: If the text is not JSON or not a JSON object
    """
    if not raw:
        return {}
    parsed = json.loads(raw)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config must be a JSON object, got {type(parsed).__name__}")
    return parsed


def select_table(config: DashboardConfig, table_id: Optional[str]) -> DashboardConfig:
    """
    Point the configuration at a table.

    Choosing a different table clears every field mapping, since field ids
    belong to the previous table. Colors are kept. A blank or unchanged table
    id returns the config as-is.
    """
    table_id = table_id.strip() if isinstance(table_id, str) else ''
    if not table_id or table_id == config.mapping.table_id:
        return config

    logger.info(f"Table switched from '{config.mapping.table_id}' to '{table_id}', clearing field mappings")
    return config.with_mapping(config.mapping.with_table(table_id))
