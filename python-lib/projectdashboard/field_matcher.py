"""
Field auto-matching utilities for the project dashboard plugin.

Proposes a source field for each empty role by keyword heuristics on field
names, and filters the fields offered for each role by declared type.
Suggestions are best-effort only: they never override a mapping the user
chose, and a wrong or missing guess is fixed by picking the field by hand.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from projectdashboard.dashboard_config import RoleMapping

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    """Declared field types relevant to role filtering."""
    TEXT = 'text'
    NUMBER = 'number'
    DATETIME = 'datetime'
    FORMULA = 'formula'
    OTHER = 'other'


@dataclass(frozen=True)
class FieldMeta:
    """Field descriptor from the field metadata provider."""
    id: str
    name: str
    type: FieldType = FieldType.OTHER

    def to_dict(self) -> Dict[str, str]:
        return {'id': self.id, 'name': self.name, 'type': self.type.value}


# ===== ROLE KEYWORDS =====
# Ordered (keyword, role attribute) pairs. Earlier keywords are tried first
# for each field. Pass a different list to auto_match_fields() to override.

ROLE_KEYWORDS: List[Tuple[str, str]] = [
    ('任务', 'task_field_id'),
    ('事项', 'task_field_id'),
    ('步骤', 'task_field_id'),
    ('task', 'task_field_id'),
    ('item', 'task_field_id'),
    ('开始', 'plan_start_field_id'),
    ('start', 'plan_start_field_id'),
    ('开工', 'plan_start_field_id'),
    ('截止', 'plan_end_field_id'),
    ('到期', 'plan_end_field_id'),
    ('结束', 'plan_end_field_id'),
    ('end', 'plan_end_field_id'),
    ('due', 'plan_end_field_id'),
    ('实际完成', 'actual_end_field_id'),
    ('实际完成时间', 'actual_end_field_id'),
    ('完成时间', 'actual_end_field_id'),
    ('实际', 'actual_end_field_id'),
    ('actual', 'actual_end_field_id'),
]

# Text fields whose names contain one of these can hold dates
DATE_NAME_KEYWORDS = ['时间', '日期', 'date', 'time', '开始', '截止', '完成', 'start', 'end']

MATCHABLE_ROLES = ('task_field_id', 'plan_start_field_id', 'plan_end_field_id', 'actual_end_field_id')


def keywords_for_role(role: str, keyword_pairs: Sequence[Tuple[str, str]] = ROLE_KEYWORDS) -> List[str]:
    """Keywords for one role, in list order."""
    return [keyword for keyword, keyword_role in keyword_pairs if keyword_role == role]


def find_field_id_by_keywords(fields: Sequence[FieldMeta], keywords: Sequence[str]) -> Optional[str]:
    """
    Find the first field whose name contains any of the keywords.

    Matching is a case-insensitive substring test. Fields are scanned in
    order and the first hit wins; this is not a best-match ranking.

    Args:
        fields: Available field descriptors
        keywords: Candidate keywords

    Returns:
        Field id, or None if no field matches

    Example:
        >>> fields = [FieldMeta('f1', 'Owner'), FieldMeta('f2', 'Start Date')]
        >>> find_field_id_by_keywords(fields, ['START'])
        'f2'
    """
    lowered = [keyword.lower() for keyword in keywords if keyword]
    for field in fields:
        name = (field.name or '').lower()
        if any(keyword in name for keyword in lowered):
            return field.id
    return None


def auto_match_fields(
    fields: Sequence[FieldMeta],
    mapping: RoleMapping,
    keyword_pairs: Sequence[Tuple[str, str]] = ROLE_KEYWORDS
) -> Dict[str, str]:
    """
    Propose fields for the roles that are currently unmapped.

    Args:
        fields: Available field descriptors for the selected table
        mapping: Current role mapping
        keyword_pairs: Ordered (keyword, role) pairs

    Returns:
        Dict of {role attribute: field id} for the roles a field was found for.
        Already-mapped roles never appear.
    """
    if not mapping.table_id or not fields:
        return {}

    updates = {}
    for role in MATCHABLE_ROLES:
        if getattr(mapping, role):
            continue
        match = find_field_id_by_keywords(fields, keywords_for_role(role, keyword_pairs))
        if match:
            updates[role] = match

    if updates:
        logger.info(f"Auto-matched roles: {', '.join(f'{k}={v}' for k, v in updates.items())}")

    return updates


def apply_auto_match(
    fields: Sequence[FieldMeta],
    mapping: RoleMapping,
    keyword_pairs: Sequence[Tuple[str, str]] = ROLE_KEYWORDS
) -> RoleMapping:
    """Return the mapping with auto-matched fields filled into its empty roles."""
    updates = auto_match_fields(fields, mapping, keyword_pairs)
    if not updates:
        return mapping
    return replace(mapping, **updates)


def get_date_field_options(fields: Sequence[FieldMeta]) -> List[FieldMeta]:
    """
    Fields offered for date roles: datetime and formula fields, plus text
    fields with a date-like name.
    """
    options = []
    for field in fields:
        if field.type in (FieldType.DATETIME, FieldType.FORMULA):
            options.append(field)
        elif field.type == FieldType.TEXT:
            name = (field.name or '').lower()
            if any(keyword.lower() in name for keyword in DATE_NAME_KEYWORDS):
                options.append(field)
    return options


def get_text_field_options(fields: Sequence[FieldMeta]) -> List[FieldMeta]:
    """Fields offered for the task name role: text, number and formula fields."""
    return [
        field for field in fields
        if field.type in (FieldType.TEXT, FieldType.NUMBER, FieldType.FORMULA)
    ]
