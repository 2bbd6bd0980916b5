"""
Record and field metadata adapters for Dataiku datasets.

Turns a pandas DataFrame read from a dataset into the raw records the task
builder consumes, and describes the dataset's columns as FieldMeta entries
for the field matcher.
"""

from typing import Any, Dict, List, Optional
import pandas as pd
import logging

from projectdashboard.field_matcher import FieldMeta, FieldType

logger = logging.getLogger(__name__)

# Records read per load. The dashboard shows one bounded page, not the whole table.
DEFAULT_MAX_RECORDS = 200

_SCHEMA_DATE_TYPES = {'date', 'dateonly', 'datetimenotz'}
_SCHEMA_NUMBER_TYPES = {'tinyint', 'smallint', 'int', 'bigint', 'float', 'double'}
_SCHEMA_TEXT_TYPES = {'string'}


def records_from_dataframe(
    df: pd.DataFrame,
    id_column: Optional[str] = None,
    max_records: int = DEFAULT_MAX_RECORDS
) -> List[Dict[str, Any]]:
    """
    Convert DataFrame rows to raw records keyed by column name.

    Args:
        df: Dataset rows
        id_column: Column holding the record id. Rows without one get 'row_<index>'.
        max_records: Cap on records returned (0 = unlimited)

    Returns:
        List of {'id': str, 'fields': {column: value}}; pandas nulls become None

    Example:
        >>> df = pd.DataFrame({'task': ['Design'], 'start': ['2024-01-01']})
        >>> records_from_dataframe(df)
        [{'id': 'row_0', 'fields': {'task': 'Design', 'start': '2024-01-01'}}]
    """
    if df is None or df.empty:
        return []

    if max_records > 0 and len(df) > max_records:
        logger.info(f"Dataset has {len(df)} rows. Reading first {max_records}.")
        df = df.head(max_records)

    if id_column and id_column not in df.columns:
        logger.warning(f"Id column '{id_column}' not found, using row index")
        id_column = None

    records = []
    for row_idx, row in df.iterrows():
        record_id = None
        if id_column:
            raw_id = _clean_cell(row[id_column])
            if raw_id is not None and str(raw_id).strip() != '':
                record_id = str(raw_id).strip()
        if record_id is None:
            record_id = f"row_{row_idx}"

        records.append({
            'id': record_id,
            'fields': {column: _clean_cell(row[column]) for column in df.columns}
        })

    return records


def _clean_cell(value: Any) -> Any:
    """Replace pandas null markers (NaN, NaT, None) with None."""
    if isinstance(value, (list, tuple, dict)):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass  # Array-like cell, keep as-is
    return value


def fields_from_dataframe(df: pd.DataFrame) -> List[FieldMeta]:
    """
    Describe DataFrame columns as field descriptors, typed from their dtypes.
    """
    if df is None:
        return []

    result = []
    for column in df.columns:
        dtype = df[column].dtype
        if pd.api.types.is_datetime64_any_dtype(dtype):
            field_type = FieldType.DATETIME
        elif pd.api.types.is_bool_dtype(dtype):
            field_type = FieldType.OTHER
        elif pd.api.types.is_numeric_dtype(dtype):
            field_type = FieldType.NUMBER
        elif pd.api.types.is_object_dtype(dtype) or pd.api.types.is_string_dtype(dtype):
            field_type = FieldType.TEXT
        else:
            field_type = FieldType.OTHER
        result.append(FieldMeta(id=str(column), name=str(column), type=field_type))
    return result


def fields_from_schema(schema: List[Dict[str, Any]]) -> List[FieldMeta]:
    """
    Describe columns of a Dataiku dataset schema as field descriptors.

    Args:
        schema: Columns as returned by dataset.read_schema(), each {'name', 'type'}

    Returns:
        List of FieldMeta in schema order

    Example:
        >>> fields_from_schema([{'name': 'due', 'type': 'date'}])[0].type
        <FieldType.DATETIME: 'datetime'>
    """
    result = []
    for column in schema or []:
        name = column.get('name')
        if not name:
            continue
        schema_type = str(column.get('type', '')).lower()
        if schema_type in _SCHEMA_DATE_TYPES:
            field_type = FieldType.DATETIME
        elif schema_type in _SCHEMA_NUMBER_TYPES:
            field_type = FieldType.NUMBER
        elif schema_type in _SCHEMA_TEXT_TYPES:
            field_type = FieldType.TEXT
        else:
            field_type = FieldType.OTHER
        result.append(FieldMeta(id=name, name=name, type=field_type))
    return result
