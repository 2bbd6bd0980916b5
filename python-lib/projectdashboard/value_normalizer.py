"""
Value normalization utilities for the project dashboard plugin.

Converts heterogeneous raw field values (plain strings, rich-text segment
lists, nested content objects, epoch numbers, date strings in several
notations) into canonical scalars: text and epoch milliseconds.
"""

import re
import datetime
from typing import Any, Optional, Union
import pandas as pd
import numpy as np

# Numbers below this are epoch seconds, at or above it epoch milliseconds
SECONDS_THRESHOLD = 10_000_000_000

NS_PER_MS = 1_000_000

_CHINESE_DATE_PATTERN = re.compile(r'(\d{4})\s*年\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日')

# pandas reads these as the current clock; a cell value is never relative
_RELATIVE_DATE_WORDS = {'now', 'today'}

Instant = Union[int, float]


def extract_text(value: Any) -> str:
    """
    Extract plain text from a raw field value.

    Supported shapes:
    1. str → returned as-is
    2. list of segments → concatenation of every ``{'type': 'text', 'text': ...}``
       segment, in order; other segments contribute nothing
    3. dict → its ``text`` if present, else recurse into ``content``
    4. Anything else → empty string

    Args:
        value: Raw field value

    Returns:
        Extracted text, '' when nothing usable is found

    Examples:
        >>> extract_text([{'type': 'text', 'text': 'Design'}, {'type': 'mention'}])
        'Design'

        >>> extract_text({'content': [{'type': 'text', 'text': 'Build'}]})
        'Build'
    """
    if value is None:
        return ''

    if isinstance(value, str):
        return value

    if isinstance(value, (list, tuple)):
        return ''.join(_segment_text(segment) for segment in value)

    if isinstance(value, dict):
        text = value.get('text')
        if text and isinstance(text, str):
            return text
        content = value.get('content')
        if isinstance(content, (list, tuple)):
            return extract_text(content)

    return ''


def _segment_text(segment: Any) -> str:
    """Text payload of one rich-text segment, '' for non-text segments."""
    if isinstance(segment, dict) and segment.get('type') == 'text':
        text = segment.get('text')
        if text and isinstance(text, str):
            return text
    return ''


def parse_date_value(value: Any) -> Optional[Instant]:
    """
    Parse a raw field value to epoch milliseconds.

    Tries the following in order:
    1. None / NaN / pd.NaT / bool → None
    2. Number → seconds if below SECONDS_THRESHOLD, else milliseconds
    3. datetime / date / pandas Timestamp / numpy datetime64 → milliseconds
    4. String → pd.to_datetime on the trimmed value
    5. String → retry with '.' replaced by '-' ("2024.01.05")
    6. String → "2024年1月5日" rebuilt as "2024-01-05"
    7. Fallback → None

    Naive dates are read as UTC. Words pandas reads as the clock ("now",
    "today") are not dates. Nothing is raised for unparseable input.

    Args:
        value: Raw field value

    Returns:
        Epoch milliseconds, or None when the value is absent or unparseable

    Examples:
        >>> parse_date_value(1704067200)
        1704067200000

        >>> parse_date_value("2024.01.01")
        1704067200000

        >>> parse_date_value("not-a-date") is None
        True
    """
    if value is None or value is pd.NaT:
        return None

    # bool is an int subclass but never a date
    if isinstance(value, (bool, np.bool_)):
        return None

    if isinstance(value, (int, float, np.integer, np.floating)):
        return _parse_epoch_number(value)

    if isinstance(value, (pd.Timestamp, datetime.datetime, datetime.date, np.datetime64)):
        return _timestamp_to_ms(value)

    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None

        parsed = _try_parse_string(trimmed)
        if parsed is not None:
            return parsed

        if '.' in trimmed:
            parsed = _try_parse_string(trimmed.replace('.', '-'))
            if parsed is not None:
                return parsed

        match = _CHINESE_DATE_PATTERN.search(trimmed)
        if match:
            year, month, day = match.groups()
            return _try_parse_string(f"{year}-{month.zfill(2)}-{day.zfill(2)}")

    return None


def _parse_epoch_number(value: Union[int, float]) -> Optional[Instant]:
    """
    Interpret a number as epoch seconds or milliseconds by magnitude.

    10^10 seconds is in the year 2286 while 10^10 milliseconds is early 1970,
    so realistic values on either side of the threshold are unambiguous.
    """
    if isinstance(value, np.generic):
        value = value.item()

    if isinstance(value, float) and not np.isfinite(value):
        return None

    return value * 1000 if value < SECONDS_THRESHOLD else value


def _timestamp_to_ms(value: Any) -> Optional[int]:
    """
    Convert a datetime-like value to epoch milliseconds (naive read as UTC).

    Works in millisecond resolution so dates outside the nanosecond range
    (before 1677 or after 2262) convert instead of overflowing.
    """
    try:
        ts = pd.Timestamp(value)
        if pd.isna(ts):
            return None
        return int(ts.as_unit('ms').asm8.view('i8'))
    except (ValueError, TypeError, OverflowError):
        # OutOfBoundsDatetime is a ValueError
        return None


def _try_parse_string(text: str) -> Optional[int]:
    """Parse a date string with pandas, None if it is not a date."""
    if text.lower() in _RELATIVE_DATE_WORDS:
        return None

    try:
        parsed = pd.to_datetime(text, errors='coerce')
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(parsed):
        return None

    return _timestamp_to_ms(parsed)


def normalize_color(value: Any, fallback: str) -> str:
    """
    Return the trimmed color when it is a non-empty string, else the fallback.

    Example:
        >>> normalize_color('  #3370FF ', 'var(--ccm-chart-B500)')
        '#3370FF'
        >>> normalize_color('   ', 'var(--ccm-chart-B500)')
        'var(--ccm-chart-B500)'
    """
    if not isinstance(value, str):
        return fallback

    trimmed = value.strip()
    return trimmed if trimmed else fallback


def current_time_ms() -> int:
    """Current wall-clock instant in epoch milliseconds."""
    return pd.Timestamp.now(tz='UTC').value // NS_PER_MS
