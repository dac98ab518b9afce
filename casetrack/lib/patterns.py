"""
Day-number and date extraction from folder names and filenames.

Recognizes the naming conventions clinicians use when organizing recovery
photos:
- day labels: "day3", "Day -1", "day 14", or a bare number such as "0" or "-1"
- dates: "2025-01-15", "2025.3.22", or compact "20250115"
"""
from datetime import date
from typing import Optional
import re

# Bare numbers longer than this are not day labels ("20250101" is a date)
MAX_DAY_NUMBER_DIGITS = 4

# Compact YYYYMMDD dates are only trusted inside this year range
COMPACT_YEAR_MIN = 2000
COMPACT_YEAR_MAX = 2099

DAY_LABEL_REGEX = re.compile(r'day\s*([-+]?[0-9]+)', re.IGNORECASE)
BARE_DAY_REGEX = re.compile(r'[-+]?[0-9]{1,%d}' % MAX_DAY_NUMBER_DIGITS)
SEPARATED_DATE_REGEX = re.compile(r'([0-9]{4})[-.]([0-9]{1,2})[-.]([0-9]{1,2})')
COMPACT_DATE_REGEX = re.compile(r'([0-9]{4})([0-9]{2})([0-9]{2})')


def parse_day_number(key: str) -> Optional[int]:
    """
    Extract a day number from a folder name or filename.

    Looks for patterns like:
    - day3, Day-1, day 14, day0_morning.jpg
    - 0, 3, -1 (the whole key, at most MAX_DAY_NUMBER_DIGITS digits)

    Args:
        key: Folder name or filename to parse

    Returns:
        The day number, or None if the key carries no day label
    """
    label = DAY_LABEL_REGEX.search(key)
    if label:
        return int(label.group(1))

    bare = BARE_DAY_REGEX.fullmatch(key.strip())
    if bare:
        return int(bare.group(0))

    return None


def parse_date(key: str) -> Optional[date]:
    """
    Extract a calendar date from a folder name or filename.

    The separated form (YYYY-M-D or YYYY.M.D) is tried first, then the
    compact YYYYMMDD form restricted to COMPACT_YEAR_MIN..COMPACT_YEAR_MAX.

    Args:
        key: Folder name or filename to parse

    Returns:
        The date, or None if no valid date is found
    """
    separated = SEPARATED_DATE_REGEX.search(key)
    if separated:
        found = _build_date(*separated.groups())
        if found:
            return found

    compact = COMPACT_DATE_REGEX.search(key)
    if compact:
        year = int(compact.group(1))
        if COMPACT_YEAR_MIN <= year <= COMPACT_YEAR_MAX:
            return _build_date(*compact.groups())

    return None


def _build_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None
