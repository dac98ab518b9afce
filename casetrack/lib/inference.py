"""
Day-number inference for photo upload batches.

Assigns each uploaded photo to a recovery day using, in priority order:
1. Day labels in folder names or filenames ("day3", "Day -1", "14")
2. Dates in folder names or filenames ("2025-01-15", "20250115")
3. EXIF capture dates (earliest photo becomes Day 0)
4. Fallback: everything to Day 0

Classification never raises. Keys of the returned mapping carry no order;
use sorted_day_groups() before presenting them.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, TypeVar
import logging
import math
import os

from casetrack.lib.metadata import read_capture_datetime
from casetrack.lib.patterns import parse_date, parse_day_number
from casetrack.lib.uploads import KeyedEntry, UploadedFile, is_image, path_segments

logger = logging.getLogger(__name__)

DayGroups = dict[int, list[UploadedFile]]
T = TypeVar('T')

ONE_DAY = timedelta(days=1)

# root/subfolder/file
SUBFOLDER_DEPTH = 3


def build_entries(uploads: list[UploadedFile]) -> list[KeyedEntry]:
    """
    Pair image uploads with the key their day is inferred from.

    If any upload sits in a subfolder (root/subfolder/file), the subfolder
    name is the key and root-level files are skipped. Otherwise each
    filename is its own key.
    """
    depths = [len(path_segments(upload.relative_path)) for upload in uploads]
    has_subfolders = any(depth >= SUBFOLDER_DEPTH for depth in depths)

    entries = []
    for upload, depth in zip(uploads, depths):
        segments = path_segments(upload.relative_path)
        if has_subfolders:
            if depth < SUBFOLDER_DEPTH:
                logger.debug(f"Skipping root-level file {upload.relative_path}")
                continue
            entries.append(KeyedEntry(upload, segments[1]))
        else:
            entries.append(KeyedEntry(upload, segments[-1] if segments else ''))
    return entries


def count_votes(keys: Iterable[str]) -> tuple[int, int]:
    """
    Count distinct keys that look like day labels and like dates.

    A key that parses as a day label is not also counted as a date.

    Returns:
        Tuple of (day_label_count, date_count)
    """
    day_count = 0
    date_count = 0
    for key in set(keys):
        if parse_day_number(key) is not None:
            day_count += 1
        elif parse_date(key) is not None:
            date_count += 1
    return day_count, date_count


def group_by_relative_day(pairs: list[tuple[T, date]]) -> dict[int, list[T]]:
    """
    Group items by whole days elapsed since the earliest value.

    Values are all dates or all datetimes. The earliest becomes Day 0 and
    differences are rounded to the nearest day (half rounds up).
    """
    grouped: dict[int, list[T]] = {}
    if not pairs:
        return grouped

    anchor = min(value for _, value in pairs)
    for item, value in pairs:
        day_number = math.floor((value - anchor) / ONE_DAY + 0.5)
        grouped.setdefault(day_number, []).append(item)
    return grouped


def _add_to_day_zero(grouped: DayGroups, uploads: list[UploadedFile]) -> None:
    if uploads:
        grouped.setdefault(0, []).extend(uploads)


def _group_by_day_number(entries: list[KeyedEntry]) -> DayGroups:
    grouped: DayGroups = {}
    unmatched = []
    for entry in entries:
        day_number = parse_day_number(entry.key)
        if day_number is None:
            unmatched.append(entry.upload)
        else:
            grouped.setdefault(day_number, []).append(entry.upload)
    _add_to_day_zero(grouped, unmatched)
    return grouped


def _group_by_date(entries: list[KeyedEntry]) -> DayGroups:
    dated = []
    unmatched = []
    for entry in entries:
        found = parse_date(entry.key)
        if found is None:
            unmatched.append(entry.upload)
        else:
            dated.append((entry.upload, found))

    if not dated:
        # Vote and re-parse use the same parser, so this should not happen
        logger.warning("Date mode selected but no key parsed as a date")
        return {0: [entry.upload for entry in entries]}

    grouped = group_by_relative_day(dated)
    _add_to_day_zero(grouped, unmatched)
    return grouped


def _group_by_capture_date(
    entries: list[KeyedEntry],
    read_capture: Callable[[UploadedFile], Optional[datetime]],
    max_workers: Optional[int]
) -> DayGroups:
    uploads = [entry.upload for entry in entries]
    workers = max(1, min(max_workers or os.cpu_count() or 1, len(uploads)))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        captured = list(executor.map(lambda upload: _safe_read(read_capture, upload), uploads))

    with_metadata = [(upload, dt.date()) for upload, dt in zip(uploads, captured) if dt]
    without_metadata = [upload for upload, dt in zip(uploads, captured) if not dt]
    logger.info(
        f"Capture dates found for {len(with_metadata)}/{len(uploads)} files"
    )

    if not with_metadata:
        return {0: uploads}

    grouped = group_by_relative_day(with_metadata)
    _add_to_day_zero(grouped, without_metadata)
    return grouped


def _safe_read(
    read_capture: Callable[[UploadedFile], Optional[datetime]],
    upload: UploadedFile
) -> Optional[datetime]:
    try:
        return read_capture(upload)
    except Exception as e:
        logger.warning(f"Capture date read failed for {upload.relative_path}: {e}")
        return None


def infer_days(
    uploads: Iterable[UploadedFile],
    read_capture: Callable[[UploadedFile], Optional[datetime]] = read_capture_datetime,
    max_workers: Optional[int] = None
) -> DayGroups:
    """
    Assign every image upload in a batch to a recovery day.

    Non-image uploads are ignored. When the batch has subfolders, files at
    the root level are left out of the result entirely; every other image
    upload lands in exactly one group.

    Args:
        uploads: Upload handles for one batch
        read_capture: Reads a capture datetime from an upload (EXIF by default);
                      only called when no name in the batch carries a day or date
        max_workers: Thread count for capture-date reads (None = CPU count)

    Returns:
        Mapping of day number to uploads. Key order is meaningless.
    """
    images = [upload for upload in uploads if is_image(upload)]
    entries = build_entries(images)
    if not entries:
        return {}

    day_count, date_count = count_votes(entry.key for entry in entries)
    logger.debug(f"Key votes: {day_count} day labels, {date_count} dates")

    if day_count == 0 and date_count == 0:
        logger.info(f"No day labels or dates in names, reading capture dates for {len(entries)} files")
        return _group_by_capture_date(entries, read_capture, max_workers)

    if date_count > day_count:
        logger.info(f"Grouping {len(entries)} files by date")
        return _group_by_date(entries)

    logger.info(f"Grouping {len(entries)} files by day label")
    return _group_by_day_number(entries)


def sorted_day_groups(grouped: DayGroups) -> list[tuple[int, list[UploadedFile]]]:
    """Day groups in ascending day order, for display."""
    return sorted(grouped.items(), key=lambda item: item[0])
