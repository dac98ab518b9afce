"""
Library modules for casetrack.

Day inference and photo handling, independent of Flask and the database.
"""
from casetrack.lib.patterns import parse_day_number, parse_date
from casetrack.lib.metadata import read_capture_datetime, parse_exif_datetime
from casetrack.lib.uploads import UploadedFile, MemoryUpload, FileStorageUpload, LocalUpload
from casetrack.lib.inference import infer_days, group_by_relative_day, sorted_day_groups
from casetrack.lib.imaging import process_image, ImageProcessingError

__all__ = [
    # Name patterns
    'parse_day_number',
    'parse_date',
    # Capture metadata
    'read_capture_datetime',
    'parse_exif_datetime',
    # Upload handles
    'UploadedFile',
    'MemoryUpload',
    'FileStorageUpload',
    'LocalUpload',
    # Day inference
    'infer_days',
    'group_by_relative_day',
    'sorted_day_groups',
    # Image processing
    'process_image',
    'ImageProcessingError',
]
