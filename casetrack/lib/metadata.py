"""
EXIF capture-date extraction.

Reads the original capture time embedded in photo files using Pillow. Only
the leading bytes of each file are read: JPEG stores EXIF in an APP1 segment
right after the start-of-image marker, well before the pixel data.
"""
from datetime import datetime
from io import BytesIO
from typing import Optional
import logging
import re

from PIL import Image, ExifTags

from casetrack.lib.uploads import UploadedFile

logger = logging.getLogger(__name__)

METADATA_HEAD_BYTES = 64 * 1024

# Tags to check in the EXIF sub-IFD, in priority order
CAPTURE_TAGS = [
    ExifTags.Base.DateTimeOriginal,   # Best: original capture time
    ExifTags.Base.DateTimeDigitized,  # When digitized (CreateDate)
]

EXIF_DATETIME_REGEX = re.compile(
    r'^\s*(\d{4})[:\-](\d{2})[:\-](\d{2})(?:[ T](\d{2}):(\d{2})(?::(\d{2}))?)?'
)


def parse_exif_datetime(value) -> Optional[datetime]:
    """
    Parse an EXIF datetime value.

    Handles the standard "YYYY:MM:DD HH:MM:SS" form, a date-only prefix, and
    bytes values from cameras that store the field as raw ASCII. Placeholder
    values such as "0000:00:00 00:00:00" return None.

    Returns:
        Naive datetime in camera-local time, or None if unparseable
    """
    if isinstance(value, bytes):
        value = value.decode('ascii', errors='ignore')
    if not isinstance(value, str):
        return None

    match = EXIF_DATETIME_REGEX.match(value.rstrip('\x00'))
    if not match:
        return None

    parts = [int(part) if part else 0 for part in match.groups()]
    try:
        return datetime(*parts)
    except ValueError:
        return None


def read_capture_datetime(
    upload: UploadedFile,
    head_bytes: int = METADATA_HEAD_BYTES
) -> Optional[datetime]:
    """
    Read the embedded capture datetime of an uploaded photo.

    Best effort: any read or decode failure is logged and treated as
    missing metadata.

    Args:
        upload: Upload handle to read from
        head_bytes: Number of leading bytes to inspect

    Returns:
        Capture datetime, or None if absent or unreadable
    """
    try:
        head = upload.read_head(head_bytes)
        with Image.open(BytesIO(head)) as img:
            exif_ifd = img.getexif().get_ifd(ExifTags.IFD.Exif)
    except Exception as e:
        logger.debug(f"No readable EXIF in {upload.relative_path}: {e}")
        return None

    for tag in CAPTURE_TAGS:
        if tag in exif_ifd:
            dt = parse_exif_datetime(exif_ifd[tag])
            if dt:
                logger.debug(f"Capture time {dt} from {tag.name} in {upload.relative_path}")
                return dt

    return None
