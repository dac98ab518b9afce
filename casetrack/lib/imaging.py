"""Image normalization for committed uploads.

Resizes source photos and generates square thumbnails with EXIF orientation
correction using Pillow.
"""
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Optional
import logging

from PIL import Image, ImageOps

from casetrack.lib.metadata import read_capture_datetime
from casetrack.lib.uploads import MemoryUpload

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1024
THUMBNAIL_SIZE = 200
IMAGE_QUALITY = 90
THUMBNAIL_QUALITY = 70


class ImageProcessingError(ValueError):
    """Raised when uploaded bytes cannot be decoded as an image."""


@dataclass
class ProcessedImage:
    data: bytes
    thumbnail: bytes
    width: int
    height: int
    mime_type: str = 'image/jpeg'
    capture_date: Optional[datetime] = None


def _to_jpeg(img: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    img.save(buffer, 'JPEG', quality=quality, optimize=True)
    return buffer.getvalue()


def process_image(data: bytes, filename: str = 'upload') -> ProcessedImage:
    """Normalize an uploaded photo for storage.

    Args:
        data: Raw uploaded bytes
        filename: Original filename, used in log messages

    Returns:
        ProcessedImage with the resized JPEG, its thumbnail and dimensions

    Raises:
        ImageProcessingError: If the data is not a decodable image
    """
    capture_date = read_capture_datetime(MemoryUpload(filename, data), head_bytes=len(data))

    try:
        with Image.open(BytesIO(data)) as img:
            # Apply EXIF orientation before any processing
            img = ImageOps.exif_transpose(img)

            if img.mode != 'RGB':
                img = img.convert('RGB')

            resized = img.copy()
            resized.thumbnail((MAX_DIMENSION, MAX_DIMENSION), Image.Resampling.LANCZOS)

            thumbnail = ImageOps.fit(img, (THUMBNAIL_SIZE, THUMBNAIL_SIZE), Image.Resampling.LANCZOS)

            processed = ProcessedImage(
                data=_to_jpeg(resized, IMAGE_QUALITY),
                thumbnail=_to_jpeg(thumbnail, THUMBNAIL_QUALITY),
                width=resized.width,
                height=resized.height,
                capture_date=capture_date,
            )
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.error(f"Image processing failed for {filename}: {e}")
        raise ImageProcessingError(f"Cannot decode image {filename}: {e}") from e

    logger.debug(f"Processed {filename} to {processed.width}x{processed.height}")
    return processed
