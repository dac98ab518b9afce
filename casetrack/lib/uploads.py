"""
Upload handles consumed by the day inference engine.

Every handle exposes a relative path (folder structure encoded as
'/'-separated segments, the first segment being the upload root), a declared
media type, and read_head() for leading bytes. Handles are read-only: nothing
here modifies the underlying file.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional
import logging
import mimetypes

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = 'application/octet-stream'

# Photo formats missing from some platform mime tables
mimetypes.add_type('image/heic', '.heic')
mimetypes.add_type('image/webp', '.webp')


def guess_mime_type(filename: str) -> str:
    """Guess a media type from the file extension."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MIME_TYPE


def path_segments(relative_path: str) -> list[str]:
    """Split a relative path into its non-empty segments."""
    return [part for part in relative_path.replace('\\', '/').split('/') if part]


class UploadedFile:
    """Base upload handle."""

    relative_path: str
    mime_type: str

    @property
    def filename(self) -> str:
        segments = path_segments(self.relative_path)
        return segments[-1] if segments else ''

    def read_head(self, size: int) -> bytes:
        """Read at most `size` leading bytes of the content."""
        raise NotImplementedError

    def read_all(self) -> bytes:
        """Read the complete content."""
        raise NotImplementedError

    def __repr__(self):
        return f"<{type(self).__name__} {self.relative_path!r} {self.mime_type}>"


def is_image(upload: UploadedFile) -> bool:
    """True if the declared media type is an image type."""
    return (upload.mime_type or '').startswith('image/')


class MemoryUpload(UploadedFile):
    """Upload whose content is already in memory."""

    def __init__(self, relative_path: str, data: bytes, mime_type: Optional[str] = None):
        self.relative_path = relative_path
        self.data = data
        self.mime_type = mime_type or guess_mime_type(relative_path)

    def read_head(self, size: int) -> bytes:
        return self.data[:size]

    def read_all(self) -> bytes:
        return self.data


class FileStorageUpload(UploadedFile):
    """Upload backed by a werkzeug FileStorage from a multipart request.

    Browsers send the folder-relative path (webkitRelativePath) either as the
    part filename or in a separate form field; pass it as `relative_path`
    when it arrives separately.
    """

    def __init__(self, storage, relative_path: Optional[str] = None):
        self.storage = storage
        self.relative_path = relative_path or storage.filename or ''
        mime_type = storage.mimetype
        if not mime_type or mime_type == DEFAULT_MIME_TYPE:
            mime_type = guess_mime_type(self.relative_path)
        self.mime_type = mime_type

    def _read(self, size: int = -1) -> bytes:
        stream = self.storage.stream
        position = stream.tell()
        try:
            stream.seek(0)
            return stream.read(size)
        finally:
            stream.seek(position)

    def read_head(self, size: int) -> bytes:
        return self._read(size)

    def read_all(self) -> bytes:
        return self._read()


class LocalUpload(UploadedFile):
    """Upload backed by a file on the server, found under an import root.

    The relative path starts with the root directory's name so that
    `<root>/<subfolder>/<file>` mirrors a browser folder upload.
    """

    def __init__(self, path: Path | str, root: Path | str):
        self.path = Path(path)
        root = Path(root)
        self.relative_path = '/'.join((root.name,) + self.path.relative_to(root).parts)
        self.mime_type = guess_mime_type(self.path.name)

    def read_head(self, size: int) -> bytes:
        with open(self.path, 'rb') as f:
            return f.read(size)

    def read_all(self) -> bytes:
        return self.path.read_bytes()


def scan_import_root(root: Path | str, extensions: Iterable[str]) -> list[LocalUpload]:
    """
    Collect importable files below a server directory.

    Args:
        root: Directory to scan recursively
        extensions: Allowed extensions without the dot (case-insensitive)

    Returns:
        LocalUpload handles sorted by relative path
    """
    root = Path(root)
    allowed = {ext.lower().lstrip('.') for ext in extensions}

    found = [
        path for path in root.rglob('*')
        if path.is_file() and path.suffix.lower().lstrip('.') in allowed
    ]
    logger.info(f"Found {len(found)} importable files under {root}")

    uploads = [LocalUpload(path, root) for path in found]
    uploads.sort(key=lambda upload: upload.relative_path)
    return uploads


@dataclass(frozen=True)
class KeyedEntry:
    """An upload paired with the string its day is inferred from."""
    upload: UploadedFile
    key: str
