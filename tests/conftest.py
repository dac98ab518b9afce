"""Shared pytest fixtures."""
from io import BytesIO
import struct

import pytest
from PIL import Image


def build_exif(capture: str, tag: int = 0x9003) -> bytes:
    """Build a minimal little-endian EXIF APP1 payload with one capture tag.

    Layout: TIFF header, IFD0 holding only the Exif IFD pointer, then the
    Exif IFD holding `tag` (DateTimeOriginal by default) as ASCII.
    """
    value = capture.encode('ascii') + b'\x00'
    exif_ifd_offset = 8 + 2 + 12 + 4
    value_offset = exif_ifd_offset + 2 + 12 + 4

    tiff = b'II' + struct.pack('<HI', 42, 8)
    tiff += struct.pack('<H', 1) + struct.pack('<HHII', 0x8769, 4, 1, exif_ifd_offset) + struct.pack('<I', 0)
    tiff += struct.pack('<H', 1) + struct.pack('<HHII', tag, 2, len(value), value_offset) + struct.pack('<I', 0)
    tiff += value
    return b'Exif\x00\x00' + tiff


def build_jpeg(capture=None, size=(64, 48), color=(200, 120, 90), tag=0x9003) -> bytes:
    """Encode a small solid-color JPEG, optionally carrying a capture date."""
    buffer = BytesIO()
    img = Image.new('RGB', size, color)
    if capture:
        img.save(buffer, 'JPEG', exif=build_exif(capture, tag))
    else:
        img.save(buffer, 'JPEG')
    return buffer.getvalue()


@pytest.fixture
def make_jpeg():
    """Factory for in-memory JPEG bytes."""
    return build_jpeg


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory as a Path."""
    return tmp_path


@pytest.fixture
def app(tmp_path):
    """Create application backed by a temporary database and storage."""
    from casetrack import create_app, db

    app = create_app('testing', overrides={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'UPLOAD_FOLDER': tmp_path / 'uploads',
        'INSTANCE_DIR': tmp_path / 'instance',
    })

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Test client for HTTP requests."""
    return app.test_client()
