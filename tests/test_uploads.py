"""Tests for upload handles and server directory scanning."""
from io import BytesIO

from werkzeug.datastructures import FileStorage

from casetrack.lib.uploads import (
    MemoryUpload, FileStorageUpload, LocalUpload, is_image, path_segments, scan_import_root,
)


class TestPathSegments:
    """Tests for path_segments()."""

    def test_forward_slashes(self):
        assert path_segments('root/day3/photo.jpg') == ['root', 'day3', 'photo.jpg']

    def test_backslashes(self):
        assert path_segments('root\\day3\\photo.jpg') == ['root', 'day3', 'photo.jpg']

    def test_empty_segments_dropped(self):
        assert path_segments('/root//photo.jpg') == ['root', 'photo.jpg']


class TestMemoryUpload:
    """Tests for MemoryUpload."""

    def test_mime_type_guessed(self):
        assert MemoryUpload('a/b.jpg', b'').mime_type == 'image/jpeg'
        assert MemoryUpload('a/b.png', b'').mime_type == 'image/png'

    def test_unknown_extension(self):
        assert MemoryUpload('a/b.unknownext', b'').mime_type == 'application/octet-stream'

    def test_read_head(self):
        photo = MemoryUpload('a/b.jpg', b'0123456789')
        assert photo.read_head(4) == b'0123'
        assert photo.read_all() == b'0123456789'

    def test_filename(self):
        assert MemoryUpload('root/day1/b.jpg', b'').filename == 'b.jpg'


class TestIsImage:
    """Tests for is_image()."""

    def test_image_types(self):
        assert is_image(MemoryUpload('a.jpg', b'', 'image/jpeg'))
        assert is_image(MemoryUpload('a.heic', b'', 'image/heic'))

    def test_non_image_types(self):
        assert not is_image(MemoryUpload('a.txt', b'', 'text/plain'))
        assert not is_image(MemoryUpload('a.mp4', b'', 'video/mp4'))


class TestFileStorageUpload:
    """Tests for FileStorageUpload."""

    def test_uses_part_filename_and_content_type(self):
        storage = FileStorage(BytesIO(b'abc'), filename='upload/day1/a.jpg', content_type='image/jpeg')
        handle = FileStorageUpload(storage)
        assert handle.relative_path == 'upload/day1/a.jpg'
        assert handle.mime_type == 'image/jpeg'

    def test_explicit_relative_path(self):
        storage = FileStorage(BytesIO(b'abc'), filename='a.jpg', content_type='image/jpeg')
        handle = FileStorageUpload(storage, 'upload/day1/a.jpg')
        assert handle.relative_path == 'upload/day1/a.jpg'

    def test_generic_content_type_falls_back_to_extension(self):
        storage = FileStorage(BytesIO(b'abc'), filename='a.png', content_type='application/octet-stream')
        assert FileStorageUpload(storage).mime_type == 'image/png'

    def test_reads_restore_stream_position(self):
        stream = BytesIO(b'0123456789')
        stream.seek(5)
        handle = FileStorageUpload(FileStorage(stream, filename='a.jpg', content_type='image/jpeg'))
        assert handle.read_head(3) == b'012'
        assert stream.tell() == 5
        assert handle.read_all() == b'0123456789'


class TestLocalUpload:
    """Tests for LocalUpload and scan_import_root()."""

    def test_relative_path_includes_root_name(self, temp_dir):
        root = temp_dir / 'patient'
        (root / 'day3').mkdir(parents=True)
        photo = root / 'day3' / 'a.jpg'
        photo.write_bytes(b'jpegdata')

        handle = LocalUpload(photo, root)
        assert handle.relative_path == 'patient/day3/a.jpg'
        assert handle.mime_type == 'image/jpeg'
        assert handle.read_head(4) == b'jpeg'
        assert handle.read_all() == b'jpegdata'

    def test_scan_filters_and_sorts(self, temp_dir):
        root = temp_dir / 'patient'
        (root / 'day1').mkdir(parents=True)
        (root / 'day0').mkdir()
        (root / 'day1' / 'b.JPG').write_bytes(b'x')
        (root / 'day0' / 'a.jpg').write_bytes(b'x')
        (root / 'day0' / 'notes.txt').write_text('skip me')
        (root / 'c.png').write_bytes(b'x')

        uploads = scan_import_root(root, {'jpg', 'png'})
        assert [u.relative_path for u in uploads] == [
            'patient/c.png',
            'patient/day0/a.jpg',
            'patient/day1/b.JPG',
        ]

    def test_scan_empty_directory(self, temp_dir):
        assert scan_import_root(temp_dir, {'jpg'}) == []
