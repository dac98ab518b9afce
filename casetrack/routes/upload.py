"""Photo upload and server path import routes.

Provides endpoints for:
- Day grouping preview of a browser folder upload (POST /api/upload/preview)
- Day grouping preview of a server directory (POST /api/import-path)
- Committing one day's photos to a case (POST /api/cases/<id>/images)
- Importing a server directory into a case (POST /api/cases/<id>/import-path)
"""
from flask import Blueprint, request, jsonify, current_app
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import json
import logging
import uuid

from casetrack import db
from casetrack.lib.imaging import process_image, ImageProcessingError
from casetrack.lib.inference import infer_days, sorted_day_groups
from casetrack.lib.metadata import read_capture_datetime
from casetrack.lib.uploads import FileStorageUpload, UploadedFile, is_image, scan_import_root
from casetrack.models import Case, SourceImage
from casetrack.routes.cases import delete_files

logger = logging.getLogger(__name__)

upload_bp = Blueprint('upload', __name__, url_prefix='/api')


class UploadRequestError(ValueError):
    """Client error in an upload request (reported as HTTP 400)."""


def _request_uploads() -> list[FileStorageUpload]:
    """
    Build upload handles from the multipart 'files' field.

    The optional 'paths' form field is a JSON list aligned with 'files'
    carrying each file's folder-relative path.
    """
    files = [f for f in request.files.getlist('files') if f.filename]
    if not files:
        raise UploadRequestError('No files provided')

    paths = []
    paths_json = request.form.get('paths')
    if paths_json:
        try:
            paths = json.loads(paths_json)
        except json.JSONDecodeError:
            logger.warning("Failed to parse paths JSON, using part filenames")
        if not isinstance(paths, list):
            paths = []

    return [
        FileStorageUpload(f, paths[i] if i < len(paths) and isinstance(paths[i], str) else None)
        for i, f in enumerate(files)
    ]


def _import_root_from_json() -> Path:
    """Validate the {'path': ...} body of an import request."""
    data = request.get_json(silent=True)
    if not data or 'path' not in data:
        raise UploadRequestError('No path provided')

    import_path = Path(data['path'])
    if not import_path.is_absolute():
        raise UploadRequestError('Path must be absolute')
    if not import_path.exists():
        raise UploadRequestError(f"Path does not exist: {import_path}")
    if not import_path.is_dir():
        raise UploadRequestError(f"Path is not a directory: {import_path}")
    return import_path


def _infer(uploads: list[UploadedFile]) -> dict:
    # Read config here: capture reads run in worker threads without an app context
    head_bytes = current_app.config['METADATA_HEAD_BYTES']
    return infer_days(
        uploads,
        read_capture=lambda upload: read_capture_datetime(upload, head_bytes),
        max_workers=current_app.config.get('METADATA_WORKERS')
    )


def _preview_payload(uploads: list[UploadedFile], grouped: dict) -> dict:
    classified = {id(upload) for group in grouped.values() for upload in group}
    days = [
        {
            'day_number': day_number,
            'file_count': len(group),
            'files': [upload.relative_path for upload in group],
        }
        for day_number, group in sorted_day_groups(grouped)
    ]
    return {
        'days': days,
        'file_count': len(uploads),
        'classified_count': len(classified),
        'excluded': [u.relative_path for u in uploads if id(u) not in classified],
    }


def _get_case(case_id: int) -> Optional[Case]:
    return db.session.get(Case, case_id)


def _process_uploads(uploads: list[UploadedFile], skip_failed: bool = False):
    """
    Decode and normalize uploads before anything is written to storage.

    With skip_failed, undecodable files are logged and reported in the
    returned failure list instead of raising ImageProcessingError.

    Returns:
        Tuple of ([(upload, ProcessedImage)], [{'file': path, 'error': message}])
    """
    processed = []
    failed = []
    for upload in uploads:
        try:
            processed.append((upload, process_image(upload.read_all(), upload.filename)))
        except ImageProcessingError as e:
            if not skip_failed:
                raise
            logger.warning(f"Skipping {upload.relative_path}: {e}")
            failed.append({'file': upload.relative_path, 'error': str(e)})
    return processed, failed


def _store_images(case: Case, processed: list, day_number: int, written: list[Path]) -> list[SourceImage]:
    """
    Write processed images and add them to a case under one day number.

    Files go under UPLOAD_FOLDER/case_<id>/ and every path written is
    appended to `written` so the caller can remove them if the commit fails.
    """
    upload_folder = Path(current_app.config['UPLOAD_FOLDER'])
    case_dir = upload_folder / f'case_{case.id}'
    case_dir.mkdir(parents=True, exist_ok=True)

    next_order = max((image.sort_order for image in case.images if image.day_number == day_number), default=-1) + 1

    created = []
    for upload, result in processed:
        image_id = uuid.uuid4().hex
        image_path = case_dir / f'{image_id}.jpg'
        thumb_path = case_dir / f'{image_id}_thumb.jpg'
        written.append(image_path)
        image_path.write_bytes(result.data)
        written.append(thumb_path)
        thumb_path.write_bytes(result.thumbnail)

        image = SourceImage(
            case=case,
            day_number=day_number,
            sort_order=next_order,
            original_filename=upload.filename,
            original_path=upload.relative_path,
            storage_path=str(image_path.relative_to(upload_folder)),
            thumbnail_path=str(thumb_path.relative_to(upload_folder)),
            mime_type=result.mime_type,
            width=result.width,
            height=result.height,
            capture_date=result.capture_date,
        )
        db.session.add(image)
        created.append(image)
        next_order += 1

    case.updated_at = datetime.now(timezone.utc)
    return created


@upload_bp.route('/upload/preview', methods=['POST'])
def preview_upload():
    """
    Preview the day grouping of a browser folder upload.

    Accepts multipart/form-data with 'files' (multiple) and optional 'paths'.
    Nothing is stored.

    Returns:
        JSON: {days: [{day_number, file_count, files}], file_count,
               classified_count, excluded}
    """
    try:
        uploads = _request_uploads()
        grouped = _infer(uploads)
        logger.info(f"Preview: {len(uploads)} files into {len(grouped)} day groups")
        return jsonify(_preview_payload(uploads, grouped)), 200

    except UploadRequestError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Upload preview error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@upload_bp.route('/import-path', methods=['POST'])
def preview_import_path():
    """
    Preview the day grouping of a server-side directory.

    Accepts JSON body: {path: '/path/to/folder'}

    Returns:
        Same payload as /api/upload/preview
    """
    try:
        import_path = _import_root_from_json()
        uploads = scan_import_root(import_path, current_app.config['IMPORT_EXTENSIONS'])
        if not uploads:
            return jsonify({'error': f'No image files found in {import_path}'}), 400

        grouped = _infer(uploads)
        return jsonify(_preview_payload(uploads, grouped)), 200

    except UploadRequestError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Import path preview error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@upload_bp.route('/cases/<int:case_id>/images', methods=['POST'])
def upload_case_images(case_id):
    """
    Add photos to a case under one day number.

    Accepts multipart/form-data with 'files' (multiple), optional 'paths',
    and 'day_number' (integer, default 0). Clients call this once per day
    group from a preview. Every file is decoded before any is stored, so a
    single undecodable file rejects the whole request.

    Returns:
        JSON list of created images, status 201
    """
    written = []
    try:
        case = _get_case(case_id)
        if case is None:
            return jsonify({'error': 'Case not found'}), 404

        try:
            day_number = int(request.form.get('day_number', '0'))
        except ValueError:
            return jsonify({'error': 'day_number must be an integer'}), 400

        uploads = _request_uploads()

        max_files = current_app.config['MAX_FILES_PER_UPLOAD']
        if len(uploads) > max_files:
            return jsonify({'error': f'At most {max_files} files per upload'}), 400

        invalid = [u.relative_path for u in uploads if not is_image(u)]
        if invalid:
            return jsonify({'error': f'Not image files: {", ".join(invalid)}'}), 400

        processed, _ = _process_uploads(uploads)
        created = _store_images(case, processed, day_number, written)
        db.session.commit()
        logger.info(f"Case {case_id}: stored {len(created)} images for day {day_number}")

        return jsonify([image.to_dict() for image in created]), 201

    except (UploadRequestError, ImageProcessingError) as e:
        db.session.rollback()
        delete_files(written)
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        delete_files(written)
        logger.error(f"Upload error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@upload_bp.route('/cases/<int:case_id>/import-path', methods=['POST'])
def import_case_path(case_id):
    """
    Import a server directory into a case, one day group at a time.

    Accepts JSON body: {path: '/path/to/folder'}

    Files that cannot be decoded are skipped and listed under 'failed';
    the rest of the directory is still imported.

    Returns:
        JSON: {case_id, days: [{day_number, file_count}], image_count,
               failed: [{file, error}]}, status 201
    """
    written = []
    try:
        case = _get_case(case_id)
        if case is None:
            return jsonify({'error': 'Case not found'}), 404

        import_path = _import_root_from_json()
        uploads = scan_import_root(import_path, current_app.config['IMPORT_EXTENSIONS'])
        if not uploads:
            return jsonify({'error': f'No image files found in {import_path}'}), 400

        grouped = _infer(uploads)

        days = []
        failed = []
        image_count = 0
        for day_number, group in sorted_day_groups(grouped):
            processed, group_failed = _process_uploads(group, skip_failed=True)
            failed.extend(group_failed)
            if not processed:
                continue
            created = _store_images(case, processed, day_number, written)
            days.append({'day_number': day_number, 'file_count': len(created)})
            image_count += len(created)

        db.session.commit()
        logger.info(
            f"Case {case_id}: imported {image_count} images from {import_path}"
            f" ({len(failed)} failed)"
        )

        return jsonify({
            'case_id': case.id,
            'days': days,
            'image_count': image_count,
            'failed': failed,
        }), 201

    except UploadRequestError as e:
        db.session.rollback()
        delete_files(written)
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        delete_files(written)
        logger.error(f"Import path error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500
