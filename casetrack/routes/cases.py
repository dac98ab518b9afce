"""Case and source image API endpoints.

Provides case CRUD, the per-day timeline view of a case, and access to the
stored images and thumbnails.
"""
from flask import Blueprint, jsonify, request, current_app, send_file
from pathlib import Path
import logging

from casetrack import db
from casetrack.models import Case, SourceImage

logger = logging.getLogger(__name__)

cases_bp = Blueprint('cases', __name__, url_prefix='/api')

CASE_FIELDS = ('name', 'surgery_type', 'body_part', 'description')


def _stored_path(relative: str) -> Path:
    return Path(current_app.config['UPLOAD_FOLDER']) / relative


def _image_files(image: SourceImage) -> list[Path]:
    return [_stored_path(p) for p in (image.storage_path, image.thumbnail_path) if p]


def delete_files(paths: list[Path]):
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")


def build_timeline(case: Case) -> list[dict]:
    """Group a case's images by day number, ascending."""
    days: dict[int, list[dict]] = {}
    for image in sorted(case.images, key=lambda i: (i.day_number, i.sort_order, i.id)):
        days.setdefault(image.day_number, []).append(image.to_dict())
    return [
        {'day_number': day_number, 'images': images}
        for day_number, images in sorted(days.items())
    ]


@cases_bp.route('/cases', methods=['GET'])
def list_cases():
    """List cases, most recently updated first."""
    cases = db.session.execute(
        db.select(Case).order_by(Case.updated_at.desc(), Case.id.desc())
    ).scalars().all()
    return jsonify([case.to_dict() for case in cases])


@cases_bp.route('/cases', methods=['POST'])
def create_case():
    """Create a case.

    Request JSON:
        {"name": "...", "surgery_type": "...", "body_part": "...", "description": "..."}
    """
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'name is required'}), 400

    try:
        case = Case(
            name=name,
            surgery_type=data.get('surgery_type') or None,
            body_part=data.get('body_part') or None,
            description=data.get('description') or None,
        )
        db.session.add(case)
        db.session.commit()
        logger.info(f"Created case {case.id}")
        return jsonify(case.to_dict()), 201
    except Exception as e:
        db.session.rollback()
        logger.error(f"Create case error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@cases_bp.route('/cases/<int:case_id>', methods=['GET'])
def get_case(case_id):
    """Get a case with its images grouped by day."""
    case = db.session.get(Case, case_id)
    if not case:
        return jsonify({'error': 'Case not found'}), 404

    result = case.to_dict()
    result['timeline'] = build_timeline(case)
    return jsonify(result)


@cases_bp.route('/cases/<int:case_id>', methods=['PUT'])
def update_case(case_id):
    """Update case fields present in the request JSON."""
    case = db.session.get(Case, case_id)
    if not case:
        return jsonify({'error': 'Case not found'}), 404

    data = request.get_json(silent=True) or {}
    if 'name' in data and not (data['name'] or '').strip():
        return jsonify({'error': 'name cannot be empty'}), 400

    try:
        for field in CASE_FIELDS:
            if field in data:
                value = data[field]
                setattr(case, field, value.strip() if field == 'name' else (value or None))
        db.session.commit()
        return jsonify(case.to_dict())
    except Exception as e:
        db.session.rollback()
        logger.error(f"Update case error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@cases_bp.route('/cases/<int:case_id>', methods=['DELETE'])
def delete_case(case_id):
    """Delete a case, its images, and their stored files."""
    case = db.session.get(Case, case_id)
    if not case:
        return jsonify({'error': 'Case not found'}), 404

    try:
        image_count = len(case.images)
        files = [path for image in case.images for path in _image_files(image)]
        db.session.delete(case)
        db.session.commit()
        delete_files(files)
        logger.info(f"Deleted case {case_id} with {image_count} images")
        return jsonify({'success': True})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Delete case error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@cases_bp.route('/images/<int:image_id>', methods=['GET'])
def get_image(image_id):
    """Serve a stored source image."""
    image = db.session.get(SourceImage, image_id)
    if not image:
        return jsonify({'error': 'Image not found'}), 404

    path = _stored_path(image.storage_path)
    if not path.exists():
        return jsonify({'error': 'Image file missing'}), 404
    return send_file(path, mimetype=image.mime_type)


@cases_bp.route('/images/<int:image_id>/thumbnail', methods=['GET'])
def get_thumbnail(image_id):
    """Serve the thumbnail of a stored source image."""
    image = db.session.get(SourceImage, image_id)
    if not image or not image.thumbnail_path:
        return jsonify({'error': 'Thumbnail not found'}), 404

    path = _stored_path(image.thumbnail_path)
    if not path.exists():
        return jsonify({'error': 'Thumbnail not found'}), 404
    return send_file(path, mimetype='image/jpeg')


@cases_bp.route('/images/<int:image_id>', methods=['PUT'])
def update_image(image_id):
    """Move an image to another day.

    Request JSON:
        {"day_number": 3}
    """
    image = db.session.get(SourceImage, image_id)
    if not image:
        return jsonify({'error': 'Image not found'}), 404

    data = request.get_json(silent=True) or {}
    day_number = data.get('day_number')
    if isinstance(day_number, bool) or not isinstance(day_number, int):
        return jsonify({'error': 'day_number must be an integer'}), 400

    try:
        image.day_number = day_number
        db.session.commit()
        return jsonify(image.to_dict())
    except Exception as e:
        db.session.rollback()
        logger.error(f"Update image error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500


@cases_bp.route('/images/<int:image_id>', methods=['DELETE'])
def delete_image(image_id):
    """Delete an image and its stored files."""
    image = db.session.get(SourceImage, image_id)
    if not image:
        return jsonify({'error': 'Image not found'}), 404

    try:
        files = _image_files(image)
        db.session.delete(image)
        db.session.commit()
        delete_files(files)
        return jsonify({'success': True})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Delete image error: {e}", exc_info=True)
        return jsonify({'error': str(e)}), 500
