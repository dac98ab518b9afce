"""Flask routes package."""
from casetrack.routes.upload import upload_bp
from casetrack.routes.cases import cases_bp

__all__ = ['upload_bp', 'cases_bp']
