"""Application configuration module.

Provides configuration classes for different environments with pathlib-based
paths. Storage location and database URL can be overridden from the
environment.
"""
import os
from pathlib import Path


# Base directories using pathlib
BASE_DIR = Path(__file__).parent.absolute()
INSTANCE_DIR = BASE_DIR / 'instance'
STORAGE_DIR = Path(os.environ['STORAGE_DIR']) if os.environ.get('STORAGE_DIR') else BASE_DIR / 'storage'


class Config:
    """Base configuration with common settings."""

    # Flask secret key
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f"sqlite:///{INSTANCE_DIR / 'casetrack.db'}"
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {
            'check_same_thread': False,
            'timeout': 5.0
        }
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Storage directories (using pathlib.Path)
    UPLOAD_FOLDER = STORAGE_DIR / 'uploads'

    # Day inference
    METADATA_HEAD_BYTES = 64 * 1024  # Leading bytes read per file for EXIF capture date
    METADATA_WORKERS = None  # None = auto-detect CPU count

    # Upload limits
    MAX_FILES_PER_UPLOAD = 20
    MAX_CONTENT_LENGTH = 200 * 1024 * 1024
    IMPORT_EXTENSIONS = {'jpg', 'jpeg', 'png', 'webp', 'tif', 'tiff'}


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    SQLALCHEMY_ECHO = True


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False


class TestingConfig(Config):
    """Testing configuration (tests override storage and database paths)."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    METADATA_WORKERS = 2


# Configuration dictionary for easy lookup
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
