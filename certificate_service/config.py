"""
Configuration management for the Flask application.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).parent.parent


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration class."""

    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = False
    TESTING = False

    # Storage settings
    UPLOAD_FOLDER = Path(os.getenv(
        'CERTIFICATE_UPLOAD_DIR',
        '/var/www/training-system/uploads/certificates'
    ))
    CERTIFICATE_URL_PREFIX = os.getenv('CERTIFICATE_URL_PREFIX', '/uploads/certificates/')
    SERVE_UPLOADS = _env_flag('SERVE_UPLOADS')

    # Upload limits
    MAX_CERTIFICATE_SIZE_BYTES = 5 * 1024 * 1024  # 5 MB
    # Hard cap on the whole request body; anything between the two limits
    # still reaches the upload handler and gets the JSON size error.
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', str(16 * 1024 * 1024)))

    # Allowed MIME types (client-declared)
    ALLOWED_CERTIFICATE_TYPES = {
        'application/pdf',
        'image/jpeg',
        'image/png',
        'image/jpg',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    }

    # Check payload magic bytes against the declared type
    VERIFY_CONTENT_SIGNATURE = _env_flag('VERIFY_CONTENT_SIGNATURE')

    # CORS
    CORS_ALLOWED_ORIGIN = os.getenv('CORS_ALLOWED_ORIGIN', '*')
    CORS_ALLOWED_METHODS = 'POST, GET, DELETE, OPTIONS'
    CORS_ALLOWED_HEADERS = 'Content-Type'

    @staticmethod
    def validate_storage_config(upload_folder) -> None:
        """Validate that the storage root is usable."""
        if not upload_folder:
            raise ValueError(
                "CERTIFICATE_UPLOAD_DIR is empty. Please check your .env file."
            )
        if not Path(upload_folder).is_absolute():
            raise ValueError(
                f"CERTIFICATE_UPLOAD_DIR must be an absolute path, got '{upload_folder}'"
            )


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    FLASK_ENV = 'development'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    FLASK_ENV = 'production'


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    FLASK_ENV = 'testing'
    UPLOAD_FOLDER = BASE_DIR / 'data' / 'test-certificates'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(config_name=None):
    """Get configuration based on environment."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')
    return config.get(config_name, DevelopmentConfig)
