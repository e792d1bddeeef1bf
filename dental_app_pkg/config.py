# dental_app_pkg/config.py
import os


class Config:
    """Base configuration settings."""
    # Application Security
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you_REALLY_should_set_a_secret_key_in_env'
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'you_REALLY_should_set_a_JWT_secret_key_in_env'
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRATION_MINUTES = int(os.environ.get('JWT_EXPIRATION_MINUTES', 60))

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///dental_default.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    FRONTEND_URL = os.environ.get('FRONTEND_URL') or 'http://localhost:3000'

    # Dashboard behaviour
    COMPLETED_APPOINTMENTS_LIMIT = int(os.environ.get('COMPLETED_APPOINTMENTS_LIMIT', 20))
    # Completing an appointment needs non-empty consultation notes unless switched off.
    REQUIRE_CONSULTATION_NOTES_ON_COMPLETE = os.environ.get('REQUIRE_CONSULTATION_NOTES_ON_COMPLETE', 'true').lower() == 'true'
    # Skip days that already carry a time-off record for the dentist.
    DEDUPE_TIME_OFF = os.environ.get('DEDUPE_TIME_OFF', 'true').lower() == 'true'

    # Cloud storage proxy (document sync side-channel)
    CLOUD_STORAGE_FUNCTION_URL = os.environ.get('CLOUD_STORAGE_FUNCTION_URL') or 'http://localhost:54321/functions/v1/google-drive-sync'
    CLOUD_STORAGE_API_KEY = os.environ.get('CLOUD_STORAGE_API_KEY')
    CLOUD_STORAGE_TIMEOUT_SECONDS = int(os.environ.get('CLOUD_STORAGE_TIMEOUT_SECONDS', 30))


class DevelopmentConfig(Config):
    """Development-specific configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or os.environ.get('DATABASE_URL') or 'sqlite:///dental_dev.db'


class TestingConfig(Config):
    """Testing-specific configuration."""
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'testing-jwt-secret'
    JWT_EXPIRATION_MINUTES = 5
    REQUIRE_CONSULTATION_NOTES_ON_COMPLETE = True
    DEDUPE_TIME_OFF = True
    CLOUD_STORAGE_FUNCTION_URL = 'http://cloud-storage.test/functions/v1/google-drive-sync'
    CLOUD_STORAGE_API_KEY = 'test-key'


class ProductionConfig(Config):
    """Production-specific configuration."""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///prod_fallback.db'

    @classmethod
    def validate(cls):
        if cls.SECRET_KEY == 'you_REALLY_should_set_a_secret_key_in_env':
            raise ValueError("SECRET_KEY not set via environment variable for production")
        if cls.JWT_SECRET_KEY == 'you_REALLY_should_set_a_JWT_secret_key_in_env':
            raise ValueError("JWT_SECRET_KEY not set via environment variable for production")


def get_config():
    """Helper function to get the correct config class based on FLASK_ENV."""
    env = os.environ.get('FLASK_ENV', 'development').lower()
    if env == 'production':
        return ProductionConfig
    elif env == 'testing':
        return TestingConfig
    return DevelopmentConfig
