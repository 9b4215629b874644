"""Configuration module for the ML PDV Web Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Session cookie (holds the active session, remembered credentials and
    # the recently accessed companies, so it must outlive the browser tab)
    SESSION_COOKIE_NAME = os.getenv('SESSION_COOKIE_NAME', 'mlpdv')
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = int(os.getenv('PERMANENT_SESSION_LIFETIME', 60 * 60 * 24 * 365))

    # Preferred URL scheme (for url_for with _external=True)
    PREFERRED_URL_SCHEME = os.getenv('PREFERRED_URL_SCHEME', 'http')

    # Browser-persisted state
    STORAGE_KEY_PREFIX = os.getenv('STORAGE_KEY_PREFIX', 'mlpdv')
    # Fernet key used to encrypt remembered passwords. Derived from SECRET_KEY when unset.
    REMEMBER_ME_KEY = os.getenv('REMEMBER_ME_KEY')
    # Bounds that keep the session cookie under the browser size limit
    RECENT_COMPANIES_LIMIT = int(os.getenv('RECENT_COMPANIES_LIMIT', 10))
    REMEMBERED_CREDENTIALS_LIMIT = int(os.getenv('REMEMBERED_CREDENTIALS_LIMIT', 5))

    # Records created here are tagged so the desktop client can tell them apart
    RECORD_ORIGIN = os.getenv('RECORD_ORIGIN', 'web')
    LOCAL_ID_PREFIX = os.getenv('LOCAL_ID_PREFIX', 'web')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'mlpdv')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'mlpdv')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'mlpdv')

        DATABASE_URL = (
            f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestingConfig(Config):
    """Configuration used by the test suite (in-memory SQLite, no CSRF)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SECRET_KEY = 'testing-secret-key'
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    SENTRY_DSN = None
