import os
import secrets
from dotenv import load_dotenv

load_dotenv()


def _require_in_production(var_name, default):
    """Return env var value. In production, warn loudly if still using default."""
    value = os.environ.get(var_name, "")
    if value:
        return value
    env = os.environ.get("FLASK_ENV", "development")
    if env != "development" and default:
        import logging
        logging.getLogger(__name__).warning(
            "%s is using an insecure default. Set it via environment variable!", var_name
        )
    return default


def _env_flag(var_name, default):
    return os.environ.get(var_name, default).lower() in ('true', 'on', '1')


def _database_url():
    url = os.environ.get('DATABASE_URL', '')
    if not url:
        return 'sqlite:///routeplanner.db'
    # Fix postgres:// to postgresql:// for SQLAlchemy 2.x
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Application configuration"""

    # Flask
    SECRET_KEY = _require_in_production(
        'SECRET_KEY', 'dev-only-' + secrets.token_hex(16)
    )
    DEBUG = os.environ.get('FLASK_ENV', 'development') == 'development'
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # JWT Authentication
    JWT_SECRET = _require_in_production(
        'JWT_SECRET', 'dev-only-' + secrets.token_hex(32)
    )
    JWT_EXPIRES_HOURS = int(os.environ.get('JWT_EXPIRES_HOURS', '24'))

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # Rate limiting
    RATELIMIT_ENABLED = _env_flag('RATELIMIT_ENABLED', 'true')

    # Public URL used to build payment return links
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL', 'http://localhost:3000')

    # Pricing
    PRICE_PER_KM = float(os.environ.get('PRICE_PER_KM', '20'))
    CURRENCY = os.environ.get('CURRENCY', 'CZK')

    # Geocoding / routing services
    GEOCODER_URL = os.environ.get('GEOCODER_URL', 'https://nominatim.openstreetmap.org')
    ROUTING_URL = os.environ.get('ROUTING_URL', 'https://router.project-osrm.org')
    HTTP_TIMEOUT = float(os.environ.get('HTTP_TIMEOUT', '10'))
    HTTP_USER_AGENT = os.environ.get('HTTP_USER_AGENT', 'route-planner/1.0')

    # Payments: "mock" (default) or "gopay"
    PAYMENT_PROVIDER = os.environ.get('PAYMENT_PROVIDER', 'mock')
    MOCK_PAYMENT_STATUS = os.environ.get('MOCK_PAYMENT_STATUS', 'PAID')
    GOPAY_API_URL = os.environ.get('GOPAY_API_URL', 'https://gw.sandbox.gopay.com/api')
    GOPAY_CLIENT_ID = os.environ.get('GOPAY_CLIENT_ID', '')
    GOPAY_CLIENT_SECRET = os.environ.get('GOPAY_CLIENT_SECRET', '')
    GOPAY_GOID = os.environ.get('GOPAY_GOID', '')

    # Email: SendGrid (primary) with SMTP fallback
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@example.com')
    FROM_EMAIL = os.environ.get('FROM_EMAIL', 'noreply@routeplanner.app')
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY', '')
    SMTP_HOST = os.environ.get('SMTP_HOST', '')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_USERNAME = os.environ.get('SMTP_USERNAME', '')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD', '')
    SMTP_USE_TLS = _env_flag('SMTP_USE_TLS', 'true')
    NOTIFY_ASYNC = _env_flag('NOTIFY_ASYNC', 'true')

    # Access policy
    ALLOW_ANONYMOUS_ORDER_LIST = _env_flag('ALLOW_ANONYMOUS_ORDER_LIST', 'false')

    # Server
    PORT = int(os.environ.get('PORT', '3000'))


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""

    TESTING = True
    DEBUG = False
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET = 'test-jwt-secret'

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    PUBLIC_BASE_URL = 'http://testserver'
    PAYMENT_PROVIDER = 'mock'
    MOCK_PAYMENT_STATUS = 'PAID'

    # Never talk to real mail providers
    SENDGRID_API_KEY = ''
    SMTP_HOST = ''
    ADMIN_EMAIL = 'admin@routeplanner.test'
    FROM_EMAIL = 'noreply@routeplanner.test'
    NOTIFY_ASYNC = False

    ALLOW_ANONYMOUS_ORDER_LIST = False

    LOG_LEVEL = 'WARNING'
