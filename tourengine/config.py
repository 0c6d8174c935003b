"""
Configuration classes for the tourengine application.
Supports Development, Testing, and Production environments.
"""
import os


class Config:
    """Base configuration with default settings."""

    # Security - SECRET_KEY is validated in production config
    # WARNING: Never use the fallback key in production!
    _secret_key = os.environ.get('SECRET_KEY')
    if not _secret_key:
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using insecure default key. "
            "Set SECRET_KEY environment variable for production!",
            UserWarning
        )
        _secret_key = 'dev-secret-key-change-in-production'
    SECRET_KEY = _secret_key

    # Pricing - JSON rate table replacing the built-in rates (optional)
    RATE_TABLE_FILE = os.environ.get('RATE_TABLE_FILE')

    # Scheduling
    BUSINESS_TIMEZONE = os.environ.get('BUSINESS_TIMEZONE', 'America/Los_Angeles')
    DEFAULT_DRIVE_TIME_MINUTES = int(os.environ.get('DEFAULT_DRIVE_TIME_MINUTES', 15))
    DEFAULT_VISIT_MINUTES = int(os.environ.get('DEFAULT_VISIT_MINUTES', 75))

    # Distance service (Google Distance Matrix)
    DISTANCE_API_KEY = os.environ.get('DISTANCE_API_KEY')
    DISTANCE_API_URL = os.environ.get(
        'DISTANCE_API_URL', 'https://maps.googleapis.com/maps/api/distancematrix/json'
    )
    DISTANCE_API_TIMEOUT = float(os.environ.get('DISTANCE_API_TIMEOUT', 10))

    # Rate Limiting
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_DEFAULT = os.environ.get('RATE_LIMIT_GLOBAL', '100/minute')
    RATELIMIT_HEADERS_ENABLED = True
    DISTANCE_RATE_LIMIT = os.environ.get('DISTANCE_RATE_LIMIT', '30/minute')

    # Caching (drive-time lookups)
    CACHE_TYPE = 'SimpleCache'
    CACHE_DEFAULT_TIMEOUT = 300
    DRIVE_TIME_CACHE_TIMEOUT = int(os.environ.get('DRIVE_TIME_CACHE_TIMEOUT', 3600))

    # CORS
    APP_CORS_ORIGINS = os.environ.get('APP_CORS_ORIGINS', 'http://localhost:5000,http://localhost:3000')

    # Sentry (error monitoring, production only)
    SENTRY_DSN = os.environ.get('SENTRY_DSN')


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    # Never call the real distance service from tests
    DISTANCE_API_KEY = 'test-distance-key'
    DISTANCE_API_URL = 'http://distance.test/json'

    # Use in-memory cache for tests
    CACHE_TYPE = 'NullCache'

    RATE_TABLE_FILE = None


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False

    # SECRET_KEY - validated in init_app (not at import time)
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # Redis for rate limiting (REQUIRED in production for multi-worker consistency)
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')

    # Redis for caching (REQUIRED in production for multi-worker consistency)
    _redis_url = os.environ.get('REDIS_URL')
    CACHE_TYPE = 'RedisCache' if _redis_url else 'SimpleCache'
    CACHE_REDIS_URL = _redis_url
    CACHE_DEFAULT_TIMEOUT = 600

    @classmethod
    def init_app(cls, app):
        """Production-specific initialization with validation."""
        import logging
        logger = logging.getLogger(__name__)

        # Validate required environment variables at runtime
        if not cls.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable is required in production")

        if not os.environ.get('DISTANCE_API_KEY'):
            logger.warning(
                "DISTANCE_API_KEY not set: drive-time lookups will fail. "
                "Itineraries keep placeholder drive times until it is set."
            )

        # Warn about Redis (critical for multi-worker deployments)
        if not os.environ.get('REDIS_URL'):
            logger.warning(
                "REDIS_URL not set: cache and rate limiter use in-memory storage. "
                "Each Gunicorn worker has independent counters and cache. "
                "Set REDIS_URL for production multi-worker consistency."
            )

        # Warn about Sentry
        if not os.environ.get('SENTRY_DSN'):
            logger.warning(
                "SENTRY_DSN not set: error tracking disabled. "
                "Set SENTRY_DSN for production error monitoring."
            )


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
