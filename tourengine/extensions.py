"""
Flask extensions initialization.
Extensions are initialized here and bound to the app in the factory.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache

# Rate Limiting
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=['100 per minute']
)

# Caching (drive-time lookups)
cache = Cache()


def init_extensions(app):
    """Initialize all extensions with the Flask app."""
    limiter.init_app(app)
    cache.init_app(app)
