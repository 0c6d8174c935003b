"""
tourengine Application Factory.
Creates and configures the Flask application exposing the pricing,
scheduling and recurrence engines.
"""
import os
import json
import logging
import uuid
from datetime import datetime, timezone

import click
from flask import Flask, g, jsonify, request

from tourengine.config import config
from tourengine.extensions import init_extensions
from tourengine.models.rate_table import DEFAULT_RATE_TABLE, RateTable


def _init_sentry(app):
    """Initialize Sentry error tracking for production."""
    dsn = app.config.get('SENTRY_DSN') or os.environ.get('SENTRY_DSN')
    if not dsn:
        app.logger.info('SENTRY_DSN not set: error tracking disabled.')
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.environ.get('SENTRY_TRACES_RATE', '0.1')),
            environment=os.environ.get('FLASK_ENV', 'production'),
            send_default_pii=False,
        )
        app.logger.info('Sentry error tracking initialized.')
    except ImportError:
        app.logger.warning('sentry-sdk not installed: error tracking disabled.')


def create_app(config_name=None):
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration to use (development, testing, production)

    Returns:
        Configured Flask application instance
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)

    # Load configuration
    config_class = config[config_name]
    app.config.from_object(config_class)

    # Initialize Sentry (production only)
    if config_name == 'production':
        _init_sentry(app)

    # Call init_app if available (production validation happens here)
    if hasattr(config_class, 'init_app'):
        config_class.init_app(app)

    # Initialize extensions
    init_extensions(app)

    # Rate table is loaded once and passed explicitly to every pricing call
    app.extensions['rate_table'] = load_rate_table(app.config.get('RATE_TABLE_FILE'))

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Configure logging
    configure_logging(app)

    return app


def load_rate_table(path=None) -> RateTable:
    """
    Load the rate table from a JSON file, or the built-in rates.

    Raises:
        RateTableError: If the file content is not a valid rate table
    """
    if not path:
        return DEFAULT_RATE_TABLE

    with open(path, encoding='utf-8') as fh:
        data = json.load(fh)

    table = RateTable.from_dict(data)
    logging.getLogger(__name__).info(f'Loaded rate table from {path}')
    return table


def register_blueprints(app):
    """Register all application blueprints."""
    from tourengine.blueprints.api import api_bp

    # REST API v1
    app.register_blueprint(api_bp, url_prefix='/api/v1')


def register_error_handlers(app):
    """Register JSON error handlers for common HTTP errors."""

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': {'code': 'not_found', 'message': 'Resource not found.'}}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': {'code': 'method_not_allowed', 'message': 'Method not allowed.'}}), 405

    @app.errorhandler(500)
    def internal_error(error):
        request_id = g.get('request_id', '-')
        app.logger.error('500 Internal Server Error: %s (request_id=%s)', type(error).__name__, request_id, exc_info=True)
        return jsonify({'error': {'code': 'internal_error', 'message': 'Internal server error.', 'request_id': request_id}}), 500

    @app.errorhandler(429)
    def ratelimit_error(error):
        return jsonify({'error': {'code': 'rate_limit_exceeded', 'message': 'Too many requests. Try again later.'}}), 429


def register_cli_commands(app):
    """Register custom CLI commands."""

    @app.cli.command('quote-wine-tour')
    @click.option('--hours', type=float, required=True, help='Requested tour length in hours')
    @click.option('--party', type=int, required=True, help='Number of guests')
    @click.option('--date', 'tour_date', required=True, help='Tour date (YYYY-MM-DD)')
    @click.option('--apply-modifiers', is_flag=True, help='Apply the rate table discounts and surcharges')
    @click.option('--advance-days', type=int, default=0, help='Days between booking and tour')
    def quote_wine_tour(hours, party, tour_date, apply_modifiers, advance_days):
        """Print a wine tour quote using the configured rate table."""
        from tourengine.services.pricing_service import PricingEngine
        from tourengine.services.validation_service import ValidationService
        from tourengine.utils.formatting import format_currency

        for valid, error in (
            ValidationService.validate_duration_hours(hours),
            ValidationService.validate_party_size(party),
            ValidationService.validate_date_string(tour_date),
        ):
            if not valid:
                raise click.BadParameter(error)

        engine = PricingEngine(app.extensions['rate_table'], app.config.get('BUSINESS_TIMEZONE'))
        quote = engine.quote_wine_tour(
            hours, party, tour_date, apply_modifiers=apply_modifiers, advance_days=advance_days
        )

        print(f"{quote.day_type} / {quote.rate_tier}")
        print(f"{quote.units} h x {format_currency(quote.unit_rate)}/h (minimum {quote.minimum_hours} h)")
        for adjustment in quote.adjustments:
            print(f"  {adjustment.name}: {format_currency(adjustment.amount)}")
        print(f"Subtotal: {format_currency(quote.subtotal)}")
        print(f"Tax:      {format_currency(quote.tax)}")
        print(f"Total:    {format_currency(quote.total)}")
        print(f"Deposit:  {format_currency(quote.deposit)}")

    @app.cli.command('preview-recurrence')
    @click.argument('start_date')
    @click.option('--frequency', type=click.Choice(['weekly', 'biweekly', 'monthly']), required=True)
    @click.option('--count', type=int, default=None, help='Number of instances')
    @click.option('--until', 'until_date', default=None, help='Last date (YYYY-MM-DD)')
    @click.option('--day', 'days_of_week', type=int, multiple=True, help='Weekday filter (0=Sunday)')
    @click.option('--day-of-month', type=int, default=None)
    def preview_recurrence(start_date, frequency, count, until_date, days_of_week, day_of_month):
        """Print the dates a recurrence rule generates."""
        from tourengine.models.recurrence import RecurrenceRule
        from tourengine.services.recurrence_service import generate_instance_dates

        rule = RecurrenceRule.from_dict({
            'frequency': frequency,
            'end_type': 'until_date' if until_date else 'count',
            'count': count,
            'until_date': until_date,
            'days_of_week': list(days_of_week),
            'day_of_month': day_of_month,
        })
        dates = generate_instance_dates(start_date, rule)
        for instance in dates:
            print(instance)
        print(f"{len(dates)} instance(s)")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production (cloud log aggregation)."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
        }
        # Add request_id if available
        try:
            log_entry['request_id'] = g.get('request_id', '-')
        except RuntimeError:
            pass  # Outside request context
        # Add exception info
        if record.exc_info and record.exc_info[0]:
            log_entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def configure_logging(app):
    """Configure application logging.

    Production: JSON to stdout (for cloud log aggregation).
    Development: plain text.
    """
    if app.testing:
        return

    # Request ID middleware
    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get('X-Request-ID', str(uuid.uuid4())[:8])

    @app.after_request
    def log_request(response):
        app.logger.info(
            '%s %s %s',
            request.method,
            request.path,
            response.status_code,
        )
        response.headers['X-Request-ID'] = g.get('request_id', '-')
        return response

    if not app.debug:
        # Production: JSON to stdout
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(JSONFormatter())
        stream_handler.setLevel(logging.INFO)

        # Clear existing handlers to avoid duplicates
        app.logger.handlers.clear()
        app.logger.addHandler(stream_handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info('tourengine startup (JSON logging)')
    else:
        # Development: plain text
        app.logger.setLevel(logging.DEBUG)
        app.logger.info('tourengine startup (development)')
