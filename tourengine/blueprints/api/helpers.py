"""
API helper functions: error formatting, response builders, request loading.
"""
from flask import current_app, jsonify, request
from marshmallow import ValidationError

from tourengine.services.pricing_service import PricingEngine


def api_error(code, message, status=400, details=None):
    """Build a standard API error response."""
    error_body = {
        'error': {
            'code': code,
            'message': message,
        }
    }
    if details:
        error_body['error']['details'] = details
    return jsonify(error_body), status


def api_success(data, status=200):
    """Build a standard API success response."""
    return jsonify({'data': data}), status


def load_json(schema):
    """Load and validate the JSON request body with a marshmallow schema.

    Raises:
        ValidationError: Body missing, not an object, or invalid
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError({'_schema': ['Request body must be a JSON object.']})
    return schema.load(payload)


def current_rate_table():
    """Rate table loaded by the app factory."""
    return current_app.extensions['rate_table']


def current_engine():
    """Pricing engine bound to the configured rate table."""
    return PricingEngine(current_rate_table(), current_app.config.get('BUSINESS_TIMEZONE'))
