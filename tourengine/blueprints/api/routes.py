"""
API v1 Routes: REST endpoints for rates, quotes, itinerary edits, drive times and recurrence previews.
"""
import asyncio
import logging
from dataclasses import replace

from flask import current_app, request
from marshmallow import ValidationError

from tourengine.blueprints.api import api_bp
from tourengine.blueprints.api.helpers import api_error, api_success, current_engine, current_rate_table, load_json
from tourengine.blueprints.api.schemas import (
    DepositSchema, ItinerarySchema, RecurrencePreviewSchema, SharedTourQuoteSchema,
    StopEditSchema, TransferQuoteSchema, WaitTimeQuoteSchema, WineTourQuoteSchema,
)
from tourengine.extensions import cache, limiter
from tourengine.models.recurrence import RecurrenceRule
from tourengine.services.pricing_service import day_of_week_name
from tourengine.services.recurrence_service import generate_instance_dates
from tourengine.services.stop_scheduler import SchedulingError, StopScheduler
from tourengine.services.validation_service import ValidationService
from tourengine.utils.distance import DriveTimeError, client_from_config
from tourengine.utils.formatting import format_currency, format_drive_time

logger = logging.getLogger(__name__)


# ── Error handlers ──────────────────────────────────────────

@api_bp.errorhandler(ValidationError)
def handle_validation_error(error):
    return api_error('validation_error', 'Invalid request data.', 422, details=error.messages)


@api_bp.errorhandler(SchedulingError)
def handle_scheduling_error(error):
    return api_error('invalid_position', str(error), 422)


@api_bp.errorhandler(DriveTimeError)
def handle_drive_time_error(error):
    return api_error('drive_time_unavailable', str(error), 502)


def _dump_itinerary(itinerary):
    return ItinerarySchema().dump(itinerary)


def _default_drive_minutes():
    return current_app.config['DEFAULT_DRIVE_TIME_MINUTES']


# ── Rates ───────────────────────────────────────────────────

@api_bp.route('/rates', methods=['GET'])
def api_get_rates():
    """Current rate table."""
    return api_success(current_rate_table().to_dict())


# ── Quotes ──────────────────────────────────────────────────

@api_bp.route('/quotes/wine-tour', methods=['POST'])
def api_quote_wine_tour():
    """Quote a private hourly wine tour.

    Body:
        duration_hours (decimal): Requested hours (the day minimum still applies)
        party_size (int): 1-14 guests
        date (str): Tour date YYYY-MM-DD
        apply_modifiers (bool): Apply configured discounts and surcharges
        advance_days (int): Days between booking and tour
    """
    data = load_json(WineTourQuoteSchema())
    quote = current_engine().quote_wine_tour(
        data['duration_hours'], data['party_size'], data['date'],
        apply_modifiers=data['apply_modifiers'], advance_days=data['advance_days'],
    )

    result = quote.to_dict()
    result['total_display'] = format_currency(quote.total)
    return api_success(result)


@api_bp.route('/quotes/shared-tour', methods=['POST'])
def api_quote_shared_tour():
    """Quote a shared group tour. When date is given it must be a shared-tour day."""
    data = load_json(SharedTourQuoteSchema())
    rate_table = current_rate_table()

    if data['date'] is not None:
        valid, error = ValidationService.validate_shared_tour(
            data['date'].isoformat(), data['guest_count'], rate_table
        )
        if not valid:
            return api_error('invalid_shared_tour', error, 422, details={
                'day_of_week': day_of_week_name(data['date']),
            })
    else:
        valid, error = ValidationService.validate_party_size(
            data['guest_count'], rate_table.shared_tours.max_guests
        )
        if not valid:
            return api_error('invalid_shared_tour', error, 422)

    quote = current_engine().quote_shared_tour(data['guest_count'], data['include_lunch'])
    return api_success(quote.to_dict())


@api_bp.route('/quotes/transfer', methods=['POST'])
def api_quote_transfer():
    """Price a transfer (airport flat fare or local mileage)."""
    data = load_json(TransferQuoteSchema())
    price = current_engine().quote_transfer(data['route'], data['miles'])
    return api_success({'route': data['route'], 'price': str(price)})


@api_bp.route('/quotes/wait-time', methods=['POST'])
def api_quote_wait_time():
    """Price driver wait time."""
    data = load_json(WaitTimeQuoteSchema())
    engine = current_engine()
    price = engine.quote_wait_time(data['hours'], data['party_size'], data['date'])
    return api_success({
        'hours': str(engine.wait_time_hours(data['hours'])),
        'price': str(price),
    })


@api_bp.route('/quotes/deposit', methods=['POST'])
def api_quote_deposit():
    data = load_json(DepositSchema())
    deposit = current_engine().compute_deposit(data['total'], data['percentage'])
    return api_success({'deposit': str(deposit)})


# ── Itineraries ─────────────────────────────────────────────

@api_bp.route('/itineraries/stops', methods=['POST'])
def api_add_stop():
    """Append a stop to the itinerary.

    Body:
        itinerary (object): Current itinerary
        stop (object): Stop to append (duration defaults to the configured visit length)
    """
    data = load_json(StopEditSchema())
    if data['stop'] is None:
        raise ValidationError({'stop': ['Missing data for required field.']})

    stop = data['stop']
    if 'duration_minutes' not in (request.get_json().get('stop') or {}):
        stop = replace(stop, duration_minutes=current_app.config['DEFAULT_VISIT_MINUTES'])

    itinerary = StopScheduler.add_stop(data['itinerary'], stop, _default_drive_minutes())
    return api_success(_dump_itinerary(itinerary), 201)


@api_bp.route('/itineraries/stops/remove', methods=['POST'])
def api_remove_stop():
    data = load_json(StopEditSchema())
    if data['position'] is None:
        raise ValidationError({'position': ['Missing data for required field.']})

    itinerary = StopScheduler.remove_stop(data['itinerary'], data['position'])
    return api_success(_dump_itinerary(itinerary))


@api_bp.route('/itineraries/stops/reorder', methods=['POST'])
def api_reorder_stop():
    """Move a stop. Times are left as they are; call recompute afterwards."""
    data = load_json(StopEditSchema())
    missing = {
        name: ['Missing data for required field.']
        for name in ('from_position', 'to_position') if data[name] is None
    }
    if missing:
        raise ValidationError(missing)

    itinerary = StopScheduler.reorder_stop(data['itinerary'], data['from_position'], data['to_position'])
    return api_success(_dump_itinerary(itinerary))


@api_bp.route('/itineraries/stops/duration', methods=['POST'])
def api_update_stop_duration():
    data = load_json(StopEditSchema())
    missing = {
        name: ['Missing data for required field.']
        for name in ('position', 'duration_minutes') if data[name] is None
    }
    if missing:
        raise ValidationError(missing)

    itinerary = StopScheduler.update_stop_duration(
        data['itinerary'], data['position'], data['duration_minutes']
    )
    return api_success(_dump_itinerary(itinerary))


@api_bp.route('/itineraries/recompute', methods=['POST'])
def api_recompute_itinerary():
    """Recompute all stop times and the estimated dropoff.

    Query params:
        refresh_drive_times (bool): Look up every drive leg first
    """
    data = load_json(StopEditSchema())
    itinerary = data['itinerary']

    if request.args.get('refresh_drive_times', 'false').lower() in ('1', 'true', 'yes'):
        client = client_from_config(current_app.config)
        itinerary = asyncio.run(StopScheduler.refresh_drive_times(itinerary, client))

    itinerary = StopScheduler.recompute_times(itinerary, _default_drive_minutes())
    duration = StopScheduler.tour_duration_hours(itinerary)
    total_drive = StopScheduler.total_drive_minutes(itinerary)

    return api_success({
        'itinerary': _dump_itinerary(itinerary),
        'violations': StopScheduler.check_schedule(itinerary),
        'summary': {
            'stop_count': len(itinerary),
            'total_drive_minutes': total_drive,
            'total_drive_display': format_drive_time(total_drive),
            'total_visit_minutes': StopScheduler.total_visit_minutes(itinerary),
            'tour_duration_hours': str(duration) if duration is not None else None,
        },
    })


# ── Drive times ─────────────────────────────────────────────

@api_bp.route('/distance', methods=['GET'])
@limiter.limit(lambda: current_app.config.get('DISTANCE_RATE_LIMIT', '30/minute'))
def api_get_distance():
    """Drive time between two addresses.

    Query params:
        origin (str): Start address
        destination (str): End address
    """
    origin = (request.args.get('origin') or '').strip()
    destination = (request.args.get('destination') or '').strip()
    if not origin or not destination:
        return api_error('missing_parameters', 'origin and destination are required.', 400)

    cache_key = f'drive:{origin}|{destination}'
    minutes = cache.get(cache_key)
    if minutes is None:
        client = client_from_config(current_app.config)
        minutes = client.get_drive_time_minutes(origin, destination)
        cache.set(cache_key, minutes, timeout=current_app.config.get('DRIVE_TIME_CACHE_TIMEOUT', 3600))
    else:
        logger.debug(f"Drive time cache hit: {cache_key}")

    return api_success({'origin': origin, 'destination': destination, 'minutes': minutes})


# ── Recurrence ──────────────────────────────────────────────

@api_bp.route('/recurrence/preview', methods=['POST'])
def api_preview_recurrence():
    """Dates a recurrence rule generates from a start date."""
    data = load_json(RecurrencePreviewSchema())

    valid, error = ValidationService.validate_recurrence_rule(data['rule'])
    if not valid:
        return api_error('invalid_recurrence_rule', error, 422)

    rule = RecurrenceRule.from_dict(data['rule'])
    dates = generate_instance_dates(data['start_date'], rule)
    return api_success({'dates': dates, 'count': len(dates)})
