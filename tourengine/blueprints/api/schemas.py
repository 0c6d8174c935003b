"""
Marshmallow schemas for API requests and responses.
Converts JSON bodies to engine values and engine values back to JSON.
"""
from datetime import datetime

from flask import current_app, has_app_context
from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from tourengine.models.itinerary import DEFAULT_DRIVE_TIME_MINUTES, DEFAULT_VISIT_MINUTES, Itinerary, Stop
from tourengine.models.rate_table import TransferRoute
from tourengine.services.stop_scheduler import StopScheduler
from tourengine.utils.formatting import format_clock
from tourengine.utils.timezone import combine_local


def _business_timezone():
    if has_app_context():
        return current_app.config.get('BUSINESS_TIMEZONE')
    return None


class LocalDateTime(fields.DateTime):
    """ISO datetime converted to naive business-local wall clock."""

    def _deserialize(self, value, attr, data, **kwargs):
        result = super()._deserialize(value, attr, data, **kwargs)
        if result.tzinfo is not None:
            result = combine_local(None, result, _business_timezone())
        return result


class BaseSchema(Schema):
    """Base schema with common config."""
    class Meta:
        # Clients send dumped itineraries back, dump-only fields included
        unknown = EXCLUDE


# ── Quotes ──────────────────────────────────────────────────

class WineTourQuoteSchema(BaseSchema):
    duration_hours = fields.Decimal(required=True, validate=validate.Range(min=0, max=24))
    party_size = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=14))
    date = fields.Date(required=True)
    apply_modifiers = fields.Bool(load_default=False)
    advance_days = fields.Int(strict=True, load_default=0, validate=validate.Range(min=0))


class SharedTourQuoteSchema(BaseSchema):
    guest_count = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    include_lunch = fields.Bool(load_default=True)
    date = fields.Date(load_default=None)


class TransferQuoteSchema(BaseSchema):
    route = fields.Str(required=True, validate=validate.OneOf([r.value for r in TransferRoute]))
    miles = fields.Decimal(load_default=None, validate=validate.Range(min=0))


class WaitTimeQuoteSchema(BaseSchema):
    hours = fields.Decimal(required=True, validate=validate.Range(min=0, max=24))
    party_size = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=14))
    date = fields.Date(required=True)


class DepositSchema(BaseSchema):
    total = fields.Decimal(required=True, validate=validate.Range(min=0))
    percentage = fields.Decimal(load_default=None, validate=validate.Range(min=0, max=1))


# ── Itineraries ─────────────────────────────────────────────

class StopSchema(BaseSchema):
    """Stop representation (loads into a Stop value)."""
    destination_id = fields.Int(allow_none=True, load_default=None)
    destination_name = fields.Str(load_default='')
    address = fields.Str(allow_none=True, load_default=None)
    duration_minutes = fields.Int(
        strict=True, load_default=DEFAULT_VISIT_MINUTES, validate=validate.Range(min=0)
    )
    position = fields.Int(load_default=0)
    arrival_time = LocalDateTime(allow_none=True, load_default=None)
    departure_time = LocalDateTime(allow_none=True, load_default=None)
    drive_time_to_next = fields.Int(
        strict=True, load_default=DEFAULT_DRIVE_TIME_MINUTES, validate=validate.Range(min=0)
    )
    is_break = fields.Bool(load_default=False)
    reservation_confirmed = fields.Bool(load_default=False)
    notes = fields.Str(allow_none=True, load_default=None)
    arrival_clock = fields.Method('get_arrival_clock', dump_only=True)
    departure_clock = fields.Method('get_departure_clock', dump_only=True)

    def get_arrival_clock(self, obj):
        return format_clock(obj.arrival_time)

    def get_departure_clock(self, obj):
        return format_clock(obj.departure_time)

    @post_load
    def make_stop(self, data, **kwargs):
        return Stop(**data)


class ItineraryInputSchema(BaseSchema):
    """
    Itinerary as sent by the itinerary builder.

    pickup_time is either an ISO datetime or 'HH:MM' together with
    tour_date; naive values are business-local wall clock.
    """
    pickup_location = fields.Str(required=True)
    pickup_time = fields.Str(required=True)
    tour_date = fields.Date(load_default=None)
    dropoff_location = fields.Str(load_default='')
    estimated_dropoff_time = LocalDateTime(allow_none=True, load_default=None)
    pickup_drive_time = fields.Int(allow_none=True, load_default=None, validate=validate.Range(min=0))
    dropoff_drive_time = fields.Int(allow_none=True, load_default=None, validate=validate.Range(min=0))
    stops = fields.List(fields.Nested(StopSchema), load_default=list)
    driver_notes = fields.Str(allow_none=True, load_default=None)

    @post_load
    def make_itinerary(self, data, **kwargs):
        raw_pickup = data.pop('pickup_time')
        tour_date = data.pop('tour_date')

        try:
            if 'T' in raw_pickup:
                pickup = combine_local(None, datetime.fromisoformat(raw_pickup), _business_timezone())
            elif tour_date is not None:
                pickup = combine_local(tour_date, raw_pickup, _business_timezone())
            else:
                raise ValidationError('tour_date is required when pickup_time is HH:MM.', 'pickup_time')
        except ValueError:
            raise ValidationError('Not a valid time or datetime.', 'pickup_time')

        # Positions follow list order whatever the client sent
        data['stops'] = StopScheduler.renumber(data['stops'])
        return Itinerary(pickup_time=pickup, **data)


class ItinerarySchema(BaseSchema):
    """Itinerary representation returned by the API."""
    pickup_location = fields.Str()
    pickup_time = fields.DateTime(format='iso')
    dropoff_location = fields.Str()
    estimated_dropoff_time = fields.DateTime(format='iso', allow_none=True)
    pickup_drive_time = fields.Int(allow_none=True)
    dropoff_drive_time = fields.Int(allow_none=True)
    stops = fields.List(fields.Nested(StopSchema))
    driver_notes = fields.Str(allow_none=True)


class StopEditSchema(BaseSchema):
    itinerary = fields.Nested(ItineraryInputSchema, required=True)
    stop = fields.Nested(StopSchema, load_default=None)
    position = fields.Int(strict=True, load_default=None)
    from_position = fields.Int(strict=True, load_default=None)
    to_position = fields.Int(strict=True, load_default=None)
    duration_minutes = fields.Int(strict=True, load_default=None, validate=validate.Range(min=0))


# ── Recurrence ──────────────────────────────────────────────

class RecurrencePreviewSchema(BaseSchema):
    start_date = fields.Date(required=True)
    rule = fields.Dict(required=True)
