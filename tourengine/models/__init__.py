"""
Value types for tourengine.
Import all models here for convenient access.
"""
from tourengine.models.rate_table import (
    RateTable, RateTableError, WineTourRates, SharedTourRates, TransferRates,
    LocalTransferRates, WaitTimeRates, DayType, PartyBand, WaitTimeBand,
    TransferRoute, DEFAULT_RATE_TABLE, day_type_for, band_for_party_size,
    wait_band_for_party_size, to_decimal,
)
from tourengine.models.price_quote import PriceQuote
from tourengine.models.itinerary import (
    Itinerary, Stop, DEFAULT_DRIVE_TIME_MINUTES, DEFAULT_VISIT_MINUTES,
)
from tourengine.models.recurrence import RecurrenceRule, Frequency, EndType

__all__ = [
    # Rates
    'RateTable',
    'RateTableError',
    'WineTourRates',
    'SharedTourRates',
    'TransferRates',
    'LocalTransferRates',
    'WaitTimeRates',
    'DayType',
    'PartyBand',
    'WaitTimeBand',
    'TransferRoute',
    'DEFAULT_RATE_TABLE',
    'day_type_for',
    'band_for_party_size',
    'wait_band_for_party_size',
    'to_decimal',
    # Quotes
    'PriceQuote',
    # Itineraries
    'Itinerary',
    'Stop',
    'DEFAULT_DRIVE_TIME_MINUTES',
    'DEFAULT_VISIT_MINUTES',
    # Recurrence
    'RecurrenceRule',
    'Frequency',
    'EndType',
]
