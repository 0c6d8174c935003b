"""
Services package for tourengine.
Contains the pricing, scheduling and recurrence engines.
"""

from tourengine.services.pricing_service import PricingEngine, is_shared_tour_day, day_of_week_name
from tourengine.services.stop_scheduler import StopScheduler, SchedulingError
from tourengine.services.recurrence_service import generate_instance_dates
from tourengine.services.validation_service import ValidationService

__all__ = [
    'PricingEngine',
    'is_shared_tour_day',
    'day_of_week_name',
    'StopScheduler',
    'SchedulingError',
    'generate_instance_dates',
    'ValidationService',
]
