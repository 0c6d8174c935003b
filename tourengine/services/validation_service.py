"""
Validation service for booking inputs.
Range and format checks that callers run before invoking the engines,
which are permissive by design.
"""
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Tuple

from tourengine.models.rate_table import DEFAULT_RATE_TABLE, RateTable
from tourengine.services.pricing_service import is_shared_tour_day
from tourengine.services.recurrence_service import MAX_DAY_OF_MONTH, MAX_INSTANCES

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

MAX_TOUR_HOURS = 24


class ValidationService:
    """Service for validating pricing and scheduling inputs."""

    @staticmethod
    def validate_party_size(party_size: Any, max_guests: int = 14) -> Tuple[bool, Optional[str]]:
        """
        Validate a party size.

        Args:
            party_size: Number of guests
            max_guests: Largest bookable party

        Returns:
            Tuple of (is_valid, error_message)
        """
        if party_size is None:
            return False, "Party size is required"

        if isinstance(party_size, bool) or not isinstance(party_size, int):
            return False, "Party size must be a whole number"

        if party_size < 1:
            return False, "Party size must be at least 1"

        if party_size > max_guests:
            return False, f"Party size cannot exceed {max_guests} guests"

        return True, None

    @staticmethod
    def validate_date_string(value: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate a 'YYYY-MM-DD' date string that names a real calendar date.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not value:
            return False, "Date is required"

        if not isinstance(value, str) or not DATE_PATTERN.match(value):
            return False, "Date must be in YYYY-MM-DD format"

        try:
            date.fromisoformat(value)
        except ValueError:
            return False, "Date does not exist"

        return True, None

    @staticmethod
    def validate_duration_hours(hours: Any) -> Tuple[bool, Optional[str]]:
        """Validate a requested tour/wait duration in hours."""
        if hours is None:
            return False, "Duration is required"

        try:
            value = Decimal(str(hours))
        except InvalidOperation:
            return False, "Duration must be a number"

        if not value.is_finite():
            return False, "Duration must be a number"

        if value < 0:
            return False, "Duration cannot be negative"

        if value > MAX_TOUR_HOURS:
            return False, f"Duration cannot exceed {MAX_TOUR_HOURS} hours"

        return True, None

    @staticmethod
    def validate_shared_tour(
        tour_date,
        guest_count: int,
        rate_table: RateTable = DEFAULT_RATE_TABLE,
        tz_string: Optional[str] = None
    ) -> Tuple[bool, Optional[str]]:
        """
        Validate a shared tour booking: eligible day and capacity.

        Returns:
            Tuple of (is_valid, error_message)
        """
        shared = rate_table.shared_tours

        if not is_shared_tour_day(tour_date, rate_table, tz_string):
            return False, f"Shared tours only run on {', '.join(shared.days)}"

        valid, error = ValidationService.validate_party_size(guest_count, shared.max_guests)
        if not valid:
            return False, error

        return True, None

    @staticmethod
    def validate_recurrence_rule(data: Mapping[str, Any]) -> Tuple[bool, Optional[str]]:
        """
        Validate a recurrence rule as authored in the event editor.

        Rules:
            - frequency is weekly, biweekly or monthly
            - weekly/biweekly need at least one day_of_week (0-6)
            - monthly needs day_of_month between 1 and 28
            - end_type 'count' needs count between 1 and 52
            - end_type 'until_date' needs a valid YYYY-MM-DD until_date

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not isinstance(data, Mapping):
            return False, "Recurrence rule must be an object"

        frequency = data.get('frequency')
        if frequency not in ('weekly', 'biweekly', 'monthly'):
            return False, "Frequency must be weekly, biweekly or monthly"

        if frequency in ('weekly', 'biweekly'):
            days = data.get('days_of_week') or []
            if not days:
                return False, "Days of week are required for weekly/biweekly recurrence"
            for day in days:
                if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
                    return False, "Days of week must be integers from 0 (Sunday) to 6 (Saturday)"

        if frequency == 'monthly':
            day_of_month = data.get('day_of_month')
            if isinstance(day_of_month, bool) or not isinstance(day_of_month, int) \
                    or not 1 <= day_of_month <= MAX_DAY_OF_MONTH:
                return False, f"Day of month is required for monthly recurrence (1-{MAX_DAY_OF_MONTH})"

        end_type = data.get('end_type')
        if end_type == 'count':
            count = data.get('count')
            if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= MAX_INSTANCES:
                return False, f'Count is required when end type is "count" (1-{MAX_INSTANCES})'
        elif end_type == 'until_date':
            valid, error = ValidationService.validate_date_string(data.get('until_date'))
            if not valid:
                return False, f'End date is required when end type is "until_date": {error}'
        else:
            return False, "End type must be count or until_date"

        return True, None
