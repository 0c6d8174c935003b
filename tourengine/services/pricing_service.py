"""
Pricing service for tourengine.
Quotes wine tours, shared tours, transfers and wait time from a RateTable.

Every method is a pure function of its arguments and the engine's rate
table; nothing depends on the current date or on module state.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from tourengine.models.price_quote import AppliedModifier, PriceQuote
from tourengine.models.rate_table import (
    DEFAULT_RATE_TABLE, PricingModifier, RateTable, TransferRoute, WEEKDAY_NAMES,
    band_for_party_size, day_type_for, to_decimal, wait_band_for_party_size,
)
from tourengine.utils.timezone import to_local_date

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def day_of_week_name(tour_date, tz_string=None) -> str:
    """Return the English weekday name ('Sunday' ... 'Saturday')."""
    return WEEKDAY_NAMES[to_local_date(tour_date, tz_string).weekday()]


def is_shared_tour_day(tour_date, rate_table: RateTable = DEFAULT_RATE_TABLE, tz_string=None) -> bool:
    """
    Check whether shared group tours run on a date.

    The engine does not enforce this itself; booking code calls it
    before quote_shared_tour().
    """
    return day_of_week_name(tour_date, tz_string) in rate_table.shared_tours.days


class PricingEngine:
    """Quotes every priced service from an explicit, immutable RateTable."""

    def __init__(self, rate_table: RateTable = DEFAULT_RATE_TABLE, tz_string: Optional[str] = None):
        self.rate_table = rate_table
        # Aware datetimes are read in this zone (None means the default business zone)
        self.tz_string = tz_string

    def __repr__(self):
        return f'<PricingEngine tax={self.rate_table.tax_rate} deposit={self.rate_table.deposit_percentage}>'

    # ============ RATE LOOKUPS ============

    def hourly_rate(self, party_size: int, tour_date) -> Decimal:
        """Wine tour hourly rate for a party size on a date."""
        day_type = day_type_for(to_local_date(tour_date, self.tz_string))
        return self.rate_table.wine_tour_rate(day_type, band_for_party_size(party_size))

    def minimum_hours(self, tour_date) -> Decimal:
        """Minimum billable wine tour hours for the date's day type."""
        return self.rate_table.minimum_hours(day_type_for(to_local_date(tour_date, self.tz_string)))

    # ============ TAX & DEPOSIT ============

    def compute_tax(self, amount) -> Decimal:
        return to_decimal(amount) * self.rate_table.tax_rate

    def compute_deposit(self, total, override_percentage=None) -> Decimal:
        """
        Deposit owed on a total.

        Args:
            total: Quote total
            override_percentage: Contract-negotiated fraction (e.g. 0.25);
                                 defaults to the rate table's percentage

        Returns:
            Deposit amount
        """
        if override_percentage is None:
            percentage = self.rate_table.deposit_percentage
        else:
            percentage = to_decimal(override_percentage)
        return to_decimal(total) * percentage

    # ============ QUOTES ============

    def applicable_modifiers(self, service: str, party_size: int, tour_date,
                             booking_amount, advance_days: int = 0) -> List[PricingModifier]:
        """Modifiers matching a booking, highest priority first."""
        local_date = to_local_date(tour_date, self.tz_string)
        amount = to_decimal(booking_amount)
        matching = [
            modifier for modifier in self.rate_table.modifiers
            if modifier.applies_to(service, party_size, local_date, amount, advance_days)
        ]
        return sorted(matching, key=lambda modifier: modifier.priority, reverse=True)

    def apply_modifiers(self, base_amount, modifiers) -> Tuple[Decimal, Tuple[AppliedModifier, ...]]:
        """
        Apply modifiers in order to a pre-tax amount.

        Percentages are taken on the running amount. A non-stackable
        modifier is applied and then ends the chain. The result is floored
        at the rate table's minimum charge.

        Returns:
            Tuple of (adjusted_amount, applied_modifiers)
        """
        running = to_decimal(base_amount)
        applied = []
        for modifier in modifiers:
            amount = modifier.amount_on(running)
            running += amount
            applied.append(AppliedModifier(modifier.name, modifier.modifier_type, amount))
            if not modifier.is_stackable:
                break

        return max(running, self.rate_table.minimum_charge), tuple(applied)

    def quote_wine_tour(self, duration_hours, party_size: int, tour_date,
                        apply_modifiers: bool = False, advance_days: int = 0) -> PriceQuote:
        """
        Quote a private hourly wine tour.

        Billable hours are never below the day type's minimum (5h Thu-Sat,
        4h Sun-Wed); zero or negative durations count as 0 before the
        minimum is applied.

        Args:
            duration_hours: Requested tour length in hours
            party_size: Number of guests (1-14, validated by the caller)
            tour_date: date, datetime or 'YYYY-MM-DD'
            apply_modifiers: Apply the rate table's discounts and surcharges
            advance_days: Days between booking and tour, for early-bird rules

        Returns:
            PriceQuote with the day type and rate tier used
        """
        local_date = to_local_date(tour_date, self.tz_string)
        day_type = day_type_for(local_date)
        band = band_for_party_size(party_size)

        minimum = self.rate_table.minimum_hours(day_type)
        requested = max(to_decimal(duration_hours), ZERO)
        hours = max(requested, minimum)

        rate = self.rate_table.wine_tour_rate(day_type, band)
        subtotal = rate * hours
        adjustments = ()
        if apply_modifiers:
            modifiers = self.applicable_modifiers('wine_tour', party_size, local_date, subtotal, advance_days)
            subtotal, adjustments = self.apply_modifiers(subtotal, modifiers)
        tax = self.compute_tax(subtotal)
        total = subtotal + tax

        logger.debug(
            f"Wine tour quote {local_date} ({day_type.label}) party={party_size} "
            f"hours={hours} rate={rate} total={total}"
        )

        return PriceQuote(
            service='wine_tour',
            units=hours,
            unit_rate=rate,
            subtotal=subtotal,
            tax=tax,
            deposit=self.compute_deposit(total),
            total=total,
            day_type=day_type.label,
            rate_tier=band.label,
            minimum_hours=minimum,
            adjustments=adjustments,
        )

    def quote_shared_tour(self, guest_count: int, include_lunch: bool = True) -> PriceQuote:
        """
        Quote a shared group tour (per-person ticket).

        Day eligibility is not checked here; see is_shared_tour_day().
        """
        shared = self.rate_table.shared_tours
        rate = shared.with_lunch_rate if include_lunch else shared.base_rate
        guests = to_decimal(guest_count)

        subtotal = rate * guests
        tax = self.compute_tax(subtotal)
        total = subtotal + tax

        return PriceQuote(
            service='shared_tour',
            units=guests,
            unit_rate=rate,
            subtotal=subtotal,
            tax=tax,
            deposit=self.compute_deposit(total),
            total=total,
            rate_tier='with lunch' if include_lunch else 'tour only',
        )

    def quote_transfer(self, route, miles: Optional[float] = None) -> Decimal:
        """
        Price a transfer.

        Airport routes are flat fares. Local transfers charge the base rate
        plus per-mile beyond the included miles. No tax or deposit is
        applied at this level.

        Args:
            route: TransferRoute or its string value
            miles: Trip mileage (local transfers only)

        Returns:
            Transfer price (0 for unpriced routes or a local transfer
            without mileage)
        """
        route = TransferRoute(route)
        transfers = self.rate_table.transfers

        if route is TransferRoute.LOCAL and miles:
            local = transfers.local
            extra_miles = max(ZERO, to_decimal(miles) - local.included_miles)
            return local.base_rate + extra_miles * local.per_mile

        return transfers.airport.get(route, ZERO)

    def quote_wait_time(self, hours, party_size: int, tour_date) -> Decimal:
        """
        Price driver wait time.

        Billable hours are at least the wait time minimum (1h). Weekend
        pricing applies Thursday-Saturday, matching the wine tour split.
        """
        wait = self.rate_table.wait_time
        billable = max(to_decimal(hours), wait.minimum_hours)

        day_type = day_type_for(to_local_date(tour_date, self.tz_string))
        rate = self.rate_table.wait_time_rate(day_type, wait_band_for_party_size(party_size))

        return billable * rate

    def wait_time_hours(self, hours) -> Decimal:
        """Billable wait hours for a requested duration."""
        return max(to_decimal(hours), self.rate_table.wait_time.minimum_hours)
