"""
Stop scheduling service for tourengine.
Handles itinerary edits and arrival/departure derivation.

Operations come in two families that are never combined:

* structural edits (add_stop, remove_stop, reorder_stop,
  update_stop_duration) change the stop list and keep positions 1..n
  but leave arrival/departure times as they are;
* temporal operations (recompute_times, apply_*_drive_time) derive times
  and drive legs.

add_stop is the one exception: the appended stop gets times derived from
the stop before it, because nothing downstream of it can go stale.
"""
import asyncio
import inspect
import logging
from dataclasses import replace
from datetime import timedelta
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, Union

from tourengine.models.itinerary import DEFAULT_DRIVE_TIME_MINUTES, Itinerary, Stop
from tourengine.utils.distance import DriveTimeError

logger = logging.getLogger(__name__)

DriveTimeLookup = Callable[[str, str], Union[int, Awaitable[int]]]


class SchedulingError(ValueError):
    """Invalid position or argument for an itinerary operation."""


def _minutes(value: int) -> timedelta:
    return timedelta(minutes=value)


def _check_position(itinerary: Itinerary, position: int, name: str = 'position') -> int:
    count = len(itinerary.stops)
    if not isinstance(position, int) or isinstance(position, bool) or not 1 <= position <= count:
        raise SchedulingError(f"{name} {position!r} out of range 1..{count}")
    return position - 1


def _check_minutes(minutes: int, name: str) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
        raise SchedulingError(f"{name} must be a non-negative integer, got {minutes!r}")
    return minutes


class StopScheduler:
    """Pure operations over Itinerary values."""

    # ============ STRUCTURAL ============

    @staticmethod
    def renumber(stops) -> tuple:
        """Return stops with positions rewritten to 1..n in list order."""
        return tuple(
            stop if stop.position == i else replace(stop, position=i)
            for i, stop in enumerate(stops, start=1)
        )

    @staticmethod
    def add_stop(
        itinerary: Itinerary,
        new_stop: Stop,
        default_drive_minutes: int = DEFAULT_DRIVE_TIME_MINUTES
    ) -> Itinerary:
        """
        Append a stop and derive its arrival/departure.

        Arrival follows the previous stop's departure plus its drive time to
        next, or the pickup time plus the pickup drive time for the first
        stop. A pickup leg that was never looked up uses
        default_drive_minutes. Existing stops keep their times; positions
        are renumbered from list order.

        Args:
            itinerary: Current itinerary
            new_stop: Stop to append (its position is overwritten)
            default_drive_minutes: Placeholder for legs never looked up

        Returns:
            New itinerary with the stop appended
        """
        _check_minutes(new_stop.duration_minutes, 'duration_minutes')

        previous = itinerary.last_stop
        if previous is None:
            leg = itinerary.pickup_drive_time
            if leg is None:
                leg = default_drive_minutes
            arrival = itinerary.pickup_time + _minutes(leg)
        elif previous.departure_time is not None:
            arrival = previous.departure_time + _minutes(previous.drive_time_to_next)
        else:
            # Previous stop has stale/no times; recompute_times() fills these in
            arrival = None

        departure = arrival + _minutes(new_stop.duration_minutes) if arrival is not None else None

        stop = replace(
            new_stop,
            position=len(itinerary.stops) + 1,
            arrival_time=arrival,
            departure_time=departure,
        )
        logger.debug(f"Added stop #{stop.position} {stop.destination_name!r} arriving {arrival}")
        return replace(itinerary, stops=StopScheduler.renumber(itinerary.stops + (stop,)))

    @staticmethod
    def remove_stop(itinerary: Itinerary, position: int) -> Itinerary:
        """
        Delete the stop at position and renumber the rest.

        Downstream times are left stale until recompute_times().

        Raises:
            SchedulingError: If position is not in 1..n
        """
        index = _check_position(itinerary, position)
        remaining = itinerary.stops[:index] + itinerary.stops[index + 1:]
        return replace(itinerary, stops=StopScheduler.renumber(remaining))

    @staticmethod
    def reorder_stop(itinerary: Itinerary, from_position: int, to_position: int) -> Itinerary:
        """
        Move a stop and renumber all positions (drag and drop).

        Times and drive legs are not recomputed.

        Raises:
            SchedulingError: If either position is not in 1..n
        """
        from_index = _check_position(itinerary, from_position, 'from_position')
        to_index = _check_position(itinerary, to_position, 'to_position')

        stops = list(itinerary.stops)
        moved = stops.pop(from_index)
        stops.insert(to_index, moved)
        return replace(itinerary, stops=StopScheduler.renumber(stops))

    @staticmethod
    def update_stop_duration(itinerary: Itinerary, position: int, duration_minutes: int) -> Itinerary:
        """Set one stop's visit duration (no cascade)."""
        index = _check_position(itinerary, position)
        _check_minutes(duration_minutes, 'duration_minutes')

        stops = list(itinerary.stops)
        stops[index] = replace(stops[index], duration_minutes=duration_minutes)
        return replace(itinerary, stops=tuple(stops))

    # ============ TEMPORAL ============

    @staticmethod
    def recompute_times(
        itinerary: Itinerary,
        default_drive_minutes: int = DEFAULT_DRIVE_TIME_MINUTES
    ) -> Itinerary:
        """
        Derive every arrival/departure and the estimated dropoff time.

        Walks stops in order from the pickup time. Pickup and dropoff legs
        that were never looked up use default_drive_minutes.

        Returns:
            New itinerary with consistent times
        """
        pickup_leg = itinerary.pickup_drive_time
        if pickup_leg is None:
            pickup_leg = default_drive_minutes
        dropoff_leg = itinerary.dropoff_drive_time
        if dropoff_leg is None:
            dropoff_leg = default_drive_minutes

        cursor = itinerary.pickup_time + _minutes(pickup_leg)
        stops = []
        for i, stop in enumerate(itinerary.stops):
            if i > 0:
                cursor += _minutes(stops[-1].drive_time_to_next)
            arrival = cursor
            departure = arrival + _minutes(stop.duration_minutes)
            stops.append(replace(stop, arrival_time=arrival, departure_time=departure))
            cursor = departure

        if stops:
            dropoff = stops[-1].departure_time + _minutes(dropoff_leg)
        else:
            dropoff = itinerary.pickup_time + _minutes(dropoff_leg)

        return replace(
            itinerary,
            stops=StopScheduler.renumber(stops),
            estimated_dropoff_time=dropoff,
        )

    @staticmethod
    def apply_drive_time(itinerary: Itinerary, from_position: int, minutes: int) -> Itinerary:
        """Set the drive time from the stop at from_position to the next one."""
        index = _check_position(itinerary, from_position, 'from_position')
        _check_minutes(minutes, 'minutes')

        stops = list(itinerary.stops)
        stops[index] = replace(stops[index], drive_time_to_next=minutes)
        return replace(itinerary, stops=tuple(stops))

    @staticmethod
    def apply_pickup_drive_time(itinerary: Itinerary, minutes: int) -> Itinerary:
        _check_minutes(minutes, 'minutes')
        return replace(itinerary, pickup_drive_time=minutes)

    @staticmethod
    def apply_dropoff_drive_time(itinerary: Itinerary, minutes: int) -> Itinerary:
        _check_minutes(minutes, 'minutes')
        return replace(itinerary, dropoff_drive_time=minutes)

    # ============ DRIVE TIME LOOKUPS (I/O) ============

    @staticmethod
    async def recompute_drive_time(
        itinerary: Itinerary,
        from_position: int,
        lookup: DriveTimeLookup
    ) -> int:
        """
        Fetch the drive time from the stop at from_position to the next stop.

        The result is not applied; pass it to apply_drive_time().

        Args:
            itinerary: Current itinerary (read only)
            from_position: Position of the origin stop (1..n-1)
            lookup: get_drive_time_minutes(origin, destination), sync or async

        Returns:
            Drive time in minutes

        Raises:
            SchedulingError: Invalid position or missing addresses
            DriveTimeError: The lookup failed
        """
        index = _check_position(itinerary, from_position, 'from_position')
        if index >= len(itinerary.stops) - 1:
            raise SchedulingError(f"Stop #{from_position} has no next stop; use the dropoff lookup")

        origin = itinerary.stops[index]
        destination = itinerary.stops[index + 1]
        if not origin.address or not destination.address:
            raise SchedulingError('Missing address information for stops')

        return await _call_lookup(lookup, origin.address, destination.address)

    @staticmethod
    async def recompute_pickup_drive_time(itinerary: Itinerary, lookup: DriveTimeLookup) -> int:
        """Fetch the drive time from the pickup location to the first stop."""
        first = itinerary.first_stop
        if first is None:
            raise SchedulingError('Itinerary has no stops')
        if not itinerary.pickup_location or not first.address:
            raise SchedulingError('Missing pickup or first stop address')
        return await _call_lookup(lookup, itinerary.pickup_location, first.address)

    @staticmethod
    async def recompute_dropoff_drive_time(itinerary: Itinerary, lookup: DriveTimeLookup) -> int:
        """Fetch the drive time from the last stop to the dropoff location."""
        last = itinerary.last_stop
        if last is None:
            raise SchedulingError('Itinerary has no stops')
        if not itinerary.dropoff_location or not last.address:
            raise SchedulingError('Missing last stop or dropoff address')
        return await _call_lookup(lookup, last.address, itinerary.dropoff_location)

    @staticmethod
    async def refresh_drive_times(itinerary: Itinerary, lookup: DriveTimeLookup) -> Itinerary:
        """
        Look up every leg concurrently and apply the results.

        Legs with a missing address are skipped. Times are not recomputed;
        call recompute_times() afterwards.

        Raises:
            DriveTimeError: If any lookup fails (nothing is applied)
        """
        legs = []  # (kind, index, origin, destination)
        stops = itinerary.stops

        if stops and itinerary.pickup_location and stops[0].address:
            legs.append(('pickup', None, itinerary.pickup_location, stops[0].address))
        # Legs follow list order; stored positions may be stale or unset
        for index, (current, following) in enumerate(zip(stops, stops[1:])):
            if current.address and following.address:
                legs.append(('stop', index, current.address, following.address))
            else:
                logger.warning(f"Skipping drive time for stop #{index + 1}: missing address")
        if stops and itinerary.dropoff_location and stops[-1].address:
            legs.append(('dropoff', None, stops[-1].address, itinerary.dropoff_location))

        results = await asyncio.gather(
            *(_call_lookup(lookup, origin, destination) for _, _, origin, destination in legs)
        )

        updated = itinerary
        stop_list = list(stops)
        for (kind, index, _, _), minutes in zip(legs, results):
            if kind == 'pickup':
                updated = StopScheduler.apply_pickup_drive_time(updated, minutes)
            elif kind == 'dropoff':
                updated = StopScheduler.apply_dropoff_drive_time(updated, minutes)
            else:
                stop_list[index] = replace(stop_list[index], drive_time_to_next=minutes)

        logger.info(f"Refreshed {len(legs)} drive legs for {itinerary!r}")
        return replace(updated, stops=tuple(stop_list))

    # ============ CHECKS & SUMMARIES ============

    @staticmethod
    def check_schedule(itinerary: Itinerary) -> List[str]:
        """
        List invariant violations (empty when the itinerary is consistent).

        Checks positions are exactly 1..n and that times never go backwards.
        Stops without times are skipped for the time checks.
        """
        violations = []

        positions = [stop.position for stop in itinerary.stops]
        expected = list(range(1, len(positions) + 1))
        if positions != expected:
            violations.append(f"Positions {positions} are not {expected}")

        previous = None
        for stop in itinerary.stops:
            if not stop.has_times:
                continue
            if stop.departure_time < stop.arrival_time:
                violations.append(f"Stop #{stop.position} departs before it arrives")
            if previous is not None and stop.arrival_time < previous.departure_time:
                violations.append(
                    f"Stop #{stop.position} arrives before stop #{previous.position} departs"
                )
            previous = stop

        return violations

    @staticmethod
    def total_drive_minutes(itinerary: Itinerary) -> int:
        """Sum of all drive legs (legs not yet looked up count as 0)."""
        between = sum(stop.drive_time_to_next for stop in itinerary.stops[:-1])
        return (itinerary.pickup_drive_time or 0) + between + (itinerary.dropoff_drive_time or 0)

    @staticmethod
    def total_visit_minutes(itinerary: Itinerary) -> int:
        return sum(stop.duration_minutes for stop in itinerary.stops)

    @staticmethod
    def tour_duration_hours(itinerary: Itinerary) -> Optional[Decimal]:
        """Hours from pickup to estimated dropoff, for feeding wine tour quotes."""
        if itinerary.estimated_dropoff_time is None:
            return None
        seconds = (itinerary.estimated_dropoff_time - itinerary.pickup_time).total_seconds()
        return Decimal(int(seconds // 60)) / Decimal(60)


async def _call_lookup(lookup: DriveTimeLookup, origin: str, destination: str) -> int:
    """Run a sync or async drive-time lookup without blocking the event loop."""
    is_async = inspect.iscoroutinefunction(lookup) or \
        inspect.iscoroutinefunction(getattr(lookup, '__call__', None))
    try:
        if is_async:
            raw = await lookup(origin, destination)
        else:
            raw = await asyncio.to_thread(lookup, origin, destination)
    except DriveTimeError:
        raise
    except Exception as e:
        logger.error(f"Drive time lookup failed for '{origin}' -> '{destination}': {e}")
        raise DriveTimeError(f"Drive time lookup failed: {e}") from e

    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        minutes = -1
    if minutes < 0:
        raise DriveTimeError(f"Invalid drive time {raw!r} for '{origin}' -> '{destination}'")
    return minutes
