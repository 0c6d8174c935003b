"""
Itinerary and Stop values for multi-winery tours.

Both are frozen; the scheduler returns new instances for every edit.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

DEFAULT_DRIVE_TIME_MINUTES = 15
DEFAULT_VISIT_MINUTES = 75


@dataclass(frozen=True)
class Stop:
    """A single winery/venue visit within an itinerary."""
    destination_id: Optional[int] = None
    destination_name: str = ''
    address: Optional[str] = None
    duration_minutes: int = DEFAULT_VISIT_MINUTES
    position: int = 0
    arrival_time: Optional[datetime] = None
    departure_time: Optional[datetime] = None
    drive_time_to_next: int = DEFAULT_DRIVE_TIME_MINUTES
    is_break: bool = False  # lunch or rest stop
    reservation_confirmed: bool = False
    notes: Optional[str] = None

    def __repr__(self):
        return f'<Stop #{self.position} {self.destination_name or self.destination_id}>'

    @property
    def has_times(self) -> bool:
        return self.arrival_time is not None and self.departure_time is not None


@dataclass(frozen=True)
class Itinerary:
    """Pickup, ordered stops and dropoff for one tour day."""
    pickup_location: str
    pickup_time: datetime
    dropoff_location: str = ''
    estimated_dropoff_time: Optional[datetime] = None
    pickup_drive_time: Optional[int] = None   # minutes, None until looked up
    dropoff_drive_time: Optional[int] = None
    stops: Tuple[Stop, ...] = ()
    driver_notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'stops', tuple(self.stops))

    def __repr__(self):
        return f'<Itinerary {self.pickup_location} @ {self.pickup_time:%Y-%m-%d %H:%M} [{len(self.stops)} stops]>'

    def __len__(self):
        return len(self.stops)

    @property
    def first_stop(self) -> Optional[Stop]:
        return self.stops[0] if self.stops else None

    @property
    def last_stop(self) -> Optional[Stop]:
        return self.stops[-1] if self.stops else None
