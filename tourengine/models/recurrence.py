"""
RecurrenceRule - authoring rule for recurring events.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, FrozenSet, Mapping, Optional, Union
import enum


class Frequency(enum.Enum):
    WEEKLY = 'weekly'
    BIWEEKLY = 'biweekly'
    MONTHLY = 'monthly'

    @property
    def step_days(self) -> Optional[int]:
        """Days between instances, None for calendar-month stepping."""
        return {Frequency.WEEKLY: 7, Frequency.BIWEEKLY: 14}.get(self)


class EndType(enum.Enum):
    COUNT = 'count'
    UNTIL_DATE = 'until_date'


@dataclass(frozen=True)
class RecurrenceRule:
    """
    Recurrence rule value.

    days_of_week uses 0=Sunday .. 6=Saturday, the numbering the booking
    front-end sends. frequency stays a raw string when the value is not a
    known Frequency so the expander can degrade instead of failing.
    """
    frequency: Union[Frequency, str]
    end_type: Optional[EndType] = None
    count: Optional[int] = None
    until_date: Optional[date] = None
    days_of_week: FrozenSet[int] = frozenset()
    day_of_month: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'days_of_week', frozenset(self.days_of_week or ()))

    @property
    def is_supported(self) -> bool:
        return isinstance(self.frequency, Frequency)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RecurrenceRule':
        """
        Build a rule from its JSON shape.

        Args:
            data: {frequency, end_type, count?, until_date?, days_of_week?, day_of_month?}

        Returns:
            RecurrenceRule (unknown frequency/end_type values are tolerated)
        """
        raw_frequency = data.get('frequency')
        try:
            frequency = Frequency(raw_frequency)
        except ValueError:
            frequency = raw_frequency

        try:
            end_type = EndType(data.get('end_type'))
        except ValueError:
            end_type = None

        until = data.get('until_date')
        if isinstance(until, str):
            until = date.fromisoformat(until)

        count = data.get('count')
        day_of_month = data.get('day_of_month')

        return cls(
            frequency=frequency,
            end_type=end_type,
            count=int(count) if count is not None else None,
            until_date=until,
            days_of_week=frozenset(int(d) for d in data.get('days_of_week') or ()),
            day_of_month=int(day_of_month) if day_of_month is not None else None,
        )
