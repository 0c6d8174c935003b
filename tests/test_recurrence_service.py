# =============================================================================
# tourengine - Recurrence Service Tests
# =============================================================================

from datetime import date

import pytest

from tourengine.models.recurrence import EndType, Frequency, RecurrenceRule
from tourengine.services.recurrence_service import MAX_INSTANCES, generate_instance_dates

MONDAY = 1  # 0=Sunday .. 6=Saturday
WEDNESDAY = 3


def weekly(**kwargs):
    return RecurrenceRule(frequency=Frequency.WEEKLY, **kwargs)


# =============================================================================
# Weekly / Biweekly
# =============================================================================

class TestWeeklyRecurrence:
    """Tests for weekly and biweekly expansion."""

    def test_weekly_count(self):
        rule = weekly(end_type=EndType.COUNT, count=4, days_of_week={MONDAY})

        assert generate_instance_dates('2025-01-06', rule) == [
            '2025-01-06', '2025-01-13', '2025-01-20', '2025-01-27',
        ]

    def test_weekly_without_day_filter(self):
        rule = weekly(end_type=EndType.COUNT, count=3)
        assert generate_instance_dates(date(2025, 1, 6), rule) == ['2025-01-06', '2025-01-13', '2025-01-20']

    def test_biweekly(self):
        rule = RecurrenceRule(frequency=Frequency.BIWEEKLY, end_type=EndType.COUNT, count=3)
        assert generate_instance_dates('2025-01-06', rule) == ['2025-01-06', '2025-01-20', '2025-02-03']

    def test_until_date_is_inclusive(self):
        rule = weekly(end_type=EndType.UNTIL_DATE, until_date=date(2025, 1, 20))
        assert generate_instance_dates('2025-01-06', rule) == ['2025-01-06', '2025-01-13', '2025-01-20']

    def test_until_before_start_keeps_start(self):
        rule = weekly(end_type=EndType.UNTIL_DATE, until_date=date(2024, 12, 1))
        assert generate_instance_dates('2025-01-06', rule) == ['2025-01-06']

    def test_count_one(self):
        rule = weekly(end_type=EndType.COUNT, count=1)
        assert generate_instance_dates('2025-01-06', rule) == ['2025-01-06']

    def test_large_count_capped(self):
        rule = weekly(end_type=EndType.COUNT, count=100)
        dates = generate_instance_dates('2025-01-06', rule)

        assert len(dates) == MAX_INSTANCES
        assert dates[-1] == '2025-12-29'

    def test_start_kept_even_when_filtered_out(self):
        # Start is a Monday; the rule only allows Wednesdays
        rule = weekly(end_type=EndType.COUNT, count=5, days_of_week={WEDNESDAY})
        assert generate_instance_dates('2025-01-06', rule) == ['2025-01-06']

    def test_dates_strictly_increasing(self):
        rule = RecurrenceRule(frequency=Frequency.BIWEEKLY, end_type=EndType.COUNT, count=10)
        dates = generate_instance_dates('2025-03-02', rule)
        assert dates == sorted(set(dates))


# =============================================================================
# Monthly
# =============================================================================

class TestMonthlyRecurrence:
    """Tests for monthly expansion."""

    def test_day_of_month(self):
        rule = RecurrenceRule(
            frequency=Frequency.MONTHLY, end_type=EndType.COUNT, count=3, day_of_month=15
        )
        assert generate_instance_dates('2025-01-10', rule) == ['2025-01-10', '2025-02-15', '2025-03-15']

    def test_anchor_capped_at_28(self):
        rule = RecurrenceRule(frequency=Frequency.MONTHLY, end_type=EndType.COUNT, count=3)
        assert generate_instance_dates('2025-01-31', rule) == ['2025-01-31', '2025-02-28', '2025-03-28']

    def test_year_rollover(self):
        rule = RecurrenceRule(
            frequency=Frequency.MONTHLY, end_type=EndType.COUNT, count=3, day_of_month=5
        )
        assert generate_instance_dates('2025-11-05', rule) == ['2025-11-05', '2025-12-05', '2026-01-05']

    def test_monthly_until(self):
        rule = RecurrenceRule(
            frequency=Frequency.MONTHLY,
            end_type=EndType.UNTIL_DATE,
            until_date=date(2025, 4, 1),
            day_of_month=1,
        )
        assert generate_instance_dates('2025-01-01', rule) == [
            '2025-01-01', '2025-02-01', '2025-03-01', '2025-04-01',
        ]


# =============================================================================
# Rules
# =============================================================================

class TestRecurrenceRule:
    """Tests for RecurrenceRule.from_dict() and unsupported frequencies."""

    def test_from_dict(self):
        rule = RecurrenceRule.from_dict({
            'frequency': 'weekly',
            'end_type': 'until_date',
            'until_date': '2025-03-01',
            'days_of_week': [1, 3],
        })

        assert rule.frequency is Frequency.WEEKLY
        assert rule.end_type is EndType.UNTIL_DATE
        assert rule.until_date == date(2025, 3, 1)
        assert rule.days_of_week == frozenset({1, 3})

    def test_unknown_frequency_kept_raw(self):
        rule = RecurrenceRule.from_dict({'frequency': 'daily', 'end_type': 'count', 'count': 5})

        assert rule.frequency == 'daily'
        assert rule.is_supported is False

    def test_unsupported_frequency_yields_start_only(self, caplog):
        rule = RecurrenceRule.from_dict({'frequency': 'daily', 'end_type': 'count', 'count': 5})

        assert generate_instance_dates('2025-01-06', rule) == ['2025-01-06']
        assert 'Unsupported recurrence frequency' in caplog.text

    @pytest.mark.parametrize('frequency, step', [
        (Frequency.WEEKLY, 7),
        (Frequency.BIWEEKLY, 14),
        (Frequency.MONTHLY, None),
    ])
    def test_step_days(self, frequency, step):
        assert frequency.step_days == step
