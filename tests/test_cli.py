# =============================================================================
# tourengine - CLI Command Tests
# =============================================================================

from dataclasses import replace
from decimal import Decimal

import pytest

from tourengine.models.rate_table import DEFAULT_RATE_TABLE, PricingModifier


class TestQuoteWineTourCommand:

    def test_prints_quote(self, runner):
        result = runner.invoke(args=['quote-wine-tour', '--hours', '3', '--party', '2', '--date', '2025-06-18'])

        assert result.exit_code == 0
        assert 'Sun-Wed' in result.output
        assert 'Subtotal: $340.00' in result.output
        assert '$370.94' in result.output

    def test_rejects_invalid_party(self, runner):
        result = runner.invoke(args=['quote-wine-tour', '--hours', '3', '--party', '20', '--date', '2025-06-18'])
        assert result.exit_code != 0

    @pytest.mark.parametrize('hours', ['-1', '30'])
    def test_rejects_out_of_range_hours(self, runner, hours):
        result = runner.invoke(args=['quote-wine-tour', '--hours', hours, '--party', '2', '--date', '2025-06-18'])

        assert result.exit_code != 0
        assert 'Duration' in result.output

    def test_applies_modifiers_on_request(self, app, runner):
        app.extensions['rate_table'] = replace(
            DEFAULT_RATE_TABLE, modifiers=(PricingModifier('Midweek', 'discount', Decimal('10')),)
        )
        result = runner.invoke(args=[
            'quote-wine-tour', '--hours', '4', '--party', '2', '--date', '2025-06-18', '--apply-modifiers',
        ])

        assert result.exit_code == 0
        assert 'Midweek: -$34.00' in result.output
        assert 'Subtotal: $306.00' in result.output


class TestPreviewRecurrenceCommand:

    def test_prints_dates(self, runner):
        result = runner.invoke(args=['preview-recurrence', '2025-01-06', '--frequency', 'weekly', '--count', '3'])

        assert result.exit_code == 0
        assert '2025-01-20' in result.output
        assert '3 instance(s)' in result.output

    def test_until_date(self, runner):
        result = runner.invoke(args=[
            'preview-recurrence', '2025-01-01', '--frequency', 'monthly',
            '--until', '2025-03-01', '--day-of-month', '1',
        ])

        assert '2025-03-01' in result.output
        assert '3 instance(s)' in result.output
