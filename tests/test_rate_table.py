# =============================================================================
# tourengine - Rate Table Tests
# =============================================================================
# Tests for tourengine/models/rate_table.py - bands, day types, validation

import json
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from tourengine import load_rate_table
from tourengine.models.rate_table import (
    DEFAULT_RATE_TABLE,
    DayType,
    PartyBand,
    PricingModifier,
    RateTable,
    RateTableError,
    TransferRoute,
    WaitTimeBand,
    band_for_party_size,
    day_type_for,
    to_decimal,
    wait_band_for_party_size,
)


# =============================================================================
# Day Types
# =============================================================================

class TestDayTypeFor:
    """Tests for day_type_for()."""

    @pytest.mark.parametrize('day', [19, 20, 21])
    def test_thursday_to_saturday_is_premium(self, day):
        assert day_type_for(date(2025, 6, day)) is DayType.PREMIUM

    @pytest.mark.parametrize('day', [15, 16, 17, 18])
    def test_sunday_to_wednesday_is_standard(self, day):
        assert day_type_for(date(2025, 6, day)) is DayType.STANDARD

    def test_labels(self):
        assert DayType.PREMIUM.label == 'Thu-Sat'
        assert DayType.STANDARD.label == 'Sun-Wed'


# =============================================================================
# Party Bands
# =============================================================================

class TestBandForPartySize:
    """Tests for band_for_party_size() and wait_band_for_party_size()."""

    @pytest.mark.parametrize('size, band', [
        (1, PartyBand.ONE_TWO),
        (2, PartyBand.ONE_TWO),
        (3, PartyBand.THREE_FOUR),
        (6, PartyBand.FIVE_SIX),
        (8, PartyBand.SEVEN_EIGHT),
        (11, PartyBand.NINE_ELEVEN),
        (12, PartyBand.TWELVE_FOURTEEN),
        (14, PartyBand.TWELVE_FOURTEEN),
    ])
    def test_boundaries_belong_to_lower_band(self, size, band):
        assert band_for_party_size(size) is band

    def test_oversized_party_clamps_to_top_band(self):
        assert band_for_party_size(20) is PartyBand.TWELVE_FOURTEEN

    def test_zero_falls_in_bottom_band(self):
        assert band_for_party_size(0) is PartyBand.ONE_TWO

    @pytest.mark.parametrize('size, band', [
        (4, WaitTimeBand.SMALL),
        (5, WaitTimeBand.MEDIUM),
        (8, WaitTimeBand.MEDIUM),
        (9, WaitTimeBand.LARGE),
        (14, WaitTimeBand.LARGE),
    ])
    def test_wait_time_bands(self, size, band):
        assert wait_band_for_party_size(size) is band

    def test_band_label(self):
        assert PartyBand.NINE_ELEVEN.label == '9-11 guests'
        assert PartyBand.NINE_ELEVEN.lower == 9
        assert PartyBand.NINE_ELEVEN.upper == 11


# =============================================================================
# Default Rates
# =============================================================================

class TestDefaultRateTable:
    """Tests for the built-in rates."""

    def test_default_table_is_valid(self):
        assert DEFAULT_RATE_TABLE.validate() is DEFAULT_RATE_TABLE

    def test_standard_and_premium_rates(self, rate_table):
        assert rate_table.wine_tour_rate(DayType.STANDARD, PartyBand.ONE_TWO) == Decimal('85')
        assert rate_table.wine_tour_rate(DayType.PREMIUM, PartyBand.ONE_TWO) == Decimal('95')
        assert rate_table.wine_tour_rate(DayType.STANDARD, PartyBand.TWELVE_FOURTEEN) == Decimal('140')
        assert rate_table.wine_tour_rate(DayType.PREMIUM, PartyBand.TWELVE_FOURTEEN) == Decimal('150')

    def test_premium_is_never_cheaper(self, rate_table):
        for band in PartyBand:
            assert rate_table.wine_tour_rate(DayType.PREMIUM, band) >= \
                rate_table.wine_tour_rate(DayType.STANDARD, band)

    def test_minimum_hours(self, rate_table):
        assert rate_table.minimum_hours(DayType.STANDARD) == Decimal('4')
        assert rate_table.minimum_hours(DayType.PREMIUM) == Decimal('5')

    def test_every_airport_route_priced(self, rate_table):
        for route in TransferRoute.airport_routes():
            assert route in rate_table.transfers.airport

    def test_rates_are_read_only(self, rate_table):
        with pytest.raises(TypeError):
            rate_table.wine_tours.standard[PartyBand.ONE_TWO] = Decimal('1')


# =============================================================================
# Validation
# =============================================================================

class TestRateTableValidate:
    """Tests for RateTable.validate()."""

    def test_missing_band_rejected(self, rate_table):
        standard = dict(rate_table.wine_tours.standard)
        del standard[PartyBand.SEVEN_EIGHT]
        table = replace(rate_table, wine_tours=replace(rate_table.wine_tours, standard=standard))

        with pytest.raises(RateTableError, match='7-8'):
            table.validate()

    def test_negative_rate_rejected(self, rate_table):
        weekend = dict(rate_table.wait_time.weekend)
        weekend[WaitTimeBand.SMALL] = Decimal('-1')
        table = replace(rate_table, wait_time=replace(rate_table.wait_time, weekend=weekend))

        with pytest.raises(RateTableError, match='negative'):
            table.validate()

    def test_tax_rate_must_be_fraction(self, rate_table):
        with pytest.raises(RateTableError, match='tax_rate'):
            replace(rate_table, tax_rate=Decimal('9.1')).validate()

    def test_band_coverage_must_match_max_guests(self, rate_table):
        with pytest.raises(RateTableError, match='covers 1-14'):
            replace(rate_table, max_guests=16).validate()

    def test_unknown_shared_day_rejected(self, rate_table):
        shared = replace(rate_table.shared_tours, days=('Sunday', 'Funday'))
        with pytest.raises(RateTableError, match='Funday'):
            replace(rate_table, shared_tours=shared).validate()


# =============================================================================
# Serialization
# =============================================================================

class TestRateTableSerialization:
    """Tests for RateTable.to_dict() / from_dict() and load_rate_table()."""

    def test_to_dict_shape(self, rate_table):
        data = rate_table.to_dict()
        assert data['wine_tours']['sun_wed_rates']['1-2'] == '85'
        assert data['wine_tours']['thu_sat_minimum_hours'] == '5'
        assert data['transfers']['airport']['seatac_to_walla'] == '850'
        assert data['transfers']['local']['base_miles'] == '10'
        assert data['wait_time']['weekend_rates']['9-14'] == '120'
        assert data['tax_rate'] == '0.091'

    def test_from_dict_reads_every_section(self, rate_table):
        table = RateTable.from_dict(rate_table.to_dict())

        assert table.wine_tour_rate(DayType.PREMIUM, PartyBand.FIVE_SIX) == Decimal('115')
        assert table.shared_tours.days == ('Sunday', 'Monday', 'Tuesday', 'Wednesday')
        assert table.transfers.local.included_miles == Decimal('10')
        assert table.wait_time.minimum_hours == Decimal('1')
        assert table.deposit_percentage == Decimal('0.50')

    def test_from_dict_missing_section(self, rate_table):
        data = rate_table.to_dict()
        del data['wait_time']

        with pytest.raises(RateTableError, match='wait_time'):
            RateTable.from_dict(data)

    def test_from_dict_unknown_band(self, rate_table):
        data = rate_table.to_dict()
        data['wine_tours']['sun_wed_rates']['1-3'] = '90'

        with pytest.raises(RateTableError, match='1-3'):
            RateTable.from_dict(data)

    def test_from_dict_reads_modifiers(self, rate_table):
        data = rate_table.to_dict()
        data['minimum_charge'] = '250'
        data['modifiers'] = [{
            'name': 'Early bird', 'modifier_type': 'early_bird', 'value': '10',
            'min_advance_days': 30, 'start_date': '2025-01-01', 'days': ['Sunday'],
        }]

        table = RateTable.from_dict(data)
        modifier = table.modifiers[0]

        assert table.minimum_charge == Decimal('250')
        assert modifier.value == Decimal('10')
        assert modifier.value_type == 'percentage'
        assert modifier.start_date == date(2025, 1, 1)
        assert modifier.days == ('Sunday',)
        assert RateTable.from_dict(table.to_dict()) == table

    def test_default_table_has_no_modifiers(self, rate_table):
        data = rate_table.to_dict()
        assert data['modifiers'] == []
        assert data['minimum_charge'] == '0'

    def test_unknown_modifier_value_type_rejected(self, rate_table):
        modifier = PricingModifier('Odd', 'surcharge', Decimal('5'), value_type='ratio')
        with pytest.raises(RateTableError, match='value_type'):
            replace(rate_table, modifiers=(modifier,)).validate()

    def test_load_rate_table_from_file(self, rate_table, tmp_path):
        data = rate_table.to_dict()
        data['wine_tours']['sun_wed_rates']['1-2'] = '89.50'
        path = tmp_path / 'rates.json'
        path.write_text(json.dumps(data))

        table = load_rate_table(str(path))

        assert table.wine_tour_rate(DayType.STANDARD, PartyBand.ONE_TWO) == Decimal('89.50')

    def test_load_rate_table_without_path(self):
        assert load_rate_table(None) is DEFAULT_RATE_TABLE

    def test_to_decimal_avoids_float_noise(self):
        assert to_decimal(0.1) == Decimal('0.1')
        assert to_decimal(None) == Decimal('0')

    def test_to_decimal_rejects_text(self):
        with pytest.raises(RateTableError):
            to_decimal('eighty')
