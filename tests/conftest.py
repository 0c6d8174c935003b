# =============================================================================
# tourengine - Pytest Fixtures Configuration
# =============================================================================

import pytest
from datetime import datetime

from tourengine import create_app
from tourengine.models.itinerary import Itinerary, Stop
from tourengine.models.rate_table import DEFAULT_RATE_TABLE
from tourengine.services.pricing_service import PricingEngine
from tourengine.services.stop_scheduler import StopScheduler


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture(scope='function')
def app():
    """Create and configure test application (built-in rate table, no network)."""
    application = create_app('testing')

    with application.app_context():
        yield application


@pytest.fixture(scope='function')
def client(app):
    """Test client for HTTP requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """CLI test runner."""
    return app.test_cli_runner()


# =============================================================================
# Pricing Fixtures
# =============================================================================

@pytest.fixture
def rate_table():
    """Built-in Walla Walla rate table."""
    return DEFAULT_RATE_TABLE


@pytest.fixture
def engine(rate_table):
    """Pricing engine over the built-in rates."""
    return PricingEngine(rate_table)


# =============================================================================
# Itinerary Fixtures
# =============================================================================

@pytest.fixture
def empty_itinerary():
    """Wednesday tour from the hotel with no stops yet."""
    return Itinerary(
        pickup_location='6 W Rose St, Walla Walla, WA',
        pickup_time=datetime(2025, 6, 18, 10, 0),
        dropoff_location='6 W Rose St, Walla Walla, WA',
    )


@pytest.fixture
def winery_stops():
    """Three winery stops (positions assigned by the scheduler)."""
    return [
        Stop(
            destination_id=1,
            destination_name="L'Ecole No 41",
            address='41 Lowden School Rd, Lowden, WA',
            duration_minutes=60,
        ),
        Stop(
            destination_id=2,
            destination_name='Woodward Canyon',
            address='11920 W Hwy 12, Lowden, WA',
            duration_minutes=75,
        ),
        Stop(
            destination_id=3,
            destination_name='Pepper Bridge',
            address='1704 JB George Rd, Walla Walla, WA',
            duration_minutes=90,
        ),
    ]


@pytest.fixture
def sample_itinerary(empty_itinerary, winery_stops):
    """Itinerary with three stops and derived times."""
    itinerary = empty_itinerary
    for stop in winery_stops:
        itinerary = StopScheduler.add_stop(itinerary, stop)
    return itinerary


@pytest.fixture
def itinerary_payload():
    """Itinerary JSON as sent by the itinerary builder."""
    return {
        'pickup_location': '6 W Rose St, Walla Walla, WA',
        'pickup_time': '10:00',
        'tour_date': '2025-06-18',
        'dropoff_location': '6 W Rose St, Walla Walla, WA',
        'stops': [
            {'destination_name': "L'Ecole No 41", 'address': '41 Lowden School Rd, Lowden, WA',
             'duration_minutes': 60, 'position': 1},
            {'destination_name': 'Woodward Canyon', 'address': '11920 W Hwy 12, Lowden, WA',
             'duration_minutes': 75, 'position': 2},
            {'destination_name': 'Pepper Bridge', 'address': '1704 JB George Rd, Walla Walla, WA',
             'duration_minutes': 90, 'position': 3},
        ],
    }
