# =============================================================================
# tourengine - Distance Matrix Client Tests
# =============================================================================
# Tests for tourengine/utils/distance.py - drive-time lookups

import pytest
from unittest.mock import patch, MagicMock
import requests

from tourengine.utils.distance import (
    DISTANCE_MATRIX_URL,
    DistanceMatrixClient,
    DriveTimeError,
    client_from_config,
)


def mock_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


def route_payload(seconds):
    return {
        'status': 'OK',
        'rows': [{'elements': [{'status': 'OK', 'duration': {'value': seconds, 'text': ''}}]}],
    }


@pytest.fixture
def client():
    return DistanceMatrixClient(api_key='test-key', base_url='http://distance.test/json', timeout=5)


# =============================================================================
# get_drive_time_minutes Tests
# =============================================================================

class TestGetDriveTimeMinutes:
    """Tests for DistanceMatrixClient.get_drive_time_minutes()."""

    @patch('tourengine.utils.distance.requests.get')
    def test_rounds_up_to_whole_minutes(self, mock_get, client):
        mock_get.return_value = mock_response(route_payload(1250))

        assert client.get_drive_time_minutes('Walla Walla, WA', 'Lowden, WA') == 21

    @patch('tourengine.utils.distance.requests.get')
    def test_request_parameters(self, mock_get, client):
        mock_get.return_value = mock_response(route_payload(600))

        client.get_drive_time_minutes('Origin St', 'Destination Rd')

        args, kwargs = mock_get.call_args
        assert args[0] == 'http://distance.test/json'
        assert kwargs['params']['origins'] == 'Origin St'
        assert kwargs['params']['destinations'] == 'Destination Rd'
        assert kwargs['params']['mode'] == 'driving'
        assert kwargs['params']['key'] == 'test-key'
        assert kwargs['timeout'] == 5

    @patch('tourengine.utils.distance.requests.get')
    def test_client_is_callable(self, mock_get, client):
        mock_get.return_value = mock_response(route_payload(60))
        assert client('A', 'B') == 1

    @patch('tourengine.utils.distance.requests.get')
    def test_network_error(self, mock_get, client):
        mock_get.side_effect = requests.ConnectionError('Connection refused')

        with pytest.raises(DriveTimeError, match='unavailable'):
            client.get_drive_time_minutes('A', 'B')

    @patch('tourengine.utils.distance.requests.get')
    def test_http_error(self, mock_get, client):
        response = mock_response({})
        response.raise_for_status.side_effect = requests.HTTPError('503 Server Error')
        mock_get.return_value = response

        with pytest.raises(DriveTimeError):
            client.get_drive_time_minutes('A', 'B')

    @patch('tourengine.utils.distance.requests.get')
    def test_denied_status(self, mock_get, client):
        mock_get.return_value = mock_response({'status': 'REQUEST_DENIED', 'rows': []})

        with pytest.raises(DriveTimeError, match='REQUEST_DENIED'):
            client.get_drive_time_minutes('A', 'B')

    @patch('tourengine.utils.distance.requests.get')
    def test_no_route(self, mock_get, client):
        mock_get.return_value = mock_response({
            'status': 'OK',
            'rows': [{'elements': [{'status': 'ZERO_RESULTS'}]}],
        })

        with pytest.raises(DriveTimeError, match='ZERO_RESULTS'):
            client.get_drive_time_minutes('A', 'B')

    @patch('tourengine.utils.distance.requests.get')
    def test_malformed_payload(self, mock_get, client):
        mock_get.return_value = mock_response({'status': 'OK', 'rows': []})

        with pytest.raises(DriveTimeError, match='unexpected payload'):
            client.get_drive_time_minutes('A', 'B')

    @patch('tourengine.utils.distance.requests.get')
    def test_invalid_json(self, mock_get, client):
        response = mock_response(None)
        response.json.side_effect = ValueError('No JSON')
        mock_get.return_value = response

        with pytest.raises(DriveTimeError, match='invalid JSON'):
            client.get_drive_time_minutes('A', 'B')

    @patch('tourengine.utils.distance.requests.get')
    def test_missing_api_key_skips_request(self, mock_get):
        client = DistanceMatrixClient(api_key=None)

        with pytest.raises(DriveTimeError, match='DISTANCE_API_KEY'):
            client.get_drive_time_minutes('A', 'B')
        mock_get.assert_not_called()

    def test_empty_address(self, client):
        with pytest.raises(DriveTimeError):
            client.get_drive_time_minutes('', 'B')


class TestClientFromConfig:
    """Tests for client_from_config()."""

    def test_reads_config(self):
        client = client_from_config({
            'DISTANCE_API_KEY': 'abc',
            'DISTANCE_API_URL': 'http://example.test',
            'DISTANCE_API_TIMEOUT': 3,
        })

        assert client.api_key == 'abc'
        assert client.base_url == 'http://example.test'
        assert client.timeout == 3

    def test_defaults(self):
        client = client_from_config({})

        assert client.base_url == DISTANCE_MATRIX_URL
        assert client.timeout == 10
