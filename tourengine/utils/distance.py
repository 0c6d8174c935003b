"""
Drive-time lookups using the Google Distance Matrix API.

The client does not retry and never substitutes a default value:
callers decide on backoff and on what to show when a lookup fails.
"""
import logging
import math
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DISTANCE_MATRIX_URL = 'https://maps.googleapis.com/maps/api/distancematrix/json'


class DriveTimeError(RuntimeError):
    """Raised when a drive-time lookup fails (network, quota, no route)."""


class DistanceMatrixClient:
    """Fetch driving durations between two addresses."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DISTANCE_MATRIX_URL,
        timeout: float = 10
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    def __repr__(self):
        return f'<DistanceMatrixClient {self.base_url}>'

    def get_drive_time_minutes(self, origin: str, destination: str) -> int:
        """
        Get the driving time between two addresses.

        Args:
            origin: Origin address
            destination: Destination address

        Returns:
            Drive time in whole minutes (rounded up)

        Raises:
            DriveTimeError: On transport errors or when no route is returned
        """
        if not origin or not destination:
            raise DriveTimeError('Origin and destination are required')
        if not self.api_key:
            raise DriveTimeError('DISTANCE_API_KEY is not configured')

        params = {
            'origins': origin,
            'destinations': destination,
            'mode': 'driving',
            'units': 'imperial',
            'key': self.api_key,
        }

        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Distance lookup error for '{origin}' -> '{destination}': {e}")
            raise DriveTimeError(f'Distance service unavailable: {e}') from e
        except ValueError as e:
            logger.error(f"Distance lookup returned invalid JSON for '{origin}' -> '{destination}'")
            raise DriveTimeError('Distance service returned invalid JSON') from e

        if payload.get('status') != 'OK':
            logger.error(f"Distance lookup failed for '{origin}' -> '{destination}': {payload.get('status')}")
            raise DriveTimeError(f"Distance service status: {payload.get('status')}")

        try:
            element = payload['rows'][0]['elements'][0]
            if element.get('status') != 'OK':
                raise DriveTimeError(f"No driving route: {element.get('status')}")
            seconds = element['duration']['value']
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Distance lookup parse error for '{origin}' -> '{destination}': {e}")
            raise DriveTimeError('Distance service returned an unexpected payload') from e

        minutes = math.ceil(seconds / 60)
        logger.info(f"Drive time '{origin}' -> '{destination}': {minutes} min")
        return minutes

    __call__ = get_drive_time_minutes


def client_from_config(config) -> DistanceMatrixClient:
    """Build a client from a Flask config mapping."""
    return DistanceMatrixClient(
        api_key=config.get('DISTANCE_API_KEY'),
        base_url=config.get('DISTANCE_API_URL') or DISTANCE_MATRIX_URL,
        timeout=config.get('DISTANCE_API_TIMEOUT', 10),
    )
