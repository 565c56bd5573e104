"""
Geocoding adapter for the route planner.

Talks to a Nominatim-compatible service (OpenStreetMap by default) to turn
free-text addresses into coordinates and back. Stateless: one HTTP request
per call.
"""

import logging
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

import requests

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3

GeocodeResult = namedtuple("GeocodeResult", ["display_name", "lat", "lng"])


class GeocodingError(Exception):
    """Raised when an address cannot be resolved or the service is unreachable."""


class Geocoder:
    def __init__(self, base_url, timeout=10, user_agent="route-planner/1.0", session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            config["GEOCODER_URL"],
            timeout=config.get("HTTP_TIMEOUT", 10),
            user_agent=config.get("HTTP_USER_AGENT", "route-planner/1.0"),
        )

    def _get(self, path, params):
        params = dict(params, format="json")
        try:
            response = self.session.get(
                "{}/{}".format(self.base_url, path),
                params=params,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error("Geocoding request to %s failed: %s", path, e)
            raise GeocodingError("Geocoding service unavailable") from e
        except ValueError as e:
            logger.error("Geocoding service returned invalid JSON for %s", path)
            raise GeocodingError("Invalid response from geocoding service") from e

    @staticmethod
    def _to_result(item):
        if not isinstance(item, dict):
            return None
        try:
            return GeocodeResult(
                display_name=item.get("display_name", ""),
                lat=float(item["lat"]),
                lng=float(item["lon"]),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def search(self, query, limit=5):
        """Return up to ``limit`` address suggestions for ``query``."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        data = self._get("search", {"q": query, "limit": limit, "addressdetails": 0})
        if not isinstance(data, list):
            return []
        results = [self._to_result(item) for item in data]
        return [r for r in results if r is not None]

    def geocode(self, address):
        """Resolve ``address`` to its best match or raise GeocodingError."""
        results = self.search(address, limit=1)
        if not results:
            raise GeocodingError("Address not found: {}".format(address))
        return results[0]

    def reverse(self, lat, lng):
        """Resolve coordinates to a display address."""
        data = self._get("reverse", {"lat": lat, "lon": lng})
        if not isinstance(data, dict) or data.get("error"):
            raise GeocodingError("No address found at {}, {}".format(lat, lng))
        result = self._to_result(data)
        if result is None:
            raise GeocodingError("No address found at {}, {}".format(lat, lng))
        return result

    def geocode_pair(self, start_address, end_address):
        """Geocode both endpoints concurrently and return ``(start, end)``."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            start_future = pool.submit(self.geocode, start_address)
            end_future = pool.submit(self.geocode, end_address)
            return start_future.result(), end_future.result()
