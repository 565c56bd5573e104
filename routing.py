"""
Route computation via an OSRM-compatible routing service.
"""

import logging
from collections import namedtuple

import requests

logger = logging.getLogger(__name__)

RouteResult = namedtuple("RouteResult", ["distance_m", "duration_s", "geometry"])


class RoutingError(Exception):
    """Raised when no route can be computed between two points."""


class RouteService:
    def __init__(self, base_url, timeout=10, user_agent="route-planner/1.0", profile="driving", session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.profile = profile
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            config["ROUTING_URL"],
            timeout=config.get("HTTP_TIMEOUT", 10),
            user_agent=config.get("HTTP_USER_AGENT", "route-planner/1.0"),
        )

    def route_distance(self, start_point, end_point):
        """Compute the driving route between two ``(lat, lng)`` points."""
        (start_lat, start_lng), (end_lat, end_lng) = start_point, end_point
        # OSRM takes lng,lat pairs
        coords = "{},{};{},{}".format(start_lng, start_lat, end_lng, end_lat)
        url = "{}/route/v1/{}/{}".format(self.base_url, self.profile, coords)

        try:
            response = self.session.get(
                url,
                params={"overview": "simplified", "geometries": "geojson"},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error("Routing request failed: %s", e)
            raise RoutingError("Routing service unavailable") from e
        except ValueError as e:
            raise RoutingError("Invalid response from routing service") from e

        if not isinstance(data, dict):
            raise RoutingError("Invalid response from routing service")
        routes = data.get("routes")
        if data.get("code") != "Ok" or not routes:
            logger.info("No route found between %s and %s (%s)", start_point, end_point, data.get("code"))
            raise RoutingError("No route found between the selected points")

        route = routes[0] if isinstance(routes, list) else None
        if not isinstance(route, dict):
            raise RoutingError("Invalid response from routing service")
        try:
            distance_m = float(route.get("distance", 0.0))
            duration_s = float(route.get("duration", 0.0))
        except (TypeError, ValueError) as e:
            raise RoutingError("Invalid response from routing service") from e
        if not (0 <= distance_m < float("inf")):
            raise RoutingError("Invalid response from routing service")
        return RouteResult(distance_m=distance_m, duration_s=duration_s, geometry=route.get("geometry"))
