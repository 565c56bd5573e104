"""
Geocoding and routing adapter tests (HTTP session mocked)
"""
from unittest.mock import MagicMock

import pytest
import requests

from geocoding import Geocoder, GeocodingError
from routing import RouteService, RoutingError


def _session(payload=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        session.get.return_value = response
    return session


class TestGeocoder:
    def test_search(self):
        session = _session([
            {'display_name': 'Prague, Czechia', 'lat': '50.0755', 'lon': '14.4378'},
            {'display_name': 'broken'},
        ])
        geocoder = Geocoder('https://nominatim.example/', session=session)

        results = geocoder.search('Prague', limit=3)

        assert len(results) == 1
        assert results[0].lat == 50.0755
        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs['params']
        assert url == 'https://nominatim.example/search'
        assert params['q'] == 'Prague'
        assert params['format'] == 'json'

    def test_short_query_skips_request(self):
        session = _session([])
        assert Geocoder('https://nominatim.example', session=session).search('Pr') == []
        session.get.assert_not_called()

    def test_geocode_miss_raises(self):
        with pytest.raises(GeocodingError):
            Geocoder('https://nominatim.example', session=_session([])).geocode('Atlantis')

    def test_reverse(self):
        session = _session({'display_name': 'Brno, Czechia', 'lat': '49.19', 'lon': '16.60'})
        result = Geocoder('https://nominatim.example', session=session).reverse(49.19, 16.60)
        assert result.display_name == 'Brno, Czechia'

    def test_reverse_error_payload(self):
        session = _session({'error': 'Unable to geocode'})
        with pytest.raises(GeocodingError):
            Geocoder('https://nominatim.example', session=session).reverse(0, 0)

    def test_network_error(self):
        session = _session(error=requests.ConnectionError('down'))
        with pytest.raises(GeocodingError):
            Geocoder('https://nominatim.example', session=session).search('Prague')


class TestRouteService:
    def test_route_distance(self):
        session = _session({'code': 'Ok', 'routes': [{'distance': 205123.4, 'duration': 8200.0, 'geometry': None}]})
        service = RouteService('https://osrm.example', session=session)

        route = service.route_distance((50.0755, 14.4378), (49.1951, 16.6068))

        assert route.distance_m == 205123.4
        assert session.get.call_args.args[0] == (
            'https://osrm.example/route/v1/driving/14.4378,50.0755;16.6068,49.1951'
        )

    def test_no_route(self):
        session = _session({'code': 'NoRoute', 'routes': []})
        with pytest.raises(RoutingError):
            RouteService('https://osrm.example', session=session).route_distance((0, 0), (1, 1))


class TestGeocodeRoutes:
    def test_search_endpoint(self, client):
        response = client.get('/api/geocode/search?q=Brno')
        assert response.status_code == 200
        assert response.get_json()['results'][0]['display_name'] == 'Brno, Czechia'

    def test_reverse_requires_coordinates(self, client):
        assert client.get('/api/geocode/reverse?lat=50').status_code == 400

    def test_reverse_not_found(self, client):
        assert client.get('/api/geocode/reverse?lat=0&lng=0').status_code == 404


class TestMalformedResponses:
    @pytest.mark.parametrize('payload', [
        ['Ok'],
        'Ok',
        {'code': 'Ok', 'routes': ['fast']},
        {'code': 'Ok', 'routes': {'0': {'distance': 1}}},
        {'code': 'Ok', 'routes': [{'distance': 'far'}]},
        {'code': 'Ok', 'routes': [{'distance': -5.0}]},
    ])
    def test_route_rejects_malformed_body(self, payload):
        service = RouteService('https://osrm.example', session=_session(payload))
        with pytest.raises(RoutingError):
            service.route_distance((50.0, 14.0), (49.0, 16.0))

    def test_search_skips_non_object_items(self):
        session = _session(['Prague', None, {'display_name': 'Prague, Czechia', 'lat': '50.07', 'lon': '14.43'}])
        results = Geocoder('https://nominatim.example', session=session).search('Prague')
        assert [r.display_name for r in results] == ['Prague, Czechia']

    def test_search_non_list_body(self):
        session = _session({'display_name': 'Prague'})
        assert Geocoder('https://nominatim.example', session=session).search('Prague') == []

    def test_reverse_non_object_body(self):
        session = _session(['Brno'])
        with pytest.raises(GeocodingError):
            Geocoder('https://nominatim.example', session=session).reverse(49.19, 16.60)
