"""
Pytest configuration and fixtures for Route Planner tests
"""
import pytest
from types import SimpleNamespace

from app_config import TestingConfig
from auth_routes import generate_token
from geocoding import GeocodeResult, GeocodingError
from models import db, Profile
from routing import RouteResult
from server import create_app

PRAGUE = GeocodeResult("Prague, Czechia", 50.0755, 14.4378)
BRNO = GeocodeResult("Brno, Czechia", 49.1951, 16.6068)


class FakeGeocoder:
    """Geocoder double that knows two cities."""

    def __init__(self):
        self.places = {"prague": PRAGUE, "brno": BRNO}
        self.calls = []

    def search(self, query, limit=5):
        self.calls.append(("search", query))
        query = (query or "").strip().lower()
        if len(query) < 3:
            return []
        return [r for key, r in self.places.items() if key.startswith(query)][:limit]

    def geocode(self, address):
        self.calls.append(("geocode", address))
        hit = self.places.get((address or "").strip().lower())
        if hit is None:
            raise GeocodingError("Address not found: {}".format(address))
        return hit

    def geocode_pair(self, start_address, end_address):
        return self.geocode(start_address), self.geocode(end_address)

    def reverse(self, lat, lng):
        self.calls.append(("reverse", lat, lng))
        for result in self.places.values():
            if abs(result.lat - lat) < 0.1 and abs(result.lng - lng) < 0.1:
                return result
        raise GeocodingError("No address found at {}, {}".format(lat, lng))


class FakeRouteService:
    """Every route is 200 km long."""

    def __init__(self, distance_m=200000.0, duration_s=8100.0):
        self.distance_m = distance_m
        self.duration_s = duration_s
        self.calls = []

    def route_distance(self, start_point, end_point):
        self.calls.append((tuple(start_point), tuple(end_point)))
        return RouteResult(self.distance_m, self.duration_s, None)


class RecordingNotifier:
    def __init__(self):
        self.orders = []

    def dispatch_order_notifications(self, order):
        self.orders.append(order)

    def build_admin_mailto(self, order):
        return "mailto:admin@routeplanner.test?subject={}".format(order.id)


class FailingGateway:
    currency = "CZK"

    def create_payment(self, summary):
        raise RuntimeError("gateway down")

    def get_status(self, payment_id):
        raise RuntimeError("gateway down")

    def verify_callback_signature(self, body, signature):
        return False


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing"""
    app = create_app(TestingConfig)
    services = app.extensions["routeplanner"]
    services["geocoder"] = FakeGeocoder()
    services["route_service"] = FakeRouteService()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def profile_factory(app):
    """Create profiles; returns plain snapshots usable outside the app context."""
    def _create_profile(email, role='user', password='SecurePass123'):
        with app.app_context():
            profile = Profile(email=email, role=role)
            profile.set_password(password)
            db.session.add(profile)
            db.session.commit()
            return SimpleNamespace(id=profile.id, email=profile.email, role=profile.role,
                                   password=password)
    return _create_profile


@pytest.fixture
def test_admin(profile_factory):
    return profile_factory('admin@example.com', role='admin')


@pytest.fixture
def test_user(profile_factory):
    return profile_factory('customer@example.com')


def auth_headers_for(app, profile):
    with app.app_context():
        token = generate_token(profile.id)
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}


@pytest.fixture
def admin_headers(app, test_admin):
    """Generate auth headers with JWT token for the admin"""
    return auth_headers_for(app, test_admin)


@pytest.fixture
def user_headers(app, test_user):
    """Generate auth headers with JWT token for a regular user"""
    return auth_headers_for(app, test_user)


@pytest.fixture
def order_fields():
    """Factory for order payloads accepted by OrderStore.create"""
    def _fields(**overrides):
        fields = {
            'customer_name': 'Jan Novak',
            'customer_email': 'jan@example.com',
            'customer_phone': '+420 123 456 789',
            'pickup_date': '2026-11-02',
            'pickup_time': '09:30',
            'start_address': PRAGUE.display_name,
            'end_address': BRNO.display_name,
            'start_point': [PRAGUE.lat, PRAGUE.lng],
            'end_point': [BRNO.lat, BRNO.lng],
            'distance': 200000,
        }
        fields.update(overrides)
        return fields
    return _fields


@pytest.fixture
def booking_payload():
    """Request body for /api/booking/submit"""
    def _payload(**overrides):
        payload = {
            'start': {'address': PRAGUE.display_name, 'lat': PRAGUE.lat, 'lng': PRAGUE.lng, 'confirmed': True},
            'end': {'address': BRNO.display_name, 'lat': BRNO.lat, 'lng': BRNO.lng, 'confirmed': True},
            'customer_name': 'Jan Novak',
            'customer_email': 'jan@example.com',
            'customer_phone': '+420 123 456 789',
            'pickup_date': '2026-11-02',
            'pickup_time': '09:30',
            'additional_notes': 'Two suitcases',
        }
        payload.update(overrides)
        return payload
    return _payload
