"""
Booking API tests: quote and submit
"""
import json
from unittest.mock import MagicMock

import pytest

from models import db, Order


class TestQuote:
    def test_quote_with_coordinates(self, client, booking_payload):
        response = client.post('/api/booking/quote', json=booking_payload())

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['distance'] == 200000.0
        assert data['price'] == 4000
        assert data['currency'] == 'CZK'
        assert data['start']['confirmed'] is True

    def test_quote_geocodes_missing_coordinates(self, client, app):
        response = client.post('/api/booking/quote', json={
            'start': {'address': 'Prague', 'confirmed': True},
            'end': {'address': 'Brno', 'confirmed': True},
        })

        assert response.status_code == 200
        calls = app.extensions['routeplanner']['geocoder'].calls
        assert ('geocode', 'Prague') in calls
        assert ('geocode', 'Brno') in calls

    def test_quote_requires_confirmed_endpoints(self, client, booking_payload, app):
        payload = booking_payload()
        payload['end']['confirmed'] = False

        response = client.post('/api/booking/quote', json=payload)

        assert response.status_code == 400
        assert app.extensions['routeplanner']['route_service'].calls == []

    def test_quote_unknown_address(self, client):
        response = client.post('/api/booking/quote', json={
            'start': {'address': 'Prague', 'confirmed': True},
            'end': {'address': 'Atlantis', 'confirmed': True},
        })
        assert response.status_code == 422


class TestSubmit:
    def test_submit_creates_order(self, client, app, booking_payload):
        response = client.post('/api/booking/submit', json=booking_payload())

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['price'] == 4000
        assert data['payment_url'] == (
            'http://testserver/payment-result?orderId={}&mockPayment=true'.format(data['order_id'])
        )
        with app.app_context():
            order = db.session.get(Order, data['order_id'])
            assert order.customer_email == 'jan@example.com'
            assert order.additional_notes == 'Two suitcases'
            assert order.user_id is None

    def test_submit_as_user_sets_owner(self, client, app, booking_payload, user_headers, test_user):
        response = client.post('/api/booking/submit', json=booking_payload(), headers=user_headers)

        assert response.status_code == 201
        with app.app_context():
            order = db.session.get(Order, json.loads(response.data)['order_id'])
            assert order.user_id == test_user.id

    def test_submit_invalid_details(self, client, app, booking_payload):
        response = client.post('/api/booking/submit', json=booking_payload(customer_phone='abc'))

        assert response.status_code == 400
        data = json.loads(response.data)
        assert 'customer_phone' in data['errors']
        with app.app_context():
            assert Order.query.count() == 0

    def test_submit_unconfirmed_address_never_persists(self, client, app, booking_payload):
        payload = booking_payload()
        payload['start']['confirmed'] = False

        response = client.post('/api/booking/submit', json=payload)

        assert response.status_code == 400
        with app.app_context():
            assert Order.query.count() == 0


class TestSubmitNotifications:
    def test_admin_notified(self, client, booking_payload):
        data = json.loads(client.post('/api/booking/submit', json=booking_payload()).data)
        assert data['admin_notified'] is True
        assert data['admin_mailto'] is None

    def test_undelivered_admin_email_returns_mailto(self, client, app, booking_payload, monkeypatch):
        notifier = app.extensions['routeplanner']['notifier']
        monkeypatch.setattr(notifier, 'send_email_sync', MagicMock(return_value=False))

        response = client.post('/api/booking/submit', json=booking_payload())

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['admin_notified'] is False
        assert data['admin_mailto'].startswith('mailto:admin@routeplanner.test?subject=New%20Order%20Received')
        assert data['order_id'] in data['admin_mailto']


class TestMalformedInput:
    @pytest.mark.parametrize('start', [
        {'address': 123, 'confirmed': True},
        {'address': ['Prague'], 'confirmed': True},
        {'address': 'Prague', 'lat': [1], 'lng': 14.4, 'confirmed': True},
        {'address': 'Prague', 'lat': {'v': 1}, 'lng': 14.4, 'confirmed': True},
        {'address': 'Prague', 'lat': 'north', 'lng': 14.4, 'confirmed': True},
        {'address': 'Prague', 'lat': True, 'lng': 14.4, 'confirmed': True},
        {'address': 'Prague', 'lat': 'nan', 'lng': 14.4, 'confirmed': True},
        {'address': 'Prague', 'lat': 95, 'lng': 14.4, 'confirmed': True},
        {'address': 'Prague', 'lat': 50.0, 'lng': 'inf', 'confirmed': True},
    ])
    def test_bad_start_endpoint_is_400(self, client, app, booking_payload, start):
        response = client.post('/api/booking/quote', json=booking_payload(start=start))

        assert response.status_code == 400
        assert 'error' in json.loads(response.data)
        assert app.extensions['routeplanner']['route_service'].calls == []

    def test_non_object_body_is_400(self, client, app):
        assert client.post('/api/booking/quote', json=['Prague', 'Brno']).status_code == 400
        assert client.post('/api/booking/submit', json='Prague').status_code == 400
        with app.app_context():
            assert Order.query.count() == 0

    def test_non_string_customer_field_is_400(self, client, app, booking_payload):
        response = client.post('/api/booking/submit', json=booking_payload(customer_name=['Jan']))

        assert response.status_code == 400
        assert 'customer_name' in json.loads(response.data)['errors']
        with app.app_context():
            assert Order.query.count() == 0
