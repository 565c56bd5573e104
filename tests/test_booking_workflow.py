"""
Booking workflow tests: address confirmation, route, details and payment
"""
import pytest

from booking import BookingWorkflow, BookingStateError, ADDRESSES, ROUTE_READY, PAYMENT, CONFIRMED
from order_store import CreateResult

from conftest import FakeGeocoder, FakeRouteService, PRAGUE, BRNO


class RecordingStore:
    def __init__(self):
        self.created = []

    def create(self, fields):
        self.created.append(fields)
        return CreateResult(order_id='order-1', payment_url='http://pay.example/1')


DETAILS = {
    'customer_name': 'Jan Novak',
    'customer_email': 'jan@example.com',
    'customer_phone': '+420 123 456 789',
    'pickup_date': '2026-11-02',
    'pickup_time': '09:30',
}


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def workflow(store):
    return BookingWorkflow(FakeGeocoder(), FakeRouteService(), store, rate_per_km=20)


def _plan(workflow):
    workflow.select_suggestion('start', PRAGUE)
    workflow.select_suggestion('end', BRNO)
    assert workflow.compute_route()


class TestAddresses:
    def test_search_returns_suggestions(self, workflow):
        assert workflow.search('start', 'Pra') == [PRAGUE]
        assert workflow.start.confirmed is False

    def test_typing_clears_confirmation(self, workflow):
        workflow.select_suggestion('start', PRAGUE)
        workflow.start.type_text('Prague 2')
        assert workflow.start.confirmed is False
        assert workflow.start.point is None

    def test_stale_suggestions_ignored(self, workflow):
        field = workflow.start
        old = field.begin_search('Pra')
        new = field.begin_search('Brn')

        assert field.apply_suggestions(old, [PRAGUE]) is False
        assert field.apply_suggestions(new, [BRNO]) is True
        assert field.suggestions == [BRNO]

    def test_pick_on_map_confirms_endpoint(self, workflow):
        assert workflow.pick_on_map('end', BRNO.lat, BRNO.lng)
        assert workflow.end.confirmed
        assert workflow.end.text == BRNO.display_name

    def test_pick_on_map_without_address_sets_error(self, workflow):
        assert workflow.pick_on_map('end', 0.0, 0.0) is False
        assert workflow.end.confirmed is False
        assert workflow.error

    def test_unknown_endpoint(self, workflow):
        with pytest.raises(ValueError):
            workflow.confirm_address('middle', 'x', 1, 2)


class TestRoute:
    def test_route_requires_confirmed_endpoints(self, workflow):
        workflow.select_suggestion('start', PRAGUE)
        workflow.end.type_text('Brno')

        assert workflow.compute_route() is False
        assert workflow.step == ADDRESSES
        assert workflow.route_service.calls == []

    def test_route_sets_distance_and_price(self, workflow):
        _plan(workflow)
        assert workflow.step == ROUTE_READY
        assert workflow.distance == 200000.0
        assert workflow.price == 4000

    def test_changing_address_invalidates_route(self, workflow):
        _plan(workflow)
        workflow.search('end', 'Pra')
        assert workflow.step == ADDRESSES
        assert workflow.price is None


class TestDetailsAndPayment:
    def test_details_before_route_rejected(self, workflow):
        with pytest.raises(BookingStateError):
            workflow.submit_details(DETAILS)

    def test_invalid_details_report_field_errors(self, workflow):
        _plan(workflow)
        form = dict(DETAILS, customer_email='not-an-email', customer_phone='123')

        assert workflow.submit_details(form) is False
        assert set(workflow.field_errors) == {'customer_email', 'customer_phone'}
        assert workflow.step == ROUTE_READY

    def test_confirm_payment_creates_order(self, workflow, store):
        _plan(workflow)
        assert workflow.submit_details(DETAILS)
        assert workflow.step == PAYMENT

        url = workflow.confirm_payment()

        assert url == 'http://pay.example/1'
        assert workflow.step == CONFIRMED
        created = store.created[0]
        assert created['start_point'] == [PRAGUE.lat, PRAGUE.lng]
        assert created['distance'] == 200000.0
        assert created['price'] == 4000
        assert created['additional_notes'] is None

    def test_confirm_payment_requires_details(self, workflow, store):
        _plan(workflow)
        with pytest.raises(BookingStateError):
            workflow.confirm_payment()
        assert store.created == []

    def test_back_to_details(self, workflow):
        _plan(workflow)
        workflow.submit_details(DETAILS)
        workflow.back_to_details()
        assert workflow.step == ROUTE_READY


class TestSteps:
    def test_details_collected_on_route_ready(self, workflow):
        steps = [workflow.step]
        _plan(workflow)
        steps.append(workflow.step)
        workflow.submit_details(DETAILS)
        steps.append(workflow.step)
        workflow.confirm_payment()
        steps.append(workflow.step)

        assert steps == [ADDRESSES, ROUTE_READY, PAYMENT, CONFIRMED]
