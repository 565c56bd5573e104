"""
Booking workflow.

Walks a customer through the planner form:

    ADDRESSES -> ROUTE_READY -> PAYMENT -> CONFIRMED

Both endpoints must be *confirmed* (picked from a suggestion or on the map)
before a route is computed, and an order is only persisted from the
PAYMENT step.
"""

import logging

from geocoding import GeocodingError
from routing import RoutingError
from pricing import calculate_price, DEFAULT_RATE_PER_KM
from validators import validate_booking_form

logger = logging.getLogger(__name__)

ADDRESSES = "addresses"
ROUTE_READY = "route_ready"
PAYMENT = "payment"
CONFIRMED = "confirmed"


class BookingStateError(Exception):
    """An action was attempted from the wrong step."""


class AddressField:
    """One endpoint of the route: free text plus an optional confirmed point."""

    def __init__(self):
        self.text = ""
        self.point = None
        self.confirmed = False
        self.suggestions = []
        self._search_seq = 0

    def type_text(self, text):
        # Typing invalidates any earlier selection
        self.text = text
        self.point = None
        self.confirmed = False

    def begin_search(self, text):
        """Start a suggestion lookup and return its sequence token."""
        self.type_text(text)
        self._search_seq += 1
        return self._search_seq

    def apply_suggestions(self, token, results):
        """Keep ``results`` only if they answer the latest search."""
        if token != self._search_seq:
            return False
        self.suggestions = list(results)
        return True

    def select_suggestion(self, result):
        self.text = result.display_name
        self.point = (result.lat, result.lng)
        self.confirmed = True
        self.suggestions = []

    def confirm(self, address, lat, lng):
        self.text = address
        self.point = (float(lat), float(lng))
        self.confirmed = True
        self.suggestions = []

    def to_dict(self):
        return {
            "address": self.text,
            "point": list(self.point) if self.point else None,
            "confirmed": self.confirmed,
        }


class BookingWorkflow:
    def __init__(self, geocoder, route_service, store, rate_per_km=DEFAULT_RATE_PER_KM):
        self.geocoder = geocoder
        self.route_service = route_service
        self.store = store
        self.rate_per_km = rate_per_km
        self.reset()

    def reset(self):
        self.step = ADDRESSES
        self.start = AddressField()
        self.end = AddressField()
        self.distance = None
        self.duration = None
        self.price = None
        self.details = None
        self.error = None
        self.field_errors = {}
        self.result = None

    def _field(self, which):
        if which == "start":
            return self.start
        if which == "end":
            return self.end
        raise ValueError("Unknown endpoint: {}".format(which))

    def _invalidate_route(self):
        if self.step in (ROUTE_READY, PAYMENT):
            self.step = ADDRESSES
        self.distance = self.duration = self.price = None

    # -----------------------------------------------------------------------
    # Address entry
    # -----------------------------------------------------------------------
    def search(self, which, text):
        """Look up suggestions for one endpoint."""
        field = self._field(which)
        self._invalidate_route()
        token = field.begin_search(text)
        try:
            results = self.geocoder.search(text)
        except GeocodingError as e:
            logger.info("Suggestion lookup failed: %s", e)
            results = []
        field.apply_suggestions(token, results)
        return field.suggestions

    def select_suggestion(self, which, result):
        self._invalidate_route()
        self._field(which).select_suggestion(result)

    def confirm_address(self, which, address, lat, lng):
        self._invalidate_route()
        self._field(which).confirm(address, lat, lng)

    def pick_on_map(self, which, lat, lng):
        """Confirm an endpoint from a map click via reverse geocoding."""
        self._invalidate_route()
        try:
            result = self.geocoder.reverse(lat, lng)
        except GeocodingError as e:
            self.error = str(e)
            return False
        self._field(which).confirm(result.display_name, lat, lng)
        self.error = None
        return True

    # -----------------------------------------------------------------------
    # Route
    # -----------------------------------------------------------------------
    def compute_route(self):
        if not (self.start.confirmed and self.end.confirmed):
            self.error = "Select both the start and end address before planning the route"
            return False

        try:
            route = self.route_service.route_distance(self.start.point, self.end.point)
        except (RoutingError, GeocodingError) as e:
            self.error = str(e)
            self.step = ADDRESSES
            return False

        self.distance = route.distance_m
        self.duration = route.duration_s
        self.price = calculate_price(self.distance, self.rate_per_km)
        self.error = None
        self.step = ROUTE_READY
        return True

    # -----------------------------------------------------------------------
    # Customer details
    # -----------------------------------------------------------------------
    def submit_details(self, form):
        if self.step not in (ROUTE_READY, PAYMENT):
            raise BookingStateError("Plan the route before entering customer details")

        self.field_errors = validate_booking_form(form)
        if self.field_errors:
            return False

        self.details = {
            "customer_name": form["customer_name"].strip(),
            "customer_email": form["customer_email"].strip(),
            "customer_phone": form["customer_phone"].strip(),
            "pickup_date": form["pickup_date"].strip(),
            "pickup_time": form["pickup_time"].strip(),
            "additional_notes": (form.get("additional_notes") or "").strip() or None,
        }
        self.step = PAYMENT
        return True

    def back_to_details(self):
        if self.step == PAYMENT:
            self.step = ROUTE_READY

    def summary(self):
        """Order summary shown on the payment confirmation step."""
        data = dict(self.details or {})
        data.update({
            "start_address": self.start.text,
            "end_address": self.end.text,
            "start_point": list(self.start.point) if self.start.point else None,
            "end_point": list(self.end.point) if self.end.point else None,
            "distance": self.distance,
            "price": self.price,
        })
        return data

    # -----------------------------------------------------------------------
    # Payment
    # -----------------------------------------------------------------------
    def confirm_payment(self):
        """Create the order and return the payment redirect URL."""
        if self.step != PAYMENT:
            raise BookingStateError("Customer details must be submitted first")
        if not (self.start.confirmed and self.end.confirmed):
            raise BookingStateError("Both addresses must be confirmed")

        self.result = self.store.create(self.summary())
        self.step = CONFIRMED
        return self.result.payment_url

    def to_dict(self):
        return {
            "step": self.step,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "distance": self.distance,
            "duration": self.duration,
            "price": self.price,
            "error": self.error,
            "errors": self.field_errors,
        }
