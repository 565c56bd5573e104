"""
Pricing and validation tests
"""
import math

import pytest

from pricing import calculate_price, format_distance_km, to_minor_units
from validators import validate_email, validate_phone, validate_booking_form


class TestPricing:
    def test_price_per_km(self):
        assert calculate_price(200000) == 4000

    def test_rounds_half_up(self):
        assert calculate_price(25) == 1       # 0.5 -> 1
        assert calculate_price(75) == 2       # 1.5 -> 2
        assert calculate_price(24) == 0

    def test_zero_distance(self):
        assert calculate_price(0) == 0

    def test_custom_rate(self):
        assert calculate_price(10000, rate_per_km=15.5) == 155

    @pytest.mark.parametrize('distance', [-1, math.nan, 'far', None])
    def test_invalid_distance(self, distance):
        with pytest.raises(ValueError):
            calculate_price(distance)

    def test_minor_units_and_distance_format(self):
        assert to_minor_units(4000) == 400000
        assert format_distance_km(200000) == '200.0'
        assert format_distance_km(12345) == '12.3'


class TestValidators:
    def test_email(self):
        assert validate_email('jan@example.com')
        assert not validate_email('jan@example')
        assert not validate_email('')

    def test_phone(self):
        assert validate_phone('+420 123 456 789')
        assert validate_phone('(555) 123-4567')
        assert not validate_phone('12345')
        assert not validate_phone('phone-number')

    def test_booking_form_collects_errors(self):
        errors = validate_booking_form({'customer_name': '  ', 'customer_email': 'x', 'customer_phone': '123456789'})
        assert set(errors) == {'customer_name', 'customer_email', 'pickup_date', 'pickup_time'}
