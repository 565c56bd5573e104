"""
Distance-based pricing for planned routes.

A route costs a fixed rate per kilometer, rounded half-up to whole
currency units.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

DEFAULT_RATE_PER_KM = 20


def calculate_price(distance_m, rate_per_km=DEFAULT_RATE_PER_KM):
    """Return the price in whole currency units for a route of ``distance_m`` meters.

    Raises ValueError for negative or non-numeric distances.
    """
    try:
        distance = Decimal(str(distance_m))
        rate = Decimal(str(rate_per_km))
    except (InvalidOperation, TypeError):
        raise ValueError("distance must be a number")
    if not distance.is_finite() or distance < 0:
        raise ValueError("distance must be a non-negative number")

    price = (distance / Decimal(1000)) * rate
    return int(price.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_minor_units(price):
    """Amount in cents as the payment gateway expects it."""
    return int(price) * 100


def format_distance_km(distance_m):
    """One-decimal kilometers, e.g. 200000 -> '200.0'."""
    km = (Decimal(str(distance_m or 0)) / Decimal(1000)).quantize(
        Decimal("0.1"), rounding=ROUND_HALF_UP
    )
    return str(km)
