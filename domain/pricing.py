"""Pricing Calculator

Nights and totals are derived on calendar days only. A stay from the 1st to the
3rd is two nights no matter what time of day either end was recorded at.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from domain.errors import ValidationError

CENTS = Decimal("0.01")

DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
    """Drop the time-of-day part of a datetime"""
    if isinstance(value, datetime):
        return value.date()
    return value


def calculate_nights(check_in: DateLike, check_out: DateLike) -> int:
    """Number of nights between two dates, at least one"""
    nights = (as_date(check_out) - as_date(check_in)).days
    if nights < 1:
        raise ValidationError(
            "Check-out date must be after check-in date",
            details={"check_in_date": str(as_date(check_in)), "check_out_date": str(as_date(check_out))},
        )
    return nights


def calculate_total(nights: int, rate: Decimal) -> Decimal:
    """Total amount for a stay at a nightly rate"""
    return (Decimal(nights) * Decimal(rate)).quantize(CENTS, rounding=ROUND_HALF_UP)
