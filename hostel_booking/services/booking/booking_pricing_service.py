# hostel_booking/services/booking/booking_pricing_service.py
"""
Booking pricing calculations.

Pure functions over integer amounts in the smallest currency unit:
the same inputs always price to the same total.
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import TYPE_CHECKING, Union

from hostel_booking.core.exceptions import ValidationError

if TYPE_CHECKING:
    from hostel_booking.models.hostel.hostel import Hostel

Amount = Union[int, Decimal]


@dataclass(frozen=True)
class PricingBreakdown:
    """Priced stay. Per-month components plus the terms of the total."""

    monthly_rent: int
    security_deposit: int
    maintenance_charges: int
    food_monthly_cost: int
    duration_months: int
    rent_total: int
    maintenance_total: int
    food_total: int
    total_amount: int


def _to_units(value: Amount, field: str) -> int:
    """Truncate to whole currency units, rejecting negatives and floats."""
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise ValidationError(f"{field} must be an integer or Decimal amount", field=field)
    if value < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    if isinstance(value, Decimal):
        return int(value.to_integral_value(rounding=ROUND_DOWN))
    return value


def compute_pricing(
    monthly_rent: Amount,
    security_deposit: Amount,
    maintenance_charges: Amount,
    duration: int,
    food_monthly_cost: Amount = 0,
) -> PricingBreakdown:
    """
    Price a stay.

    total = rent * duration + deposit + maintenance * duration + food * duration

    Pass `food_monthly_cost=0` when no food plan is selected.

    Raises:
        ValidationError: On negative components or a duration below one month
    """
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
        raise ValidationError("duration must be at least 1 month", field="duration")

    # Validate every component before multiplying so the error names the input.
    for field, value in (
        ("monthly_rent", monthly_rent),
        ("security_deposit", security_deposit),
        ("maintenance_charges", maintenance_charges),
        ("food_monthly_cost", food_monthly_cost),
    ):
        _to_units(value, field)

    rent_total = _to_units(monthly_rent * duration, "monthly_rent")
    maintenance_total = _to_units(maintenance_charges * duration, "maintenance_charges")
    food_total = _to_units(food_monthly_cost * duration, "food_monthly_cost")
    deposit = _to_units(security_deposit, "security_deposit")

    return PricingBreakdown(
        monthly_rent=_to_units(monthly_rent, "monthly_rent"),
        security_deposit=deposit,
        maintenance_charges=_to_units(maintenance_charges, "maintenance_charges"),
        food_monthly_cost=_to_units(food_monthly_cost, "food_monthly_cost"),
        duration_months=duration,
        rent_total=rent_total,
        maintenance_total=maintenance_total,
        food_total=food_total,
        total_amount=rent_total + deposit + maintenance_total + food_total,
    )


def price_for_hostel(hostel: "Hostel", duration: int, food_selected: bool) -> PricingBreakdown:
    """Price a stay at a hostel's current tariff."""
    return compute_pricing(
        monthly_rent=hostel.monthly_rent,
        security_deposit=hostel.security_deposit,
        maintenance_charges=hostel.maintenance_charges,
        duration=duration,
        food_monthly_cost=hostel.food_cost_for(food_selected),
    )
