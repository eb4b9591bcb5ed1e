from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

D = Decimal

DEFAULT_VOLUMETRIC_DIVISOR = 5000

# Standard parcel envelope (cm)
STANDARD_MAX_LENGTH = D("120")
STANDARD_MAX_WIDTH = D("80")
STANDARD_MAX_HEIGHT = D("80")


def to_decimal(value: Any) -> D:
    """Convert via str() so floats keep the value the caller typed (0.1 -> 0.1)."""
    if isinstance(value, D):
        return value
    return D(str(value))


def calculate_volumetric_weight(
    length_cm: Any,
    width_cm: Any,
    height_cm: Any,
    divisor: int = DEFAULT_VOLUMETRIC_DIVISOR,
) -> D:
    """
    Volumetric weight in kg: (L x W x H) / divisor.
    Exact Decimal quotient; rounding is left to the caller.
    """
    if divisor is None or to_decimal(divisor) <= 0:
        raise ValueError(f"volumetric divisor must be > 0, got {divisor!r}")
    volume = to_decimal(length_cm) * to_decimal(width_cm) * to_decimal(height_cm)
    return volume / to_decimal(divisor)


def season_for_date(day: date) -> str:
    """
    Map a calendar date to a seasonal period name.

    20 Nov - 7 Jan is the christmas period; otherwise meteorological seasons.
    black_friday is never derived from a date, callers set it explicitly.
    """
    if isinstance(day, datetime):
        day = day.date()

    month, dom = day.month, day.day
    if (month == 11 and dom >= 20) or month == 12 or (month == 1 and dom <= 7):
        return "christmas"
    if month in (1, 2):
        return "winter"
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    return "autumn"


@dataclass(frozen=True)
class CustomerRef:
    """Customer identity as seen by the pricing engine (lookup key only)."""

    id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class RuleContext:
    """
    Immutable snapshot of one shipment being priced.

    Built once per pricing request; the engine never mutates it.
    Derived quantities (volumetric / chargeable weight, oversize) are methods,
    not stored fields.
    """

    weight_kg: D
    length_cm: D
    width_cm: D
    height_cm: D
    service_type: str
    zone_code: str
    base_price: D
    customer: Optional[CustomerRef] = None
    seasonal_period: Optional[str] = None
    # Instant used for validity windows; None -> current UTC time
    calculation_date: Optional[datetime] = None

    @classmethod
    def from_shipment_data(
        cls,
        weight_kg: Any,
        length_cm: Any,
        width_cm: Any,
        height_cm: Any,
        service_type: str,
        zone_code: str,
        base_price: Any,
        customer: Optional[CustomerRef] = None,
        seasonal_period: Optional[str] = None,
        calculation_date: Optional[datetime] = None,
    ) -> "RuleContext":
        # No validation here: bad input surfaces arithmetically downstream.
        return cls(
            weight_kg=to_decimal(weight_kg),
            length_cm=to_decimal(length_cm),
            width_cm=to_decimal(width_cm),
            height_cm=to_decimal(height_cm),
            service_type=str(service_type),
            zone_code=str(zone_code),
            base_price=to_decimal(base_price),
            customer=customer,
            seasonal_period=seasonal_period,
            calculation_date=calculation_date,
        )

    @property
    def customer_id(self) -> Optional[str]:
        return self.customer.id if self.customer is not None else None

    def volume_cm3(self) -> D:
        return self.length_cm * self.width_cm * self.height_cm

    def volumetric_weight(self, divisor: int = DEFAULT_VOLUMETRIC_DIVISOR) -> D:
        return calculate_volumetric_weight(
            self.length_cm, self.width_cm, self.height_cm, divisor
        )

    def chargeable_weight(self, divisor: int = DEFAULT_VOLUMETRIC_DIVISOR) -> D:
        return max(self.weight_kg, self.volumetric_weight(divisor))

    def is_oversized(
        self,
        max_length: Any = STANDARD_MAX_LENGTH,
        max_width: Any = STANDARD_MAX_WIDTH,
        max_height: Any = STANDARD_MAX_HEIGHT,
    ) -> bool:
        return (
            self.length_cm > to_decimal(max_length)
            or self.width_cm > to_decimal(max_width)
            or self.height_cm > to_decimal(max_height)
        )
