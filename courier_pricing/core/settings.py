# courier_pricing/core/settings.py
from decimal import Decimal
from functools import lru_cache
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_seasonal_discounts() -> Dict[str, Decimal]:
    return {
        "black_friday": Decimal("25"),
        "christmas": Decimal("15"),
        "summer": Decimal("10"),
        "winter": Decimal("5"),
        "spring": Decimal("0"),
        "autumn": Decimal("0"),
    }


class PricingSettings(BaseSettings):
    """
    Central pricing configuration.

    Every value can be overridden through the environment with the PRICING_
    prefix, e.g. PRICING_VOLUMETRIC_DIVISOR=6000 for InPost-style parcels.
    Dict values are read as JSON: PRICING_SEASONAL_DISCOUNT_PCT='{"summer": 12}'.
    """

    # Volumetric weight = L x W x H / divisor (cm -> kg)
    volumetric_divisor: int = Field(default=5000, gt=0)

    # Standard parcel envelope; anything larger is oversized
    envelope_max_length_cm: Decimal = Decimal("120")
    envelope_max_width_cm: Decimal = Decimal("80")
    envelope_max_height_cm: Decimal = Decimal("80")

    # Built-in oversize surcharge when no dimension rule matches
    oversize_base_surcharge: Decimal = Decimal("10.00")
    oversize_scale_by_volume: bool = True

    # Built-in seasonal discounts in percent
    seasonal_discount_pct: Dict[str, Decimal] = Field(
        default_factory=_default_seasonal_discounts
    )

    default_rule_priority: int = 100

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_prefix="PRICING_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def envelope_volume_cm3(self) -> Decimal:
        return (
            self.envelope_max_length_cm
            * self.envelope_max_width_cm
            * self.envelope_max_height_cm
        )


@lru_cache
def get_settings() -> PricingSettings:
    return PricingSettings()


settings = get_settings()
