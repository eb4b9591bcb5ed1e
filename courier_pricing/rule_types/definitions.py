# courier_pricing/rule_types/definitions.py
from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, field_validator

# Rule kinds (avoid string typos)
KIND_WEIGHT = "weight"
KIND_DIMENSION = "dimension"
KIND_SEASONAL = "seasonal"
KIND_PROMOTIONAL = "promotional"
KIND_CUSTOMER = "customer"

# Fixed category order of the pricing pipeline
CATEGORY_ORDER: Tuple[str, ...] = (
    KIND_WEIGHT,
    KIND_DIMENSION,
    KIND_SEASONAL,
    KIND_PROMOTIONAL,
    KIND_CUSTOMER,
)

KNOWN_SEASONS = frozenset(
    {"spring", "summer", "autumn", "winter", "christmas", "black_friday"}
)

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED_AMOUNT = "fixed_amount"
DISCOUNT_TIERED = "tiered"
DISCOUNT_FREE_SHIPPING = "free_shipping"
# per-tier adjustments and dimension surcharges
AMOUNT_TYPES = frozenset({DISCOUNT_PERCENTAGE, DISCOUNT_FIXED_AMOUNT})
DISCOUNT_TYPES = AMOUNT_TYPES | {DISCOUNT_TIERED, DISCOUNT_FREE_SHIPPING}

METHOD_FIXED = "fixed"
METHOD_PER_KG = "per_kg"
METHOD_PER_KG_STEP = "per_kg_step"
WEIGHT_METHODS = frozenset({METHOD_FIXED, METHOD_PER_KG, METHOD_PER_KG_STEP})

ALL_ZONES = "ALL"
DEFAULT_PRIORITY = 100


class RuleBase(BaseModel):
    """
    Fields shared by every rule kind.

    Numeric ranges are NOT enforced here: a rule with weight_from=-1 must
    still parse so RuleValidator can report it with its index.
    """

    # ids coming from the database or YAML are often integers
    model_config = ConfigDict(extra="forbid", frozen=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    priority: int = DEFAULT_PRIORITY
    enabled: bool = True
    # Eligibility filters; empty = applies everywhere
    zones: Tuple[str, ...] = ()
    service_types: Tuple[str, ...] = ()

    @property
    def ref(self) -> str:
        return self.id or self.name or getattr(self, "type", "rule")


class WeightRule(RuleBase):
    type: Literal["weight"] = "weight"

    weight_from: Decimal
    weight_to: Optional[Decimal] = None  # None = open-ended bracket

    # Exactly one of price / surcharge
    price: Optional[Decimal] = None
    surcharge: Optional[Decimal] = None

    calculation_method: str = METHOD_FIXED
    price_per_kg: Optional[Decimal] = None
    weight_step: Optional[Decimal] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    def contains(self, weight: Decimal) -> bool:
        if weight < self.weight_from:
            return False
        return self.weight_to is None or weight <= self.weight_to


class DimensionRule(RuleBase):
    type: Literal["dimension"] = "dimension"

    max_length: Decimal
    max_width: Decimal
    max_height: Decimal
    adjustment_type: str = DISCOUNT_FIXED_AMOUNT
    amount: Decimal

    def fits(self, length: Decimal, width: Decimal, height: Decimal) -> bool:
        return (
            length <= self.max_length
            and width <= self.max_width
            and height <= self.max_height
        )


class SeasonalRule(RuleBase):
    type: Literal["seasonal"] = "seasonal"

    season: str
    discount_percent: Decimal


class DiscountTier(BaseModel):
    """One step of a tiered discount; the highest min_value reached wins."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    min_value: Decimal = Decimal("0")
    discount_type: str = DISCOUNT_PERCENTAGE
    discount_value: Decimal


def pick_tier(tiers: Tuple[DiscountTier, ...], order_value: Decimal) -> Optional[DiscountTier]:
    reached = [t for t in tiers if order_value >= t.min_value]
    if not reached:
        return None
    # max() keeps the first of equal min_values
    return max(reached, key=lambda t: t.min_value)


class DiscountRule(RuleBase):
    """
    Shared shape of promotional and customer discounts.

    discount_type:
    - percentage / fixed_amount: discount_value
    - tiered: tier_configuration, evaluated on the price at category entry
    - free_shipping: the whole running price
    """

    discount_type: str = DISCOUNT_PERCENTAGE
    discount_value: Optional[Decimal] = None
    tier_configuration: Tuple[DiscountTier, ...] = ()
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    exclusive: bool = False
    max_discount: Optional[Decimal] = None
    min_order_value: Optional[Decimal] = None

    @field_validator("valid_from", "valid_to", mode="before")
    @classmethod
    def _date_to_datetime(cls, v: Any) -> Any:
        # YAML gives date objects for unquoted 2025-01-01
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v


class PromotionalRule(DiscountRule):
    type: Literal["promotional"] = "promotional"

    zone_code: str = ALL_ZONES


class CustomerRule(DiscountRule):
    type: Literal["customer"] = "customer"

    customer_id: str


RuleDefinition = Union[
    WeightRule, DimensionRule, SeasonalRule, PromotionalRule, CustomerRule
]

RULE_MODELS: Dict[str, Type[RuleBase]] = {
    KIND_WEIGHT: WeightRule,
    KIND_DIMENSION: DimensionRule,
    KIND_SEASONAL: SeasonalRule,
    KIND_PROMOTIONAL: PromotionalRule,
    KIND_CUSTOMER: CustomerRule,
}


class UnknownRuleType(ValueError):
    """Raw rule has no type or a type without a model."""


def rule_kind(rule: Any) -> Optional[str]:
    if isinstance(rule, RuleBase):
        return getattr(rule, "type", None)
    if isinstance(rule, Mapping):
        kind = rule.get("type")
        return str(kind) if kind is not None else None
    return None


def rule_priority(rule: Any, default: int = DEFAULT_PRIORITY) -> int:
    """Priority of a model or raw mapping; missing / non-integer -> default."""
    if isinstance(rule, RuleBase):
        return rule.priority
    if isinstance(rule, Mapping):
        value = rule.get("priority", default)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value
    return default


def coerce_rule(raw: Union[RuleBase, Mapping[str, Any]]) -> RuleDefinition:
    """
    Turn a raw mapping into its typed rule model.
    Raises UnknownRuleType / pydantic.ValidationError (both ValueError).
    """
    if isinstance(raw, RuleBase):
        return raw  # type: ignore[return-value]
    if not isinstance(raw, Mapping):
        raise UnknownRuleType(f"rule must be a mapping, got {type(raw).__name__}")

    kind = rule_kind(raw)
    if kind is None:
        raise UnknownRuleType("missing rule type")
    model = RULE_MODELS.get(kind)
    if model is None:
        raise UnknownRuleType(f"unknown rule type '{kind}'")
    return model.model_validate(dict(raw))  # type: ignore[return-value]
