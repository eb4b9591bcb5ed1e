from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from .base import CategoryRule, percent_of
from .definitions import (
    ALL_ZONES,
    DISCOUNT_FIXED_AMOUNT,
    DISCOUNT_FREE_SHIPPING,
    DISCOUNT_PERCENTAGE,
    DISCOUNT_TIERED,
    DiscountRule,
    pick_tier,
)

D = Decimal


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def in_window(rule: DiscountRule, now: datetime) -> bool:
    now = as_utc(now)
    if rule.valid_from is not None and now < as_utc(rule.valid_from):
        return False
    if rule.valid_to is not None and now > as_utc(rule.valid_to):
        return False
    return True


class StackingDiscountCategory(CategoryRule):
    """
    Additive discount stacking shared by promotional and customer rules.

    - eligible rules are applied in priority order
    - percentages are taken from the price at category entry (no compounding)
    - each contribution is capped by max_discount, then by the remaining price
    - an applied exclusive rule ends the category
    """

    def is_eligible(self, rule: DiscountRule, ctx, entry_price: D, now: datetime) -> bool:
        if not in_window(rule, now):
            return False
        if rule.min_order_value is not None and entry_price < rule.min_order_value:
            return False
        return True

    def amount_for(self, rule: DiscountRule, entry_price: D) -> D:
        kind, value = rule.discount_type, rule.discount_value or D("0")
        if kind == DISCOUNT_TIERED:
            tier = pick_tier(rule.tier_configuration, entry_price)
            if tier is None:
                return D("0")
            kind, value = tier.discount_type, tier.discount_value

        if kind == DISCOUNT_PERCENTAGE:
            amount = percent_of(entry_price, value)
        elif kind == DISCOUNT_FIXED_AMOUNT:
            amount = value
        elif kind == DISCOUNT_FREE_SHIPPING:
            amount = entry_price
        else:
            amount = D("0")
        if rule.max_discount is not None and amount > rule.max_discount:
            amount = rule.max_discount
        return max(amount, D("0"))

    def describe(self, rule: DiscountRule, amount: D) -> str:
        label = rule.name or self.kind
        if rule.discount_type == DISCOUNT_PERCENTAGE:
            return f"{label}: -{rule.discount_value}%"
        if rule.discount_type == DISCOUNT_FREE_SHIPPING:
            return f"{label}: free shipping"
        if rule.discount_type == DISCOUNT_TIERED:
            return f"{label}: tiered -{amount.quantize(D('0.01'))}"
        return f"{label}: -{rule.discount_value}"

    def apply(self, rules, ctx, previous):
        now = ctx.calculation_date or datetime.now(timezone.utc)
        entry_price = previous.final_price

        eligible: List[DiscountRule] = [
            r for r in self.candidates(rules, ctx) if self.is_eligible(r, ctx, entry_price, now)
        ]

        result = previous
        for rule in eligible:
            remaining = max(result.final_price, D("0"))
            amount = min(self.amount_for(rule, entry_price), remaining)
            if amount > 0:
                result = result.with_adjustment(
                    rule_type=self.kind,
                    rule_id=rule.ref,
                    description=self.describe(rule, amount),
                    new_price=result.final_price - amount,
                )
            if rule.exclusive:
                break
        return result

    @staticmethod
    def matches_zone(zone_code: Optional[str], ctx) -> bool:
        return zone_code is None or zone_code in (ALL_ZONES, ctx.zone_code)
