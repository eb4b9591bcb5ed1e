from __future__ import annotations

from decimal import Decimal, ROUND_CEILING

from .base import CategoryRule, first_or_none, register
from .definitions import (
    KIND_WEIGHT,
    METHOD_PER_KG,
    METHOD_PER_KG_STEP,
    WeightRule,
)

D = Decimal


def bracket_price(rule: WeightRule, weight: D) -> D:
    """
    Absolute price of a bracket for the given chargeable weight.

    fixed:       price
    per_kg:      price + (weight - weight_from) * price_per_kg
    per_kg_step: price + ceil((weight - weight_from) / step) * price_per_kg * step
    Clamped to [min_price, max_price] when set.
    """
    price = rule.price if rule.price is not None else D("0")
    excess = max(D("0"), weight - rule.weight_from)
    per_kg = rule.price_per_kg or D("0")

    if rule.calculation_method == METHOD_PER_KG:
        price = price + excess * per_kg
    elif rule.calculation_method == METHOD_PER_KG_STEP:
        step = rule.weight_step if rule.weight_step and rule.weight_step > 0 else D("1")
        steps = (excess / step).to_integral_value(rounding=ROUND_CEILING)
        price = price + steps * per_kg * step

    if rule.min_price is not None and price < rule.min_price:
        price = rule.min_price
    if rule.max_price is not None and price > rule.max_price:
        price = rule.max_price
    return price


@register
class WeightCategory(CategoryRule):
    """
    Single bracket selection on chargeable weight.
    Lowest priority wins among matching brackets; price replaces, surcharge adds.
    """

    kind = KIND_WEIGHT

    def apply(self, rules, ctx, previous):
        weight = ctx.chargeable_weight(self.settings.volumetric_divisor)
        matching = [r for r in self.candidates(rules, ctx) if r.contains(weight)]
        rule = first_or_none(matching)
        if rule is None:
            return previous

        if rule.price is not None:
            new_price = bracket_price(rule, weight)
            description = f"weight {weight} kg: price set to {new_price}"
        else:
            surcharge = rule.surcharge or D("0")
            new_price = previous.final_price + surcharge
            description = f"weight {weight} kg: surcharge {surcharge}"

        return previous.with_adjustment(
            rule_type=self.kind,
            rule_id=rule.ref,
            description=description,
            new_price=new_price,
        )
