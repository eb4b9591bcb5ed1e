from __future__ import annotations

from decimal import Decimal

from .base import CategoryRule, first_or_none, percent_of, register
from .definitions import KIND_SEASONAL

D = Decimal


@register
class SeasonalCategory(CategoryRule):
    kind = KIND_SEASONAL

    def apply(self, rules, ctx, previous):
        period = ctx.seasonal_period
        if not period:
            return previous

        explicit = first_or_none(
            [r for r in self.candidates(rules, ctx) if r.season == period]
        )
        if explicit is not None:
            pct = explicit.discount_percent
            rule_id = explicit.ref
        else:
            pct = self.settings.seasonal_discount_pct.get(period)
            rule_id = f"default_{period}"

        # unknown period or 0% -> nothing to record
        if pct is None or pct <= 0:
            return previous

        discount = min(percent_of(previous.final_price, pct), previous.final_price)
        if discount <= 0:
            return previous

        return previous.with_adjustment(
            rule_type=self.kind,
            rule_id=rule_id,
            description=f"{period} discount {pct}%",
            new_price=previous.final_price - discount,
        )
