from __future__ import annotations

from .base import register
from .definitions import KIND_PROMOTIONAL
from .discounts import StackingDiscountCategory


@register
class PromotionalCategory(StackingDiscountCategory):
    """Time-windowed promotions for one zone or for all zones ("ALL")."""

    kind = KIND_PROMOTIONAL

    def is_eligible(self, rule, ctx, entry_price, now):
        if not self.matches_zone(rule.zone_code, ctx):
            return False
        return super().is_eligible(rule, ctx, entry_price, now)
