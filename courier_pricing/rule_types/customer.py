from __future__ import annotations

from .base import register
from .definitions import KIND_CUSTOMER
from .discounts import StackingDiscountCategory


@register
class CustomerCategory(StackingDiscountCategory):
    """Negotiated discounts scoped to the customer on the context."""

    kind = KIND_CUSTOMER

    def is_eligible(self, rule, ctx, entry_price, now):
        # no customer on the context -> customer rules never apply
        if ctx.customer_id is None or str(rule.customer_id) != str(ctx.customer_id):
            return False
        return super().is_eligible(rule, ctx, entry_price, now)
