from __future__ import annotations

from decimal import Decimal

from .base import CategoryRule, first_or_none, percent_of, register
from .definitions import DISCOUNT_PERCENTAGE, KIND_DIMENSION

D = Decimal

DEFAULT_OVERSIZE_RULE_ID = "default_oversize"


@register
class DimensionCategory(CategoryRule):
    """
    Oversize surcharge. No-op for parcels inside the standard envelope.

    An explicit dimension rule whose max dimensions contain the parcel wins
    (lowest priority first); otherwise the configured default surcharge,
    scaled by how far the volume exceeds the envelope volume.
    """

    kind = KIND_DIMENSION

    def apply(self, rules, ctx, previous):
        s = self.settings
        if not ctx.is_oversized(
            s.envelope_max_length_cm, s.envelope_max_width_cm, s.envelope_max_height_cm
        ):
            return previous

        matching = [
            r
            for r in self.candidates(rules, ctx)
            if r.fits(ctx.length_cm, ctx.width_cm, ctx.height_cm)
        ]
        rule = first_or_none(matching)

        if rule is not None:
            if rule.adjustment_type == DISCOUNT_PERCENTAGE:
                surcharge = percent_of(previous.final_price, rule.amount)
                description = f"oversize surcharge {rule.amount}%"
            else:
                surcharge = rule.amount
                description = f"oversize surcharge {rule.amount}"
            rule_id = rule.ref
        else:
            surcharge = self.default_surcharge(ctx.volume_cm3())
            description = f"default oversize surcharge {surcharge.quantize(D('0.01'))}"
            rule_id = DEFAULT_OVERSIZE_RULE_ID

        return previous.with_adjustment(
            rule_type=self.kind,
            rule_id=rule_id,
            description=description,
            new_price=previous.final_price + surcharge,
        )

    def default_surcharge(self, volume: D) -> D:
        base = self.settings.oversize_base_surcharge
        standard = self.settings.envelope_volume_cm3
        if self.settings.oversize_scale_by_volume and standard > 0 and volume > standard:
            return base + base * (volume / standard - D("1"))
        return base
