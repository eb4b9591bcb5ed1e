from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

D = Decimal

MONEY_Q = D("0.01")
WEIGHT_Q = D("0.001")
ZERO = D("0.00")


def q_money(x: D) -> D:
    return D(x).quantize(MONEY_Q)


@dataclass(frozen=True)
class AppliedRule:
    """
    Audit entry for one applied rule.
    - delta: signed price change caused by the rule (negative = discount)
    """

    rule_type: str
    rule_id: str
    description: str
    delta: D = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.rule_type,
            "ruleId": self.rule_id,
            "description": self.description,
            "delta": str(q_money(self.delta)),
        }


@dataclass(frozen=True)
class RuleResult:
    """
    Immutable pricing outcome, threaded through every rule category.

    Each step returns a new instance (dataclasses.replace); nothing is
    mutated in place. finalized() produces the value handed to callers.
    """

    original_price: D
    final_price: D
    total_discount: D = ZERO
    applied_rules: Tuple[AppliedRule, ...] = field(default_factory=tuple)
    errors: Tuple[str, ...] = field(default_factory=tuple)
    volumetric_weight: Optional[D] = None
    chargeable_weight: Optional[D] = None

    @staticmethod
    def start(price: D) -> "RuleResult":
        return RuleResult(original_price=price, final_price=price)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def with_adjustment(
        self,
        *,
        rule_type: str,
        rule_id: str,
        description: str,
        new_price: D,
    ) -> "RuleResult":
        """
        Move the running price to new_price and record the rule.
        A reduction counts towards total_discount; an increase does not.
        """
        delta = new_price - self.final_price
        discount = -delta if delta < 0 else ZERO
        entry = AppliedRule(
            rule_type=rule_type, rule_id=rule_id, description=description, delta=delta
        )
        return replace(
            self,
            final_price=new_price,
            total_discount=self.total_discount + discount,
            applied_rules=self.applied_rules + (entry,),
        )

    def with_errors(self, errors: Iterable[str]) -> "RuleResult":
        extra = tuple(errors)
        if not extra:
            return self
        return replace(self, errors=self.errors + extra)

    def with_weights(self, volumetric: D, chargeable: D) -> "RuleResult":
        return replace(self, volumetric_weight=volumetric, chargeable_weight=chargeable)

    def finalized(self) -> "RuleResult":
        final_price = self.final_price if self.final_price > 0 else ZERO
        return replace(
            self,
            original_price=q_money(self.original_price),
            final_price=q_money(final_price),
            total_discount=q_money(max(self.total_discount, ZERO)),
        )

    # -----------------
    # read helpers
    # -----------------

    def has_discounts(self) -> bool:
        return self.total_discount > 0

    def has_rule_type(self, rule_type: str) -> bool:
        return any(r.rule_type == rule_type for r in self.applied_rules)

    def discount_percentage(self) -> D:
        """Total discount as a percentage of the original price (2dp)."""
        if self.original_price <= 0:
            return ZERO
        return q_money(self.total_discount / self.original_price * D("100"))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "originalPrice": str(q_money(self.original_price)),
            "finalPrice": str(q_money(self.final_price)),
            "totalDiscount": str(q_money(self.total_discount)),
            "discountPercentage": str(self.discount_percentage()),
            "appliedRules": [r.to_dict() for r in self.applied_rules],
            "hasErrors": self.has_errors,
            "errors": list(self.errors),
        }
        if self.volumetric_weight is not None:
            out["volumetricWeight"] = str(self.volumetric_weight.quantize(WEIGHT_Q))
        if self.chargeable_weight is not None:
            out["chargeableWeight"] = str(self.chargeable_weight.quantize(WEIGHT_Q))
        return out
