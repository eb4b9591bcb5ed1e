from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Type, TYPE_CHECKING

from .definitions import RuleBase

D = Decimal

if TYPE_CHECKING:
    from ..core.settings import PricingSettings
    from ..engine.context import RuleContext
    from ..engine.result import RuleResult


def in_scope(rule: RuleBase, ctx: "RuleContext") -> bool:
    """Enabled and not filtered out by zones / service_types."""
    if not rule.enabled:
        return False
    if rule.zones and ctx.zone_code not in rule.zones:
        return False
    if rule.service_types and ctx.service_type not in rule.service_types:
        return False
    return True


def by_priority(rules: Iterable[RuleBase]) -> List[RuleBase]:
    # sorted() is stable: equal priorities keep catalog order
    return sorted(rules, key=lambda r: r.priority)


class CategoryRule:
    """
    Base class for one pricing category (weight, dimension, ...).

    apply(rules, ctx, previous) takes the running RuleResult and returns a
    new one. Subclasses only see rules of their own kind via candidates().
    """

    kind: str = "base"

    def __init__(self, settings: "PricingSettings"):
        self.settings = settings

    def candidates(self, rules: Iterable[Any], ctx: "RuleContext") -> List[RuleBase]:
        own = [
            r
            for r in rules
            if isinstance(r, RuleBase)
            and getattr(r, "type", None) == self.kind
            and in_scope(r, ctx)
        ]
        return by_priority(own)

    def apply(
        self,
        rules: Iterable[Any],
        ctx: "RuleContext",
        previous: "RuleResult",
    ) -> "RuleResult":
        raise NotImplementedError


# Registry: rule kind -> category class
category_registry: Dict[str, Type[CategoryRule]] = {}


def register(rule_cls: Type[CategoryRule]) -> Type[CategoryRule]:
    """
    Decorator to register a category by its kind.
    Fails fast on duplicate registrations.
    """
    key = getattr(rule_cls, "kind", None)
    if not key or key == "base":
        raise ValueError(f"Category class {rule_cls.__name__} has no kind")

    if key in category_registry and category_registry[key] is not rule_cls:
        raise ValueError(
            f"Duplicate category registration for kind '{key}': "
            f"{category_registry[key].__name__} vs {rule_cls.__name__}"
        )

    category_registry[key] = rule_cls
    return rule_cls


def percent_of(amount: D, pct: D) -> D:
    return amount * pct / D("100")


def first_or_none(items: List[RuleBase]) -> Optional[RuleBase]:
    return items[0] if items else None
