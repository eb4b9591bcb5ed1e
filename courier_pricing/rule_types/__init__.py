# Ensure registration happens by importing modules
from .base import CategoryRule, category_registry  # noqa
from .definitions import (  # noqa
    CATEGORY_ORDER,
    CustomerRule,
    DimensionRule,
    PromotionalRule,
    RuleDefinition,
    SeasonalRule,
    WeightRule,
    DiscountTier,
    UnknownRuleType,
    coerce_rule,
)
from . import (  # noqa
    weight,
    dimension,
    seasonal,
    promotional,
    customer,
)

_missing = [k for k in CATEGORY_ORDER if k not in category_registry]
if _missing:
    raise RuntimeError(f"No category registered for rule kind(s): {_missing}")
