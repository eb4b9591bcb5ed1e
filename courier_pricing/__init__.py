"""
courier_pricing: shipment pricing rule engine.

Composes weight brackets, oversize surcharges, seasonal promotions, zone
promotions and customer-specific overrides into a final shipment price.
"""
from .engine.context import CustomerRef, RuleContext, calculate_volumetric_weight
from .engine.result import AppliedRule, RuleResult
from .engine.rule_engine import PricingRuleEngine
from .data_validators.rule_validator import RuleValidator

__version__ = "0.1.0"

__all__ = [
    "AppliedRule",
    "CustomerRef",
    "PricingRuleEngine",
    "RuleContext",
    "RuleResult",
    "RuleValidator",
    "calculate_volumetric_weight",
]
