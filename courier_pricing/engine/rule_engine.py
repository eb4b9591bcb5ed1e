from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple

from ..catalogs.base import CustomerPricingCatalog, PromotionalCatalog, RuleCatalog
from ..core.logging_config import get_logger
from ..core.settings import PricingSettings, get_settings
from ..data_validators.rule_validator import RuleValidator
from ..rule_types import category_registry
from ..rule_types.definitions import (
    CATEGORY_ORDER,
    KIND_CUSTOMER,
    KIND_DIMENSION,
    KIND_PROMOTIONAL,
    KIND_SEASONAL,
    KIND_WEIGHT,
    KNOWN_SEASONS,
    RuleDefinition,
    coerce_rule,
    rule_priority,
)
from .context import RuleContext, calculate_volumetric_weight
from .result import RuleResult

D = Decimal

log = get_logger(__name__)


class PricingRuleEngine:
    """
    Shipment pricing pipeline.

    apply_rules(context):
      fetch (catalog, promotions, customer overrides)
      -> validate (errors recorded, invalid rules dropped, never raises)
      -> weight -> dimension -> seasonal -> promotional -> customer
      -> finalize (final_price >= 0, money quantized to 0.01)

    Stateless apart from its collaborators; safe for concurrent calls as long
    as the rule sources are.
    """

    def __init__(
        self,
        rule_catalog: RuleCatalog,
        promotional_catalog: PromotionalCatalog,
        customer_catalog: CustomerPricingCatalog,
        validator: Optional[RuleValidator] = None,
        settings: Optional[PricingSettings] = None,
    ):
        self.rule_catalog = rule_catalog
        self.promotional_catalog = promotional_catalog
        self.customer_catalog = customer_catalog
        self.settings = settings or get_settings()
        self.validator = validator or RuleValidator(
            known_seasons=KNOWN_SEASONS | set(self.settings.seasonal_discount_pct)
        )
        self._categories = {
            kind: category_registry[kind](self.settings) for kind in CATEGORY_ORDER
        }

    # -----------------
    # public API
    # -----------------

    def apply_rules(self, context: RuleContext) -> RuleResult:
        rules = list(
            self.rule_catalog.get_rules_for_context(context.zone_code, context.service_type)
            or []
        )
        promotions = list(
            self.promotional_catalog.find_active_promotions(context.zone_code) or []
        )
        customer_rules: List[Any] = []
        if context.customer is not None:
            customer_rules = list(
                self.customer_catalog.find_active_for_customer(context.customer) or []
            )

        log.debug(
            "pricing.rules_fetched",
            zone=context.zone_code,
            service_type=context.service_type,
            rules=len(rules),
            promotions=len(promotions),
            customer_rules=len(customer_rules),
        )

        typed, errors = self._usable(rules + promotions + customer_rules)
        if errors:
            log.warning(
                "pricing.invalid_rules",
                zone=context.zone_code,
                count=len(errors),
                errors=errors,
            )

        result = self._start(context).with_errors(errors)
        for kind in CATEGORY_ORDER:
            before = len(result.applied_rules)
            result = self._categories[kind].apply(typed, context, result)
            for applied in result.applied_rules[before:]:
                log.debug(
                    "pricing.rule_applied",
                    rule_type=applied.rule_type,
                    rule_id=applied.rule_id,
                    delta=str(applied.delta),
                    description=applied.description,
                )

        result = result.finalized()
        log.info(
            "pricing.calculated",
            zone=context.zone_code,
            service_type=context.service_type,
            original_price=str(result.original_price),
            final_price=str(result.final_price),
            total_discount=str(result.total_discount),
            applied=[r.rule_id for r in result.applied_rules],
            has_errors=result.has_errors,
        )
        return result

    def apply_weight_rules(self, rules, context, previous=None) -> RuleResult:
        return self._apply_category(KIND_WEIGHT, rules, context, previous)

    def apply_dimension_rules(self, rules, context, previous=None) -> RuleResult:
        return self._apply_category(KIND_DIMENSION, rules, context, previous)

    def apply_seasonal_rules(self, rules, context, previous=None) -> RuleResult:
        return self._apply_category(KIND_SEASONAL, rules, context, previous)

    def apply_promotional_rules(self, rules, context, previous=None) -> RuleResult:
        return self._apply_category(KIND_PROMOTIONAL, rules, context, previous)

    def apply_customer_rules(self, rules, context, previous=None) -> RuleResult:
        return self._apply_category(KIND_CUSTOMER, rules, context, previous)

    def calculate_volumetric_weight(
        self, length_cm: Any, width_cm: Any, height_cm: Any, divisor: Optional[int] = None
    ) -> D:
        if divisor is None:
            divisor = self.settings.volumetric_divisor
        return calculate_volumetric_weight(length_cm, width_cm, height_cm, divisor)

    def calculate_discount(self, context: RuleContext) -> D:
        return self.apply_rules(context).total_discount.quantize(D("0.01"))

    def validate_rules(self, rules: Iterable[Any]) -> bool:
        return not self.validator.validate_rules(list(rules or []))

    def get_priority_rules(self, rules: Iterable[Any]) -> List[Any]:
        default = self.settings.default_rule_priority
        # sorted() is stable: equal priorities keep input order
        return sorted(rules or [], key=lambda r: rule_priority(r, default))

    # -----------------
    # internals
    # -----------------

    def _start(self, context: RuleContext) -> RuleResult:
        divisor = self.settings.volumetric_divisor
        return RuleResult.start(context.base_price).with_weights(
            context.volumetric_weight(divisor), context.chargeable_weight(divisor)
        )

    def _usable(self, rules: List[Any]) -> Tuple[List[RuleDefinition], List[str]]:
        """Split into typed, valid rules and validation messages (by index)."""
        typed: List[RuleDefinition] = []
        errors: List[str] = []
        for index, rule in enumerate(rules):
            problems = self.validator.validate_rule(rule, index)
            if problems:
                errors.extend(problems)
                continue
            typed.append(coerce_rule(rule))
        return typed, errors

    def _apply_category(
        self,
        kind: str,
        rules: Optional[Iterable[Any]],
        context: RuleContext,
        previous: Optional[RuleResult],
    ) -> RuleResult:
        typed, errors = self._usable(list(rules or []))
        start = previous if previous is not None else self._start(context)
        result = self._categories[kind].apply(typed, context, start.with_errors(errors))
        if previous is None:
            return result.finalized()
        return result
